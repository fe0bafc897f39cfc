"""Points d'entrée check/in/out de la ressource de restauration Cloud SQL.

Chaque verbe lit un document JSON sur stdin, écrit un unique document JSON sur
stdout en cas de succès, et journalise sur stderr. Toute `RestoreError`
interrompt le verbe avec le code de sortie 1, sans sortie partielle.
"""
from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

from runner.payload import ResourceRequest, parse_request
from sqlrestore.api.client import RestClient, SqlAdminApi, TokenProvider
from sqlrestore.auth.credentials import credential_context
from sqlrestore.config import Settings
from sqlrestore.errors import PayloadError, RestoreError
from sqlrestore.logging.logger import build_logger
from sqlrestore.models.operation import ResourceOutput
from sqlrestore.operations.query import OperationsApi
from sqlrestore.services import restore
from sqlrestore.services.backup import BackupTarget, choose_backup
from sqlrestore.services.poller import completed_output, wait_for_operation
from sqlrestore.services.versions import iter_versions

ApiFactory = Callable[[TokenProvider, Settings], OperationsApi]
VERBS = ("check", "in", "out")


def run_check(request: ResourceRequest, api: OperationsApi, logger: logging.Logger) -> List[Dict[str, str]]:
    versions = [
        version.to_dict()
        for version in iter_versions(api, request.source.project, request.source.instance, request.operation_id)
    ]
    logger.info("%s version(s) de restauration trouvée(s)", len(versions))
    return versions


def run_in(
    request: ResourceRequest,
    api: OperationsApi,
    logger: logging.Logger,
    sleep: Callable[[float], None] = time.sleep,
) -> ResourceOutput:
    if not request.operation_id:
        raise PayloadError("version.operation_id est requis pour in")

    operation = wait_for_operation(
        api,
        request.source.project,
        request.source.instance,
        request.operation_id,
        logger,
        policy=request.source.poll,
        sleep=sleep,
    )
    logger.info("Restauration réussie: %s", operation.operation_id)
    return completed_output(operation)


def run_out(
    request: ResourceRequest,
    api: OperationsApi,
    logger: logging.Logger,
    sources_dir: Optional[Path] = None,
) -> ResourceOutput:
    params = request.out_params()
    source = BackupTarget(project=params.source_project, instance=params.source_instance)
    backup = choose_backup(api, source, logger, pinned_step=params.source_backup, sources_dir=sources_dir)

    outcome = restore.run(
        api,
        restore.RestoreRequest(
            project=request.source.project,
            instance=request.source.instance,
            backup=backup,
            source=source,
        ),
        logger,
    )
    if not outcome.submitted:
        logger.info("État actuel de l'instance: %s", outcome.operation.status)
    return outcome.to_output(backup)


def default_api(tokens: TokenProvider, settings: Settings) -> OperationsApi:
    return SqlAdminApi(RestClient(tokens, timeout=settings.http_timeout), api_base=settings.api_base)


def execute(
    verb: str,
    args: Sequence[str],
    stdin: TextIO,
    stdout: TextIO,
    settings: Optional[Settings] = None,
    api_factory: ApiFactory = default_api,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Exécute un verbe et retourne le code de sortie du processus."""

    try:
        settings = settings or Settings.from_env()
    except ValueError as exc:
        build_logger(verb).error("Configuration invalide: %s", exc)
        return 1

    logger = build_logger(verb, settings.logs_dir, settings.log_level)
    if verb not in VERBS:
        logger.error("Verbe inconnu: %s (attendu: %s)", verb, ", ".join(VERBS))
        return 2

    try:
        request = parse_request(stdin.read())
        with credential_context(request.source.private_key, settings.credentials_path) as tokens:
            api = api_factory(tokens, settings)
            result: Any
            if verb == "check":
                result = run_check(request, api, logger)
            elif verb == "in":
                result = run_in(request, api, logger, sleep=sleep).to_dict()
            else:
                sources_dir = Path(args[0]) if args else None
                result = run_out(request, api, logger, sources_dir=sources_dir).to_dict()
    except RestoreError as exc:
        logger.error("%s échoué: %s", verb, exc)
        return 1

    stdout.write(json.dumps(result, indent=2, ensure_ascii=False))
    stdout.write("\n")
    stdout.flush()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dispatch selon le nom du programme (`/opt/resource/check`, `in`, `out`)."""

    argv = list(sys.argv if argv is None else argv)
    verb = Path(argv[0]).name if argv else ""
    return execute(verb, argv[1:], sys.stdin, sys.stdout)


def check_main() -> None:
    sys.exit(execute("check", sys.argv[1:], sys.stdin, sys.stdout))


def in_main() -> None:
    sys.exit(execute("in", sys.argv[1:], sys.stdin, sys.stdout))


def out_main() -> None:
    sys.exit(execute("out", sys.argv[1:], sys.stdin, sys.stdout))


if __name__ == "__main__":
    sys.exit(main())
