"""Lecture et validation du document JSON reçu sur stdin."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from sqlrestore.errors import PayloadError
from sqlrestore.services.poller import PollPolicy


@dataclass
class SourceConfig:
    project: str
    instance: str
    private_key: str
    poll: PollPolicy = field(default_factory=PollPolicy)


@dataclass
class OutParams:
    source_project: str
    source_instance: str
    source_backup: str = ""


@dataclass
class ResourceRequest:
    source: SourceConfig
    operation_id: str = ""
    params: Dict[str, Any] = field(default_factory=dict)

    def out_params(self) -> OutParams:
        """Paramètres de `out` ; l'instance source vaut par défaut l'instance cible."""

        return OutParams(
            source_project=_optional_str(self.params, "source_project", "params") or self.source.project,
            source_instance=_optional_str(self.params, "source_instance", "params") or self.source.instance,
            source_backup=_optional_str(self.params, "source_backup", "params"),
        )


def parse_request(raw: str) -> ResourceRequest:
    """Décode le document stdin commun aux trois verbes.

    Raises:
        PayloadError: JSON invalide ou clés obligatoires absentes/mal typées.
    """

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Entrée JSON invalide: {exc}") from exc

    if not isinstance(payload, dict):
        raise PayloadError("L'entrée doit être un objet JSON")

    source = payload.get("source")
    if not isinstance(source, dict):
        raise PayloadError("La clé 'source' doit être un objet JSON")

    for key in ("project", "instance", "private_key"):
        value = source.get(key)
        if not isinstance(value, str) or not value.strip():
            raise PayloadError(f"source.{key} doit être une chaîne non vide")

    version = payload.get("version") or {}
    if not isinstance(version, dict):
        raise PayloadError("La clé 'version' doit être un objet JSON")

    params = payload.get("params") or {}
    if not isinstance(params, dict):
        raise PayloadError("La clé 'params' doit être un objet JSON")

    return ResourceRequest(
        source=SourceConfig(
            project=source["project"],
            instance=source["instance"],
            private_key=source["private_key"],
            poll=_parse_poll_policy(source.get("poll")),
        ),
        operation_id=_optional_str(version, "operation_id", "version"),
        params=params,
    )


def _parse_poll_policy(raw: object) -> PollPolicy:
    if raw is None:
        return PollPolicy()
    if not isinstance(raw, dict):
        raise PayloadError("source.poll doit être un objet JSON")

    for numeric_key in ("interval", "timeout", "retries"):
        value = raw.get(numeric_key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PayloadError(f"source.poll.{numeric_key} doit être un nombre si présent")
        if value <= 0:
            raise PayloadError(f"source.poll.{numeric_key} doit être strictement positif")

    retries = raw.get("retries")
    if retries is not None and int(retries) != retries:
        raise PayloadError("source.poll.retries doit être un entier")

    defaults = PollPolicy()
    return PollPolicy(
        interval=raw.get("interval") or defaults.interval,
        timeout=raw.get("timeout"),
        retries=int(retries) if retries is not None else None,
    )


def _optional_str(container: Mapping[str, Any], key: str, section: str) -> str:
    value = container.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PayloadError(f"{section}.{key} doit être une chaîne")
    return value.strip()
