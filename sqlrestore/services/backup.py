"""Sélection du backup à restaurer."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from sqlrestore.config import PINNED_BACKUP_FILE
from sqlrestore.errors import DecodeError, EmptyBackupSetError, PayloadError
from sqlrestore.models.operation import BackupItem
from sqlrestore.models.timezone import EARLIEST
from sqlrestore.operations.query import OperationsApi


@dataclass
class BackupTarget:
    """Instance dont les backups sont lus."""

    project: str
    instance: str


def select_latest_backup(items: Iterable[BackupItem]) -> BackupItem:
    """Retourne le backup au `enqueuedTime` le plus récent.

    Raises:
        EmptyBackupSetError: si aucun backup n'est fourni.
    """

    candidates = list(items)
    if not candidates:
        raise EmptyBackupSetError("Aucun backup disponible (empty backup runs)")
    return max(candidates, key=lambda item: item.enqueued_time or EARLIEST)


def load_pinned_backup(sources_dir: Path, step: str) -> BackupItem:
    """Relit le backup publié par une étape précédente (`<sources_dir>/<step>/output.json`).

    Raises:
        PayloadError: si le fichier est absent, illisible ou sans identifiant.
    """

    backup_path = sources_dir / step / PINNED_BACKUP_FILE
    try:
        with backup_path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as exc:
        raise PayloadError(f"Backup épinglé introuvable: {backup_path} ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Backup épinglé invalide: {backup_path} ({exc})") from exc

    try:
        return BackupItem.from_api(payload)
    except DecodeError as exc:
        raise PayloadError(f"Backup épinglé invalide: {backup_path} ({exc})") from exc


def choose_backup(
    api: OperationsApi,
    target: BackupTarget,
    logger: logging.Logger,
    pinned_step: str = "",
    sources_dir: Optional[Path] = None,
) -> BackupItem:
    """Backup épinglé s'il est demandé, sinon le plus récent de l'instance source."""

    if pinned_step:
        if sources_dir is None:
            raise PayloadError("params.source_backup fourni sans répertoire de sources")
        backup = load_pinned_backup(sources_dir, pinned_step)
        logger.info("Backup importé: %s", backup.backup_id)
        return backup

    backup = select_latest_backup(api.list_backup_runs(target.project, target.instance))
    logger.info("Dernier backup de %s/%s: %s", target.project, target.instance, backup.backup_id)
    return backup
