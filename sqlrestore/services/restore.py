"""Soumission d'une restauration, protégée par une détection d'opération en cours.

La détection puis la soumission ne sont pas atomiques : deux `out` concurrents
sur la même instance peuvent encore créer deux restaurations. Seul un jeton
d'idempotence côté API fermerait cette fenêtre.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlrestore.models.operation import BackupItem, Metadata, Operation, ResourceOutput, Version
from sqlrestore.models.timezone import format_display
from sqlrestore.operations.query import OperationsApi, latest_restore_operation
from sqlrestore.services.backup import BackupTarget


@dataclass
class RestoreRequest:
    """Paramètres nécessaires à une restauration."""

    project: str
    instance: str
    backup: BackupItem
    source: BackupTarget


@dataclass
class RestoreOutcome:
    operation: Operation
    submitted: bool

    def to_output(self, backup: BackupItem) -> ResourceOutput:
        op = self.operation
        metadata = [
            Metadata("status", op.status),
            Metadata("insert-time", format_display(op.insert_time)),
            Metadata("type", op.operation_type),
            Metadata("target-instance", op.target_id),
        ]
        if self.submitted:
            metadata.insert(0, Metadata("backup-id", backup.backup_id))
        return ResourceOutput(version=Version(op.operation_id), metadata=metadata)


def run(api: OperationsApi, request: RestoreRequest, logger: logging.Logger) -> RestoreOutcome:
    """Restaure le backup demandé sauf si une restauration est déjà en cours.

    Args:
        api: surface Cloud SQL Admin (lecture des opérations, POST restoreBackup).
        request: instance cible, backup choisi et instance source du backup.
        logger: journal du verbe.

    Returns:
        L'opération en cours (`submitted=False`) ou celle créée par le POST.

    Raises:
        RestoreError: toute erreur de transport ou de décodage, sans reprise.
    """

    latest = latest_restore_operation(api, request.project, request.instance)
    if latest is not None and latest.is_running:
        logger.info(
            "Restauration déjà en cours sur %s: %s (%s)",
            request.instance,
            latest.operation_id,
            latest.status,
        )
        return RestoreOutcome(operation=latest, submitted=False)

    logger.info(
        "Restauration du backup %s (%s/%s) vers %s/%s",
        request.backup.backup_id,
        request.source.project,
        request.source.instance,
        request.project,
        request.instance,
    )
    operation = api.restore_backup(
        request.project,
        request.instance,
        request.backup.backup_id,
        request.source.project,
        request.source.instance,
    )
    logger.info("Opération de restauration créée: %s (%s)", operation.operation_id, operation.status)
    return RestoreOutcome(operation=operation, submitted=True)
