"""Lecture des opérations de restauration d'une instance.

Deux ordres distincts selon l'appelant :
- `newest_inserted_first` : détection d'une restauration en cours (out) ;
- `oldest_ended_first` : historique stable des versions (check).
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from sqlrestore.config import RESTORE_OPERATION_TYPE
from sqlrestore.models.operation import BackupItem, Operation
from sqlrestore.models.timezone import EARLIEST


class OperationsApi(Protocol):
    def list_operations(self, project: str, instance: str) -> List[Operation]: ...

    def get_operation(self, project: str, instance: str, operation_id: str) -> Operation: ...

    def list_backup_runs(self, project: str, instance: str) -> List[BackupItem]: ...

    def restore_backup(
        self,
        project: str,
        instance: str,
        backup_id: str,
        source_project: str,
        source_instance: str,
    ) -> Operation: ...


def filter_restore_operations(operations: Iterable[Operation]) -> List[Operation]:
    return [op for op in operations if op.operation_type == RESTORE_OPERATION_TYPE]


def newest_inserted_first(operations: Iterable[Operation]) -> List[Operation]:
    return sorted(operations, key=lambda op: op.insert_time or EARLIEST, reverse=True)


def oldest_ended_first(operations: Iterable[Operation]) -> List[Operation]:
    # Les opérations sans endTime (encore en cours) passent en tête.
    return sorted(operations, key=lambda op: op.end_time or EARLIEST)


def list_restore_operations(api: OperationsApi, project: str, instance: str) -> List[Operation]:
    """Opérations RESTORE_VOLUME de l'instance, dans l'ordre renvoyé par l'API."""

    return filter_restore_operations(api.list_operations(project, instance))


def latest_restore_operation(api: OperationsApi, project: str, instance: str) -> Optional[Operation]:
    operations = newest_inserted_first(list_restore_operations(api, project, instance))
    return operations[0] if operations else None


def get_operation(api: OperationsApi, project: str, instance: str, operation_id: str) -> Operation:
    return api.get_operation(project, instance, operation_id)
