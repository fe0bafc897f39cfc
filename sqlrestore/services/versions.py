from __future__ import annotations

from typing import Iterator

from sqlrestore.models.operation import Version
from sqlrestore.operations.query import OperationsApi, get_operation, list_restore_operations, oldest_ended_first


def iter_versions(api: OperationsApi, project: str, instance: str, operation_id: str = "") -> Iterator[Version]:
    """Versions connues (opérations RESTORE_VOLUME), de la plus ancienne terminée à la plus récente.

    Avec une version courante, l'opération est d'abord relue pour confirmer
    qu'elle existe ; la liste émise reste celle de l'API, pas cette lecture.
    """

    if operation_id:
        get_operation(api, project, instance, operation_id)

    for operation in oldest_ended_first(list_restore_operations(api, project, instance)):
        yield Version(operation.operation_id)
