from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pytest

from sqlrestore.models.operation import BackupItem, Operation


def op_payload(
    name: str,
    status: str = "DONE",
    operation_type: str = "RESTORE_VOLUME",
    target: str = "db1",
    insert: Optional[str] = None,
    end: Optional[str] = None,
    backup_id: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "kind": "sql#operation",
        "name": name,
        "status": status,
        "operationType": operation_type,
        "targetId": target,
    }
    if insert:
        payload["insertTime"] = insert
    if end:
        payload["endTime"] = end
    if backup_id:
        payload["backupContext"] = {"backupId": backup_id, "kind": "sql#backupContext"}
    return payload


class FakeApi:
    """Surface Cloud SQL Admin en mémoire ; trace chaque appel."""

    def __init__(
        self,
        operations: Optional[List[Dict[str, Any]]] = None,
        backups: Optional[List[Dict[str, Any]]] = None,
        scripted: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        restore_response: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operations = operations or []
        self.backups = backups or []
        self.scripted = {key: list(value) for key, value in (scripted or {}).items()}
        self.restore_response = restore_response or op_payload(
            "op-new", status="PENDING", insert="2024-01-02T00:00:00Z"
        )
        self.calls: List[tuple] = []
        self.posts: List[Dict[str, str]] = []

    def list_operations(self, project: str, instance: str) -> List[Operation]:
        self.calls.append(("list_operations", project, instance))
        return [Operation.from_api(payload) for payload in self.operations]

    def get_operation(self, project: str, instance: str, operation_id: str) -> Operation:
        self.calls.append(("get_operation", project, instance, operation_id))
        snapshots = self.scripted.get(operation_id)
        if snapshots:
            payload = snapshots.pop(0) if len(snapshots) > 1 else snapshots[0]
            return Operation.from_api(payload)
        for payload in self.operations:
            if payload["name"] == operation_id:
                return Operation.from_api(payload)
        raise KeyError(operation_id)

    def list_backup_runs(self, project: str, instance: str) -> List[BackupItem]:
        self.calls.append(("list_backup_runs", project, instance))
        return [BackupItem.from_api(payload) for payload in self.backups]

    def restore_backup(
        self,
        project: str,
        instance: str,
        backup_id: str,
        source_project: str,
        source_instance: str,
    ) -> Operation:
        self.calls.append(("restore_backup", project, instance))
        self.posts.append(
            {
                "project": project,
                "instance": instance,
                "backup_id": backup_id,
                "source_project": source_project,
                "source_instance": source_instance,
            }
        )
        return Operation.from_api(self.restore_response)

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests.sqlrestore")


@pytest.fixture
def make_api():
    return FakeApi


@pytest.fixture
def make_op():
    return op_payload
