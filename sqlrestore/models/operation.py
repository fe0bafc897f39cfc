"""Modèle partagé des opérations Cloud SQL et des documents de sortie.

Les trois verbes (check/in/out) manipulent les mêmes enregistrements : une
opération longue durée côté API, le backup qu'elle restaure, et le document
`{version, metadata}` attendu par le moteur de pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlrestore.errors import DecodeError
from sqlrestore.models.timezone import parse_timestamp

STATUS_PENDING = "PENDING"
STATUS_RUNNING = "RUNNING"
STATUS_DONE = "DONE"
NON_TERMINAL_STATUSES = frozenset({STATUS_PENDING, STATUS_RUNNING})


@dataclass(frozen=True)
class BackupContext:
    backup_id: str = ""
    kind: str = ""


@dataclass(frozen=True)
class Operation:
    """Instantané d'une opération distante ; chaque lecture en produit un nouveau."""

    operation_id: str
    status: str
    operation_type: str = ""
    target_id: str = ""
    insert_time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    backup_context: Optional[BackupContext] = None

    @property
    def backup_id(self) -> str:
        return self.backup_context.backup_id if self.backup_context else ""

    @property
    def is_running(self) -> bool:
        return self.status == STATUS_RUNNING

    @classmethod
    def from_api(cls, payload: object) -> "Operation":
        """Décode une ressource `sql#operation` (l'identifiant est le champ `name`).

        Raises:
            DecodeError: si la forme ou les horodatages sont invalides.
        """

        data = _require_mapping(payload, "opération")
        try:
            context_raw = data.get("backupContext")
            backup_context = None
            if context_raw:
                context = _require_mapping(context_raw, "backupContext")
                backup_context = BackupContext(
                    backup_id=_as_text(context.get("backupId")),
                    kind=_as_text(context.get("kind")),
                )
            return cls(
                operation_id=_as_text(data.get("name")),
                status=_as_text(data.get("status")),
                operation_type=_as_text(data.get("operationType")),
                target_id=_as_text(data.get("targetId")),
                insert_time=parse_timestamp(data.get("insertTime")),
                start_time=parse_timestamp(data.get("startTime")),
                end_time=parse_timestamp(data.get("endTime")),
                backup_context=backup_context,
            )
        except ValueError as exc:
            raise DecodeError(f"Opération illisible: {exc}") from exc


@dataclass(frozen=True)
class BackupItem:
    """Backup ponctuel d'une instance (`sql#backupRun`)."""

    backup_id: str
    enqueued_time: Optional[datetime] = None
    status: str = ""
    type: str = ""
    instance: str = ""
    location: str = ""
    kind: str = ""

    @classmethod
    def from_api(cls, payload: object) -> "BackupItem":
        data = _require_mapping(payload, "backup")
        backup_id = _as_text(data.get("id"))
        if not backup_id:
            raise DecodeError("Backup sans identifiant 'id'")
        try:
            enqueued_time = parse_timestamp(data.get("enqueuedTime"))
        except ValueError as exc:
            raise DecodeError(f"Backup {backup_id} illisible: {exc}") from exc
        return cls(
            backup_id=backup_id,
            enqueued_time=enqueued_time,
            status=_as_text(data.get("status")),
            type=_as_text(data.get("type")),
            instance=_as_text(data.get("instance")),
            location=_as_text(data.get("location")),
            kind=_as_text(data.get("kind")),
        )


@dataclass(frozen=True)
class Version:
    operation_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"operation_id": self.operation_id}


@dataclass(frozen=True)
class Metadata:
    name: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class ResourceOutput:
    """Document final des verbes in/out."""

    version: Version
    metadata: List[Metadata] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version.to_dict(),
            "metadata": [entry.to_dict() for entry in self.metadata],
        }

    def metadata_value(self, name: str) -> Optional[str]:
        for entry in self.metadata:
            if entry.name == name:
                return entry.value
        return None


def _require_mapping(payload: object, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise DecodeError(f"Objet JSON attendu pour {what}, reçu {type(payload).__name__}")
    return payload


def _as_text(value: object) -> str:
    # Les identifiants numériques (backupRun.id) arrivent parfois en int64 JSON.
    if value is None:
        return ""
    return str(value)
