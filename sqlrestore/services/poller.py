from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sqlrestore.config import DEFAULT_POLL_INTERVAL
from sqlrestore.errors import PollTimeoutError, UnexpectedStatusError
from sqlrestore.models.operation import (
    STATUS_DONE,
    STATUS_PENDING,
    STATUS_RUNNING,
    Metadata,
    Operation,
    ResourceOutput,
    Version,
)
from sqlrestore.models.timezone import format_display
from sqlrestore.operations.query import OperationsApi, get_operation


class PollState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"


def classify(status: str) -> PollState:
    """Tout statut hors PENDING/RUNNING/DONE est un échec terminal."""

    if status == STATUS_DONE:
        return PollState.DONE
    if status == STATUS_RUNNING:
        return PollState.RUNNING
    if status == STATUS_PENDING:
        return PollState.PENDING
    return PollState.FAILED


@dataclass(frozen=True)
class PollPolicy:
    """Cadence et bornes du polling ; sans borne par défaut."""

    interval: float = DEFAULT_POLL_INTERVAL
    timeout: Optional[float] = None
    retries: Optional[int] = None


def wait_for_operation(
    api: OperationsApi,
    project: str,
    instance: str,
    operation_id: str,
    logger: logging.Logger,
    policy: PollPolicy = PollPolicy(),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Operation:
    """Interroge l'opération jusqu'à DONE.

    Chaque tour relit un nouvel instantané de l'opération ; entre deux tours
    non terminaux on attend `policy.interval` secondes.

    Raises:
        UnexpectedStatusError: statut hors PENDING/RUNNING/DONE (pas de reprise).
        PollTimeoutError: `policy.retries` ou `policy.timeout` épuisés.
        RestoreError: erreur de transport ou de décodage.
    """

    logger.info(
        "Suivi de l'opération %s (interval=%ss, timeout=%s, retries=%s)",
        operation_id,
        policy.interval,
        f"{policy.timeout}s" if policy.timeout is not None else "illimité",
        policy.retries if policy.retries is not None else "illimité",
    )

    deadline = clock() + policy.timeout if policy.timeout is not None else None
    attempts = 0

    while True:
        attempts += 1
        operation = get_operation(api, project, instance, operation_id)
        state = classify(operation.status)

        if state is PollState.DONE:
            logger.info("Restauration terminée après %s lecture(s)", attempts)
            return operation
        if state is PollState.FAILED:
            logger.error("État de la restauration: %s", operation.status)
            raise UnexpectedStatusError(operation.operation_id or operation_id, operation.status)

        logger.info("État de la restauration: %s", operation.status)
        if policy.retries is not None and attempts >= policy.retries:
            raise PollTimeoutError(
                f"Opération {operation_id} toujours {operation.status} après {attempts} tentative(s)"
            )
        if deadline is not None and clock() + policy.interval > deadline:
            raise PollTimeoutError(
                f"Opération {operation_id} toujours {operation.status} après {policy.timeout}s"
            )

        sleep(policy.interval)


def completed_output(operation: Operation) -> ResourceOutput:
    return ResourceOutput(
        version=Version(operation.operation_id),
        metadata=[
            Metadata("backup-id", operation.backup_id),
            Metadata("status", operation.status),
            Metadata("end-time", format_display(operation.end_time)),
            Metadata("type", operation.operation_type),
            Metadata("target-instance", operation.target_id),
        ],
    )
