"""Erreurs fonctionnelles de la ressource de restauration Cloud SQL.

Toutes les erreurs dérivent de `RestoreError` : le point d'entrée les attrape
une seule fois, les journalise et termine le processus en échec.
"""
from __future__ import annotations


class RestoreError(Exception):
    """Erreur fonctionnelle lors d'un check/in/out."""


class TransportError(RestoreError):
    """Échec réseau ou réponse HTTP en erreur."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class DecodeError(RestoreError):
    """Réponse JSON illisible ou de forme inattendue."""


class EmptyBackupSetError(RestoreError):
    """Aucun backup disponible pour l'instance source."""


class UnexpectedStatusError(RestoreError):
    """Opération dans un statut hors de PENDING/RUNNING/DONE."""

    def __init__(self, operation_id: str, status: str) -> None:
        self.operation_id = operation_id
        self.status = status
        super().__init__(f"Opération {operation_id} dans un statut inattendu: {status or '<vide>'}")


class CredentialError(RestoreError):
    """Identifiants absents ou invalides."""


class PayloadError(RestoreError):
    """Document d'entrée (stdin ou sortie d'une étape précédente) invalide."""


class PollTimeoutError(RestoreError):
    """Borne de polling atteinte avant un statut terminal."""
