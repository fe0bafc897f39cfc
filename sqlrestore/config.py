from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_API_BASE = "https://sqladmin.googleapis.com/v1"
DEFAULT_CREDENTIALS_PATH = Path("/service-account.json")
DEFAULT_HTTP_TIMEOUT = 30  # secondes
DEFAULT_POLL_INTERVAL = 30  # secondes
CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
AUTH_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)
DISPLAY_TIMEZONE = "Asia/Taipei"
RESTORE_OPERATION_TYPE = "RESTORE_VOLUME"
PINNED_BACKUP_FILE = "output.json"


@dataclass(frozen=True)
class Settings:
    """Réglages du processus, lus depuis l'environnement."""

    api_base: str = DEFAULT_API_BASE
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    logs_dir: Optional[Path] = None
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Construit les réglages depuis les variables SQLRESTORE_*.

        Args:
            env: mapping des variables d'environnement (par défaut os.environ).

        Raises:
            ValueError: si une valeur numérique ou un niveau de log est invalide.
        """

        env = env if env is not None else os.environ

        timeout_raw = env.get("SQLRESTORE_HTTP_TIMEOUT")
        http_timeout = float(timeout_raw) if timeout_raw else DEFAULT_HTTP_TIMEOUT
        if http_timeout <= 0:
            raise ValueError("SQLRESTORE_HTTP_TIMEOUT doit être strictement positif")

        level_name = (env.get("SQLRESTORE_LOG_LEVEL") or "INFO").strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ValueError(f"SQLRESTORE_LOG_LEVEL inconnu: {level_name}")

        logs_dir = env.get("SQLRESTORE_LOGS_DIR")
        credentials_path = env.get("SQLRESTORE_CREDENTIALS_PATH")

        return cls(
            api_base=(env.get("SQLRESTORE_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            credentials_path=Path(credentials_path) if credentials_path else DEFAULT_CREDENTIALS_PATH,
            http_timeout=http_timeout,
            logs_dir=Path(logs_dir) if logs_dir else None,
            log_level=level,
        )
