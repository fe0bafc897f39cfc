from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def build_logger(name: str, logs_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """Logger d'un verbe : stderr toujours, fichier `<logs_dir>/<name>.log` si demandé.

    stdout reste réservé au document JSON de résultat.
    """

    logger = logging.getLogger(f"sqlrestore.{name}")
    logger.setLevel(level)
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = logs_dir / f"{name}.log"
        if not any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_file)
            for handler in logger.handlers
        ):
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
