# File: qbc/utils/log.py
# Project: QuantumBitCode (QBC)
# Version: 0.4.2
# Status: stable
# Date: 2026-09-21
# Purpose: Logging del CLI: consola (stderr) + archivo qbc.log.
# Notes: Idempotente; llamadas posteriores a setup_logging no duplican handlers.
from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FILENAME = "qbc.log"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_log_file: Path | None = None
_configured = False


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)


def setup_logging(log_dir: str | os.PathLike = "logs", level: int = logging.INFO) -> Path | None:
    """Instala handlers en el root logger y devuelve la ruta de qbc.log.

    Si el directorio no se puede crear/escribir se loguea un warning y se sigue
    solo con consola (devuelve None).
    """
    global _configured, _log_file
    if _configured:
        return _log_file

    root = logging.getLogger()
    root.setLevel(level)
    _attach(root, logging.StreamHandler(), level)

    target = Path(log_dir) / LOG_FILENAME
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(target, encoding="utf-8"), level)
        _log_file = target
    except OSError as e:
        logging.getLogger(__name__).warning("Sin log a archivo (%s): %s", target, e)

    # Qt es ruidoso con plugins de imagen/fuentes.
    logging.getLogger("PySide6").setLevel(logging.WARNING)

    _configured = True
    return _log_file


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
