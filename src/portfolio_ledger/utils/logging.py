from __future__ import annotations

import logging
import os

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# Third-party loggers that flood INFO during imports and schema creation.
_NOISY_LOGGERS = ("sqlalchemy.engine", "openpyxl")
_CONFIGURED = False


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once; ``LOG_LEVEL`` wins when no level is passed."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = resolved.strip().upper() or "INFO"
    logging.basicConfig(level=resolved, format=_DEFAULT_FORMAT)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
