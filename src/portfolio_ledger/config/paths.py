"""Where the ledger keeps its local database."""

from __future__ import annotations

import os
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = ROOT_DIR / "data"
DB_FILENAME = "portfolio_ledger.sqlite"
DATA_DIR_ENV = "PORTFOLIO_LEDGER_DATA_DIR"


def data_dir(create: bool = True) -> Path:
    override = os.getenv(DATA_DIR_ENV, "").strip()
    directory = Path(override).expanduser() if override else DEFAULT_DATA_DIR
    if create:
        directory.mkdir(parents=True, exist_ok=True)
    return directory


def default_db_path() -> Path:
    return data_dir() / DB_FILENAME
