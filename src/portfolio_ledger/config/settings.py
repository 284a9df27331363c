from __future__ import annotations

import os
from dataclasses import dataclass

from portfolio_ledger.config.paths import default_db_path

DEFAULT_ACCOUNT_LABEL = "기본계좌"
HEADER_SCAN_ROWS = 10


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    app_env: str
    database_url: str
    default_account_label: str
    header_scan_rows: int


def get_settings() -> Settings:
    db_default = f"sqlite:///{default_db_path().as_posix()}"
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL", db_default),
        default_account_label=os.getenv("LEDGER_DEFAULT_ACCOUNT", DEFAULT_ACCOUNT_LABEL).strip()
        or DEFAULT_ACCOUNT_LABEL,
        header_scan_rows=_env_int("LEDGER_HEADER_SCAN_ROWS", HEADER_SCAN_ROWS),
    )
