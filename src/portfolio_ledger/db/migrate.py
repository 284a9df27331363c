from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from portfolio_ledger.config.settings import get_settings
from portfolio_ledger.db.models import Base
from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_pragmas(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _connection_record):  # pragma: no cover - driver callback
        cursor = dbapi_connection.cursor()
        for statement in ("PRAGMA busy_timeout=5000", "PRAGMA synchronous=NORMAL"):
            cursor.execute(statement)
        cursor.close()


def build_engine(database_url: str | None = None) -> Engine:
    url = database_url or get_settings().database_url
    engine = create_engine(url, future=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_pragmas(engine)
    return engine


def migrate(engine: Engine | None = None) -> Engine:
    resolved = engine or build_engine()
    Base.metadata.create_all(resolved)
    logger.info("Schema ready on %s", resolved.url.render_as_string(hide_password=True))
    return resolved
