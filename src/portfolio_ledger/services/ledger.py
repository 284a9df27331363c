"""Glue between the ingestion core and the collection store.

The core functions stay pure; every read-merge-write against storage happens
here so the CLI (or any other front end) only deals with sessions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session

from portfolio_ledger.analytics.holdings import build_holdings, filter_by_account
from portfolio_ledger.analytics.portfolios import PortfolioStats, all_portfolio_stats
from portfolio_ledger.config.settings import get_settings
from portfolio_ledger.db.models import TICKER_REQUIRED_TYPES, Holding, UnmappedName
from portfolio_ledger.db.repository import (
    TRANSACTIONS,
    CollectionStore,
    load_portfolios,
    load_ticker_map,
    load_transactions,
    max_transaction_id,
    save_ticker_map,
    save_transactions,
)
from portfolio_ledger.ingest.statement_import import IngestResult, epoch_millis, process_raw_data
from portfolio_ledger.ingest.ticker_map import apply_ticker_mapping, update_ticker_map
from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)


def next_id_seed(session: Session) -> int:
    """Epoch milliseconds, bumped past the highest stored id so batches never collide."""
    seed = epoch_millis()
    highest = max_transaction_id(session)
    if highest is not None and seed <= highest:
        seed = highest + 1
    return seed


def import_statement(
    session: Session,
    raw_rows: Sequence[Sequence[Any]],
    account_label: str,
    *,
    id_seed: int | None = None,
) -> IngestResult:
    ticker_map = load_ticker_map(session)
    result = process_raw_data(
        raw_rows,
        ticker_map,
        account_label,
        id_seed=id_seed if id_seed is not None else next_id_seed(session),
        max_header_scan=get_settings().header_scan_rows,
    )
    if not result.recognized:
        logger.warning("Statement format not recognized; nothing stored for '%s'", account_label)
        return result
    saved = save_transactions(session, result.transactions)
    logger.info("Stored %d transactions under account '%s'", saved, account_label)
    return result


def resolve_ticker(session: Session, name: str, ticker: str) -> int:
    """Persist a user-supplied ticker and backfill stored rows that lacked one."""
    ticker_map = update_ticker_map(load_ticker_map(session), name, ticker)
    save_ticker_map(session, ticker_map)

    name_text = name.strip()
    transactions = load_transactions(session)
    updated = apply_ticker_mapping(transactions, name_text, ticker_map[name_text])
    changed = [new for old, new in zip(transactions, updated) if new is not old]
    if changed:
        save_transactions(session, changed)
    logger.info("Mapped '%s' -> %s (%d transactions updated)", name_text, ticker_map[name_text], len(changed))
    return len(changed)


def pending_unmapped(session: Session) -> list[UnmappedName]:
    seen: set[str] = set()
    pending: list[UnmappedName] = []
    for tx in load_transactions(session):
        if tx.ticker is None and tx.name and tx.tx_type in TICKER_REQUIRED_TYPES and tx.name not in seen:
            seen.add(tx.name)
            pending.append(UnmappedName(name=tx.name))
    return pending


def delete_transactions(session: Session, ids: Iterable[int]) -> int:
    store = CollectionStore(session)
    return sum(store.delete(TRANSACTIONS, tx_id) for tx_id in ids)


def current_holdings(session: Session, account: str | None = None) -> dict[str, Holding]:
    return build_holdings(filter_by_account(load_transactions(session), account))


def portfolio_overview(
    session: Session,
    prices: Mapping[str, float] | None = None,
    account: str | None = None,
) -> list[PortfolioStats]:
    return all_portfolio_stats(load_portfolios(session), current_holdings(session, account), prices)
