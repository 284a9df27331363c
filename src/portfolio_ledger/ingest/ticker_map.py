"""Name-to-ticker resolution helpers.

The persisted mapping is always handled as an immutable snapshot: helpers return
new dicts/lists and leave their inputs untouched. The caller owns persistence.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace

from portfolio_ledger.db.models import Transaction, UnmappedName
from portfolio_ledger.ingest.validators import normalize_ticker

# Well-known instruments whose statement names are stable across brokers.
FALLBACK_TICKERS: dict[str, str] = {
    "삼성전자": "005930",
    "SK하이닉스": "000660",
    "애플": "AAPL",
    "테슬라": "TSLA",
    "엔비디아": "NVDA",
    "마이크로소프트": "MSFT",
    "아마존닷컴": "AMZN",
    "알파벳 A": "GOOGL",
    "메타 플랫폼스": "META",
    "SPDR S&P 500 ETF TRUST": "SPY",
    "INVESCO QQQ TRUST": "QQQ",
    "VANGUARD S&P 500 ETF": "VOO",
    "SCHWAB US DIVIDEND EQUITY ETF": "SCHD",
}


def lookup_ticker(name: str, ticker_cache: Mapping[str, str]) -> str | None:
    if not name:
        return None
    cached = ticker_cache.get(name)
    if cached:
        return cached
    return FALLBACK_TICKERS.get(name)


def backfill_tickers(
    transactions: Sequence[Transaction], ticker_cache: Mapping[str, str]
) -> list[Transaction]:
    filled: list[Transaction] = []
    for tx in transactions:
        if tx.ticker is None:
            ticker = lookup_ticker(tx.name, ticker_cache)
            if ticker:
                tx = replace(tx, ticker=ticker)
        filled.append(tx)
    return filled


def update_ticker_map(cache: Mapping[str, str], name: str, ticker: str) -> dict[str, str]:
    name_text = name.strip()
    ticker_text = normalize_ticker(ticker)
    if not name_text:
        raise ValueError("Name is required.")
    if not ticker_text:
        raise ValueError("Ticker is required.")
    updated = dict(cache)
    updated[name_text] = ticker_text
    return updated


def apply_ticker_mapping(
    transactions: Sequence[Transaction], name: str, ticker: str
) -> list[Transaction]:
    return [
        replace(tx, ticker=ticker) if tx.name == name and tx.ticker is None else tx
        for tx in transactions
    ]


def merge_unmapped(
    existing: Iterable[UnmappedName], new: Iterable[UnmappedName]
) -> list[UnmappedName]:
    merged: list[UnmappedName] = []
    seen: set[str] = set()
    for item in [*existing, *new]:
        if item.name in seen:
            continue
        seen.add(item.name)
        merged.append(item)
    return merged


def drop_unmapped(unmapped: Iterable[UnmappedName], name: str) -> list[UnmappedName]:
    return [item for item in unmapped if item.name != name]
