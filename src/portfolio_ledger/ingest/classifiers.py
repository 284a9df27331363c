"""Keyword-driven classification of statement rows.

Both tables here are ordered rule lists: the transaction-type aliases are tried
longest first, the asset-class rules top to bottom. New broker formats are
handled by extending the tables, not the matching code.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum

from portfolio_ledger.db.models import AssetClass, TxType
from portfolio_ledger.ingest.validators import normalize_header


class RowAction(str, Enum):
    IGNORE = "IGNORE"
    BY_MEMO = "BY_MEMO"


IGNORE = RowAction.IGNORE
BY_MEMO = RowAction.BY_MEMO

TX_TYPE_ALIASES: list[tuple[str, TxType | RowAction]] = [
    ("매수", TxType.BUY),
    ("주식매수", TxType.BUY),
    ("장내매수", TxType.BUY),
    ("주식매수입고", TxType.BUY),
    ("교체매매매수", TxType.BUY),
    ("buy", TxType.BUY),
    ("bought", TxType.BUY),
    ("매도", TxType.SELL),
    ("주식매도", TxType.SELL),
    ("장내매도", TxType.SELL),
    ("주식매도출고", TxType.SELL),
    ("교체매매매도", TxType.SELL),
    ("sell", TxType.SELL),
    ("sold", TxType.SELL),
    # Cash legs of a trade already reported by the matching stock row.
    ("주식매수출금", IGNORE),
    ("주식매도입금", IGNORE),
    ("채권매수출금", IGNORE),
    ("채권매도입금", IGNORE),
    ("매매", BY_MEMO),
    ("입금", TxType.DEPOSIT),
    ("현금입금", TxType.DEPOSIT),
    ("예수금입금", TxType.DEPOSIT),
    ("이체입금", TxType.DEPOSIT),
    ("상환금입금", TxType.DEPOSIT),
    ("deposit", TxType.DEPOSIT),
    ("출금", TxType.WITHDRAWAL),
    ("현금출금", TxType.WITHDRAWAL),
    ("이체출금", TxType.WITHDRAWAL),
    ("withdrawal", TxType.WITHDRAWAL),
    ("배당", TxType.DIVIDEND),
    ("배당금", TxType.DIVIDEND),
    ("분배금", TxType.DIVIDEND),
    ("dividend", TxType.DIVIDEND),
    ("이자", TxType.INTEREST),
    ("예탁금이용료", TxType.INTEREST),
    ("이자입금", TxType.INTEREST),
    ("interest", TxType.INTEREST),
    ("세금", TxType.TAX),
    ("제세금", TxType.TAX),
    ("배당세", TxType.TAX),
    ("원천징수", TxType.TAX),
    ("tax", TxType.TAX),
    ("수수료", TxType.FEE),
    ("보관수수료", TxType.FEE),
    ("adr수수료", TxType.FEE),
    ("fee", TxType.FEE),
    ("합병", TxType.MERGER_SPLIT),
    ("액면병합", TxType.MERGER_SPLIT),
    ("분할", TxType.MERGER_SPLIT),
    ("split", TxType.MERGER_SPLIT),
    ("merger", TxType.MERGER_SPLIT),
]

# sorted() is stable, so equal-length aliases keep table order.
_ALIASES_LONGEST_FIRST = sorted(TX_TYPE_ALIASES, key=lambda item: len(item[0]), reverse=True)

BOND_MARKERS = ("채권", "bond")
GOLD_MARKERS = ("금현물", "금 현물", "KRX금", "금99.99", "BULLION")

KR_ETF_KEYWORDS = (
    "KODEX", "TIGER", "KBSTAR", "HANARO", "ARIRANG",
    "KOSEF", "SOL", "ACE", "RISE", "TIMEFOLIO", "FOCUS",
)
US_ETF_KEYWORDS = ("ETF", "FUND", "SPDR", "ISHARES", "VANGUARD", "INVESCO", "PROSHARES")

_US_TICKER_RE = re.compile(r"^[A-Z]{2,5}$")


def map_tx_type(raw_label: str | None, memo: str | None = "") -> TxType | None:
    """Classify a statement label; ``None`` means the row must be dropped."""
    label = normalize_header(raw_label)
    if not label:
        return TxType.DEPOSIT

    for alias, outcome in _ALIASES_LONGEST_FIRST:
        if alias not in label:
            continue
        if outcome is IGNORE:
            return None
        if outcome is BY_MEMO:
            return TxType.SELL if "매도" in normalize_header(memo) else TxType.BUY
        return outcome
    return TxType.DEPOSIT


def _is_listed_fund(name: str | None) -> bool:
    upper = (name or "").upper()
    return any(keyword in upper for keyword in KR_ETF_KEYWORDS)


def is_bond_row(name: str | None, raw_label: str | None = "") -> bool:
    """Direct bond holdings are skipped; exchange-listed bond funds are kept."""
    if _is_listed_fund(name):
        return False
    haystack = f"{name or ''} {raw_label or ''}"
    return any(marker in haystack for marker in BOND_MARKERS)


def _is_foreign(currency: str) -> bool:
    return bool(currency) and currency != "KRW"


def _looks_like_us_etf(name: str, ticker: str) -> bool:
    if any(keyword in name or keyword in ticker for keyword in US_ETF_KEYWORDS):
        return True
    return bool(_US_TICKER_RE.match(ticker)) and ("ETF" in name or "FUND" in name)


_AssetRule = Callable[[str, str, str, str], bool]

# (predicate(raw_name, upper_name, upper_ticker, currency), result), first match wins.
ASSET_CLASS_RULES: list[tuple[_AssetRule, AssetClass]] = [
    (lambda raw, name, ticker, ccy: any(m in raw or m in name for m in GOLD_MARKERS), AssetClass.GOLD),
    (
        lambda raw, name, ticker, ccy: not _is_listed_fund(raw) and any(m in raw for m in BOND_MARKERS),
        AssetClass.KR_BOND,
    ),
    (lambda raw, name, ticker, ccy: _is_foreign(ccy) and _looks_like_us_etf(name, ticker), AssetClass.US_ETF),
    (lambda raw, name, ticker, ccy: _is_foreign(ccy), AssetClass.US_STOCK),
    (lambda raw, name, ticker, ccy: any(k in name for k in KR_ETF_KEYWORDS), AssetClass.KR_ETF),
]


def detect_asset_class(
    name: str | None, ticker: str | None = None, currency: str | None = "KRW"
) -> AssetClass:
    raw_name = name or ""
    upper_name = raw_name.upper()
    upper_ticker = (ticker or "").upper()
    ccy = (currency or "KRW").strip().upper()
    for predicate, result in ASSET_CLASS_RULES:
        if predicate(raw_name, upper_name, upper_ticker, ccy):
            return result
    return AssetClass.KR_STOCK
