"""Weighted-average-cost holdings rebuilt from the full transaction history.

``build_holdings`` is a pure full replay: callers pass every transaction they
have (all batches, all accounts) and get fresh ``Holding`` objects back. There
is no incremental update path; average cost is order dependent and positions
that close to zero forget their cost basis.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import pandas as pd

from portfolio_ledger.db.models import ASSET_CLASS_LABELS, Holding, Transaction, TxType
from portfolio_ledger.utils.money import round_money

_DOMESTIC_CODE_RE = re.compile(r"^\d{5,6}$")
# Fractional-share residue below this is treated as a closed position.
QTY_EPSILON = 1e-9
# Account filter value that selects every account.
ALL_ACCOUNTS = "전체"


def _new_holding(key: str, tx: Transaction) -> Holding:
    return Holding(
        ticker=tx.ticker or key,
        name=tx.name or tx.ticker or "",
        currency=tx.currency,
        asset_class=tx.asset_class,
        fx_rate=tx.fx_rate or 1.0,
    )


def _apply(holding: Holding, tx: Transaction) -> None:
    holding.transactions.append(tx)
    holding.fees += tx.fee

    if tx.tx_type == TxType.BUY:
        holding.total_cost += tx.amount + tx.fee
        holding.qty += tx.qty
        holding.avg_cost = holding.total_cost / holding.qty if holding.qty > 0 else 0.0
    elif tx.tx_type == TxType.SELL:
        # Oversells are clamped; P&L still uses the full sold quantity.
        holding.realized_pnl += tx.amount - tx.fee - tx.tax - holding.avg_cost * tx.qty
        holding.qty -= tx.qty
        if holding.qty < QTY_EPSILON:
            holding.qty = 0.0
        holding.total_cost = holding.avg_cost * holding.qty
        if holding.qty == 0:
            holding.avg_cost = 0.0
            holding.total_cost = 0.0
        holding.last_sell_date = tx.date
    elif tx.tx_type == TxType.DIVIDEND:
        holding.dividends += tx.amount
    elif tx.tx_type == TxType.FEE:
        holding.total_cost += tx.amount
        if holding.qty > 0:
            holding.avg_cost = holding.total_cost / holding.qty

    holding.fx_rate = tx.fx_rate or holding.fx_rate


def build_holdings(transactions: Iterable[Transaction]) -> dict[str, Holding]:
    holdings: dict[str, Holding] = {}
    for tx in sorted(transactions, key=lambda item: item.date or ""):
        key = tx.holding_key
        if not key:
            continue
        holding = holdings.get(key)
        if holding is None:
            holding = holdings[key] = _new_holding(key, tx)
        _apply(holding, tx)
    return holdings


def list_accounts(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct account labels in first-seen order."""
    return list(dict.fromkeys(tx.account for tx in transactions if tx.account))


def filter_by_account(
    transactions: Iterable[Transaction], account: str | None
) -> list[Transaction]:
    if not account or account == ALL_ACCOUNTS:
        return list(transactions)
    return [tx for tx in transactions if tx.account == account]


def active_holdings(holdings: Mapping[str, Holding]) -> list[Holding]:
    return [h for h in holdings.values() if h.qty > 0]


def closed_holdings(holdings: Mapping[str, Holding]) -> list[Holding]:
    closed = [h for h in holdings.values() if h.qty == 0 and h.realized_pnl != 0]
    return sorted(closed, key=lambda h: h.last_sell_date or "", reverse=True)


def display_name(holding: Holding) -> str:
    if _DOMESTIC_CODE_RE.match(holding.ticker or ""):
        return holding.name
    return holding.ticker or holding.name


@dataclass(frozen=True)
class Excursion:
    """Best and worst trade price seen, relative to the current average cost."""

    max_price: float
    min_price: float
    mfe: float
    mae: float


def holding_excursions(holding: Holding) -> Excursion:
    prices = [tx.price for tx in holding.transactions if tx.price > 0]
    max_price = max(prices) if prices else holding.avg_cost
    min_price = min(prices) if prices else holding.avg_cost
    if holding.avg_cost > 0:
        mfe = (max_price - holding.avg_cost) / holding.avg_cost
        mae = (min_price - holding.avg_cost) / holding.avg_cost
    else:
        mfe = mae = 0.0
    return Excursion(max_price=max_price, min_price=min_price, mfe=mfe, mae=mae)


@dataclass(frozen=True)
class HoldingsSummary:
    total_cost: float
    market_value: float
    unrealized_pnl: float
    realized_pnl: float
    dividends: float

    @property
    def unrealized_pct(self) -> float:
        return self.unrealized_pnl / self.total_cost if self.total_cost > 0 else 0.0


def summarize_holdings(
    holdings: Mapping[str, Holding], prices: Mapping[str, float] | None = None
) -> HoldingsSummary:
    """Portfolio totals; open positions without a price are marked at average cost."""
    quotes = prices or {}
    open_positions = active_holdings(holdings)
    total_cost = sum(h.total_cost for h in open_positions)
    market_value = sum((quotes.get(h.ticker) or h.avg_cost) * h.qty for h in open_positions)
    return HoldingsSummary(
        total_cost=total_cost,
        market_value=market_value,
        unrealized_pnl=market_value - total_cost,
        realized_pnl=sum(h.realized_pnl for h in holdings.values()),
        dividends=sum(h.dividends for h in holdings.values()),
    )


def holdings_frame(holdings: Mapping[str, Holding]) -> pd.DataFrame:
    columns = [
        "key",
        "display_name",
        "ticker",
        "name",
        "asset_class",
        "currency",
        "qty",
        "avg_cost",
        "total_cost",
        "realized_pnl",
        "dividends",
        "fees",
        "last_sell_date",
        "transactions",
    ]
    records = [
        {
            "key": key,
            "display_name": display_name(h),
            "ticker": h.ticker,
            "name": h.name,
            "asset_class": ASSET_CLASS_LABELS.get(h.asset_class, h.asset_class.value),
            "currency": h.currency,
            "qty": h.qty,
            "avg_cost": round_money(h.avg_cost),
            "total_cost": round_money(h.total_cost),
            "realized_pnl": round_money(h.realized_pnl),
            "dividends": round_money(h.dividends),
            "fees": round_money(h.fees),
            "last_sell_date": h.last_sell_date,
            "transactions": len(h.transactions),
        }
        for key, h in holdings.items()
    ]
    return pd.DataFrame(records, columns=columns)
