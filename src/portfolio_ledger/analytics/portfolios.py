"""Per-portfolio performance and rebalance plans over current holdings.

Target weights are stored as percentages (``{"SCHD": 60.0}``). Positions
without a caller-supplied price are marked at their average cost.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone

from portfolio_ledger.analytics.holdings import active_holdings
from portfolio_ledger.db.models import Holding, Portfolio, TxType

DAYS_PER_YEAR = 365.25
# Floor for the value ratio so a wiped-out portfolio still yields a finite CAGR.
_MIN_GROWTH_RATIO = 0.0001


@dataclass(frozen=True)
class RebalanceRow:
    ticker: str
    name: str
    price: float
    current_weight: float
    target_weight: float
    diff: float
    diff_qty: int

    @property
    def action(self) -> TxType:
        return TxType.BUY if self.diff > 0 else TxType.SELL


@dataclass(frozen=True)
class PortfolioStats:
    portfolio: Portfolio
    holdings: list[Holding]
    total_cost: float
    market_value: float
    pnl: float
    pnl_pct: float
    cagr: float
    rebalance: list[RebalanceRow] | None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mark_price(holding: Holding, prices: Mapping[str, float]) -> float:
    return prices.get(holding.ticker) or holding.avg_cost


def _first_trade_date(holdings: Iterable[Holding]) -> date | None:
    dates = sorted(tx.date for h in holdings for tx in h.transactions if tx.date)
    if not dates:
        return None
    return date.fromisoformat(dates[0])


def _years_between(start: date | None, end: date) -> float:
    if start is None:
        return 1.0
    return (end - start).days / DAYS_PER_YEAR


def rebalance_plan(
    holdings: Iterable[Holding],
    target_weights: Mapping[str, float],
    prices: Mapping[str, float],
    market_value: float,
) -> list[RebalanceRow]:
    rows: list[RebalanceRow] = []
    for holding in holdings:
        price = _mark_price(holding, prices)
        current_value = holding.qty * price
        target_weight = float(target_weights.get(holding.ticker) or 0.0)
        diff = market_value * target_weight / 100 - current_value
        rows.append(
            RebalanceRow(
                ticker=holding.ticker,
                name=holding.name,
                price=price,
                current_weight=current_value / market_value * 100 if market_value > 0 else 0.0,
                target_weight=target_weight,
                diff=diff,
                diff_qty=_round_half_up(diff / price) if price > 0 else 0,
            )
        )
    return rows


def portfolio_stats(
    portfolio: Portfolio,
    holdings: Mapping[str, Holding],
    prices: Mapping[str, float] | None = None,
    as_of: date | None = None,
) -> PortfolioStats:
    """Cost, value, P&L and CAGR of the open positions a portfolio groups.

    CAGR runs from the earliest trade of those positions to ``as_of`` (today in
    UTC by default). A portfolio without target weights has no rebalance plan.
    """
    quotes = prices or {}
    today = as_of or datetime.now(timezone.utc).date()
    members = set(portfolio.tickers)
    positions = [h for h in active_holdings(holdings) if h.ticker in members]

    total_cost = sum(h.total_cost for h in positions)
    market_value = sum(_mark_price(h, quotes) * h.qty for h in positions)
    pnl = market_value - total_cost

    years = _years_between(_first_trade_date(positions), today)
    if total_cost > 0 and years > 0:
        ratio = max(_MIN_GROWTH_RATIO, market_value / total_cost)
        cagr = ratio ** (1 / years) - 1
    else:
        cagr = 0.0

    rebalance = (
        rebalance_plan(positions, portfolio.target_weights, quotes, market_value)
        if portfolio.target_weights
        else None
    )
    return PortfolioStats(
        portfolio=portfolio,
        holdings=positions,
        total_cost=total_cost,
        market_value=market_value,
        pnl=pnl,
        pnl_pct=pnl / total_cost if total_cost > 0 else 0.0,
        cagr=cagr,
        rebalance=rebalance,
    )


def all_portfolio_stats(
    portfolios: Iterable[Portfolio],
    holdings: Mapping[str, Holding],
    prices: Mapping[str, float] | None = None,
    as_of: date | None = None,
) -> list[PortfolioStats]:
    stats = [portfolio_stats(p, holdings, prices, as_of) for p in portfolios]
    return sorted(stats, key=lambda s: s.pnl_pct, reverse=True)
