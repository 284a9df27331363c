from __future__ import annotations

from datetime import date

import pytest

from portfolio_ledger.analytics.holdings import build_holdings
from portfolio_ledger.analytics.portfolios import all_portfolio_stats, portfolio_stats
from portfolio_ledger.db.models import Portfolio, TxType


@pytest.fixture
def holdings(make_tx):
    return build_holdings(
        [
            make_tx(TxType.BUY, name="SCHWAB US DIVIDEND EQUITY ETF", ticker="SCHD", qty=10, price=100, date="2022-01-01"),
            make_tx(TxType.BUY, qty=5, price=200, date="2023-01-01"),
            make_tx(TxType.BUY, name="애플", ticker="AAPL", qty=1, price=500, date="2021-01-01"),
            make_tx(TxType.BUY, name="테슬라", ticker="TSLA", qty=1, price=300, date="2021-01-01"),
            make_tx(TxType.SELL, name="테슬라", ticker="TSLA", qty=1, price=400, date="2021-06-01"),
        ]
    )


def test_stats_cover_open_positions_in_the_portfolio(holdings):
    portfolio = Portfolio(id="p1", name="배당", tickers=("SCHD", "005930", "TSLA"))

    stats = portfolio_stats(portfolio, holdings, prices={"SCHD": 150}, as_of=date(2024, 1, 1))

    assert [h.ticker for h in stats.holdings] == ["SCHD", "005930"]
    assert stats.total_cost == 2000
    assert stats.market_value == 2500
    assert stats.pnl == 500
    assert stats.pnl_pct == pytest.approx(0.25)
    assert stats.cagr == pytest.approx(1.25 ** (365.25 / 730) - 1)
    assert stats.rebalance is None


def test_rebalance_plan_moves_toward_target_weights(holdings):
    portfolio = Portfolio(
        id="p1",
        name="배당",
        tickers=("SCHD", "005930"),
        target_weights={"SCHD": 50.0, "005930": 50.0},
    )

    stats = portfolio_stats(portfolio, holdings, prices={"SCHD": 150}, as_of=date(2024, 1, 1))
    schd, samsung = stats.rebalance

    assert schd.current_weight == pytest.approx(60)
    assert schd.diff == pytest.approx(-250)
    assert schd.diff_qty == -2
    assert schd.action == TxType.SELL

    assert samsung.price == 200
    assert samsung.current_weight == pytest.approx(40)
    assert samsung.target_weight == 50
    assert samsung.diff == pytest.approx(250)
    assert samsung.diff_qty == 1
    assert samsung.action == TxType.BUY


def test_portfolio_without_open_positions_is_flat(holdings):
    stats = portfolio_stats(Portfolio(id="p2", name="빈", tickers=("TSLA",)), holdings)

    assert stats.holdings == []
    assert stats.market_value == 0
    assert stats.pnl_pct == 0
    assert stats.cagr == 0


def test_all_stats_sorted_by_return(holdings):
    portfolios = [
        Portfolio(id="a", name="국내", tickers=("005930",)),
        Portfolio(id="b", name="미국", tickers=("AAPL",)),
    ]
    ranked = all_portfolio_stats(portfolios, holdings, prices={"AAPL": 600, "005930": 180})
    assert [s.portfolio.name for s in ranked] == ["미국", "국내"]
