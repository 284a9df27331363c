from __future__ import annotations

import pytest

from portfolio_ledger.db.models import TxType, UnmappedName
from portfolio_ledger.ingest.ticker_map import (
    apply_ticker_mapping,
    backfill_tickers,
    drop_unmapped,
    lookup_ticker,
    merge_unmapped,
    update_ticker_map,
)


def test_cache_takes_precedence_over_fallback_table():
    assert lookup_ticker("삼성전자", {}) == "005930"
    assert lookup_ticker("삼성전자", {"삼성전자": "005935"}) == "005935"
    assert lookup_ticker("모르는회사", {}) is None
    assert lookup_ticker("", {"": "X"}) is None


def test_backfill_only_touches_rows_without_ticker(make_tx):
    known = make_tx(TxType.BUY, name="애플", ticker="APPL_OLD")
    missing = make_tx(TxType.BUY, name="애플", ticker=None)
    unknown = make_tx(TxType.BUY, name="모르는회사", ticker=None)

    filled = backfill_tickers([known, missing, unknown], {})

    assert filled[0] is known
    assert filled[1].ticker == "AAPL"
    assert filled[2] is unknown
    assert missing.ticker is None


def test_update_ticker_map_returns_new_normalized_mapping():
    cache = {"A": "1"}
    updated = update_ticker_map(cache, "  삼성전자우 ", "5935")

    assert updated == {"A": "1", "삼성전자우": "005935"}
    assert cache == {"A": "1"}
    assert update_ticker_map({}, "Apple", "aapl") == {"Apple": "AAPL"}


@pytest.mark.parametrize("name,ticker", [("", "AAPL"), ("  ", "AAPL"), ("애플", ""), ("애플", "  ")])
def test_update_ticker_map_rejects_blank_input(name, ticker):
    with pytest.raises(ValueError):
        update_ticker_map({}, name, ticker)


def test_apply_mapping_leaves_resolved_rows_alone(make_tx):
    txs = [
        make_tx(TxType.BUY, name="비상장", ticker=None),
        make_tx(TxType.BUY, name="비상장", ticker="OLD"),
        make_tx(TxType.BUY, name="다른회사", ticker=None),
    ]
    updated = apply_ticker_mapping(txs, "비상장", "NEW")

    assert [tx.ticker for tx in updated] == ["NEW", "OLD", None]
    assert updated[1] is txs[1]


def test_unmapped_list_merge_and_drop():
    merged = merge_unmapped(
        [UnmappedName("가"), UnmappedName("나")],
        [UnmappedName("나"), UnmappedName("다")],
    )
    assert [item.name for item in merged] == ["가", "나", "다"]
    assert [item.name for item in drop_unmapped(merged, "나")] == ["가", "다"]
