from __future__ import annotations

import pytest

from portfolio_ledger.db.models import AssetClass, TxType
from portfolio_ledger.ingest.classifiers import detect_asset_class, is_bond_row, map_tx_type


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("매수", TxType.BUY),
        ("장내 매수", TxType.BUY),
        ("주식매수입고", TxType.BUY),
        ("교체매매매수", TxType.BUY),
        ("BUY", TxType.BUY),
        ("매도", TxType.SELL),
        ("주식매도출고", TxType.SELL),
        ("Sell", TxType.SELL),
        ("현금입금", TxType.DEPOSIT),
        ("이체출금", TxType.WITHDRAWAL),
        ("배당금입금", TxType.DIVIDEND),
        ("배당세", TxType.TAX),
        ("제세금", TxType.TAX),
        ("이자입금", TxType.INTEREST),
        ("예탁금이용료", TxType.INTEREST),
        ("보관수수료", TxType.FEE),
        ("ADR 수수료", TxType.FEE),
        ("액면병합", TxType.MERGER_SPLIT),
    ],
)
def test_map_tx_type_matches_statement_jargon(label, expected):
    assert map_tx_type(label) == expected


def test_longer_alias_wins_over_generic_one():
    assert map_tx_type("주식매수출금") is None
    assert map_tx_type("주식매도입금") is None
    assert map_tx_type("채권매수출금") is None


def test_generic_trade_label_uses_memo():
    assert map_tx_type("매매", memo="장내 매도") == TxType.SELL
    assert map_tx_type("매매", memo="장내매수") == TxType.BUY
    assert map_tx_type("매매") == TxType.BUY


def test_unknown_or_empty_label_defaults_to_deposit():
    assert map_tx_type("") == TxType.DEPOSIT
    assert map_tx_type(None) == TxType.DEPOSIT
    assert map_tx_type("대체") == TxType.DEPOSIT


def test_is_bond_row_checks_name_and_label():
    assert is_bond_row("국고채권 03250-2703", "매수")
    assert is_bond_row("삼성전자", "채권만기상환출고")
    assert not is_bond_row("삼성전자", "매수")


@pytest.mark.parametrize(
    ("name", "ticker", "currency", "expected"),
    [
        ("KRX금현물", None, "KRW", AssetClass.GOLD),
        ("금 현물 99.99_1Kg", None, "KRW", AssetClass.GOLD),
        ("국고채권 03250-2703", None, "KRW", AssetClass.KR_BOND),
        ("SPDR S&P 500 ETF TRUST", "SPY", "USD", AssetClass.US_ETF),
        ("Invesco QQQ Trust", "QQQ", "USD", AssetClass.US_ETF),
        ("Global X Uranium Fund", "URA", "USD", AssetClass.US_ETF),
        ("APPLE INC", "AAPL", "USD", AssetClass.US_STOCK),
        ("테슬라", None, "USD", AssetClass.US_STOCK),
        ("KODEX 200", "069500", "KRW", AssetClass.KR_ETF),
        ("TIGER 미국S&P500", "360750", "KRW", AssetClass.KR_ETF),
        ("삼성전자", "005930", "KRW", AssetClass.KR_STOCK),
        ("삼성전자", "005930", None, AssetClass.KR_STOCK),
        ("", None, "", AssetClass.KR_STOCK),
    ],
)
def test_detect_asset_class(name, ticker, currency, expected):
    assert detect_asset_class(name, ticker, currency) == expected


def test_gold_marker_takes_priority_over_foreign_currency():
    assert detect_asset_class("BULLION VAULT", "BV", "USD") == AssetClass.GOLD


@pytest.mark.parametrize(
    "name",
    ["TIGER 미국채10년선물", "KODEX 국고채3년", "KODEX 종합채권(AA-이상)액티브", "ACE 미국30년국채액티브"],
)
def test_listed_bond_funds_are_kept_as_domestic_etfs(name):
    assert not is_bond_row(name, "매수")
    assert detect_asset_class(name, None, "KRW") == AssetClass.KR_ETF
