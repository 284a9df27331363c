from __future__ import annotations

import math
from datetime import date, datetime

import pandas as pd
import pytest

from portfolio_ledger.ingest.validators import (
    cell_text,
    normalize_header,
    normalize_ticker,
    parse_date,
    parse_number,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("₩1,234", 1234.0),
        ("$28.57", 28.57),
        ("₩76,121", 76121.0),
        ('"1,000"', 1000.0),
        (" 12 345 ", 12345.0),
        ("(1,500)", -1500.0),
        ("-", 0.0),
        ("nan", 0.0),
        (float("nan"), 0.0),
        (42, 42.0),
        (3.5, 3.5),
    ],
)
def test_parse_number_is_defensive(raw, expected):
    result = parse_number(raw)
    assert math.isfinite(result)
    assert result == expected


@pytest.mark.parametrize("raw", ["2022/03/08", "2022-03-08", "20220308", "2022.03.08", "2022.3.8", "2022-03-08 10:30:00"])
def test_parse_date_accepts_common_statement_formats(raw):
    assert parse_date(raw) == "2022-03-08"


@pytest.mark.parametrize("raw", [None, "", "not a date", "2022-13-40", "1234"])
def test_parse_date_returns_none_for_unparseable_values(raw):
    assert parse_date(raw) is None


def test_parse_date_handles_spreadsheet_cell_types():
    assert parse_date(pd.Timestamp("2024-02-29 15:00")) == "2024-02-29"
    assert parse_date(datetime(2023, 1, 5, 9, 0)) == "2023-01-05"
    assert parse_date(date(2023, 12, 1)) == "2023-12-01"
    assert parse_date(pd.NaT) is None
    assert parse_date(20230105.0) == "2023-01-05"


def test_normalize_header_strips_case_and_whitespace():
    assert normalize_header("  거래 일자 ") == "거래일자"
    assert normalize_header("Trade Date") == "tradedate"
    assert normalize_header(None) == ""


def test_normalize_ticker_restores_domestic_leading_zeros():
    assert normalize_ticker(5930) == "005930"
    assert normalize_ticker(5930.0) == "005930"
    assert normalize_ticker("5930.0") == "005930"
    assert normalize_ticker(" aapl ") == "AAPL"
    assert normalize_ticker(None) == ""


def test_cell_text_drops_integral_float_suffix():
    assert cell_text(10.0) == "10"
    assert cell_text(10.5) == "10.5"
    assert cell_text(float("nan")) == ""
    assert cell_text("  삼성전자 ") == "삼성전자"
