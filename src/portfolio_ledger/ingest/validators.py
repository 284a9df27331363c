from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

_NUMBER_STRIP_RE = re.compile(r"[₩$,\"'\s원]")
_DATE_SEPARATOR_RE = re.compile(r"[./\s]+")
_DATE_RE = re.compile(r"(\d{4})-?(\d{1,2})-?(\d{1,2})")
_COMPACT_DATE_RE = re.compile(r"(\d{4})(\d{2})(\d{2})")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def cell_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_number(value: Any) -> float:
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        parsed = float(value)
        return parsed if math.isfinite(parsed) else 0.0

    text = _NUMBER_STRIP_RE.sub("", str(value))
    if not text:
        return 0.0
    if text.startswith("(") and text.endswith(")"):
        text = f"-{text[1:-1]}"
    try:
        parsed = float(text)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_date(value: Any) -> str | None:
    if _is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")

    text = _DATE_SEPARATOR_RE.sub("-", cell_text(value))
    if not text:
        return None
    match = _DATE_RE.search(text)
    if match and ("-" in match.group(0) or len(match.group(0)) == 8):
        year, month, day = match.groups()
    else:
        compact = _COMPACT_DATE_RE.search(text)
        if not compact:
            return None
        year, month, day = compact.groups()
    if not (1 <= int(month) <= 12 and 1 <= int(day) <= 31):
        return None
    return f"{year}-{int(month):02d}-{int(day):02d}"


def normalize_header(value: Any) -> str:
    return "".join(cell_text(value).lower().split())


def normalize_ticker(value: Any) -> str:
    text = cell_text(value).upper()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    if text.isdigit() and len(text) < 6:
        text = text.zfill(6)
    return text
