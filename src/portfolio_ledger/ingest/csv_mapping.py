from __future__ import annotations

from collections.abc import Sequence
from hashlib import sha256
from typing import Any

from portfolio_ledger.config.settings import HEADER_SCAN_ROWS
from portfolio_ledger.ingest.validators import normalize_header

# Aliases are stored in normalized form (lower-case, no whitespace).
COLUMN_ALIASES: dict[str, list[str]] = {
    "date": ["거래일", "거래일자", "체결일", "체결일자", "날짜", "일자", "매매일", "date", "tradedate"],
    "name": ["종목명", "종목", "상품명", "종목/상품명", "name", "security"],
    "ticker": ["종목코드", "단축코드", "티커", "ticker", "symbol"],
    "tx_type_raw": ["거래구분", "거래유형", "구분", "유형", "거래종류", "type", "transactiontype", "action"],
    "qty": ["수량", "거래수량", "체결수량", "qty", "quantity", "shares"],
    "price": ["단가", "거래단가", "체결단가", "price", "unitprice"],
    "amount": ["거래금액", "결제금액", "거래대금", "정산금액", "금액", "amount"],
    "amount_krw": ["원화금액", "원화환산", "원화환산금액", "원화거래금액", "amountkrw"],
    "fee": ["수수료", "fee", "fees", "commission"],
    "tax": ["세금", "제세금", "tax", "taxes"],
    "fx_rate": ["환율", "적용환율", "fxrate", "exchangerate"],
    "currency": ["통화", "통화코드", "currency", "ccy"],
    "ref_id": ["원번호", "주문번호", "원주문번호", "거래번호", "orderid", "orderno", "refid"],
    "account": ["계좌", "계좌명", "account"],
    "memo": ["적요", "적요명", "비고", "메모", "memo", "note", "description"],
}


def file_signature(columns: Sequence[Any]) -> str:
    canonical = "|".join(normalize_header(c) for c in columns)
    return sha256(canonical.encode("utf-8")).hexdigest()


def map_columns(headers: Sequence[Any]) -> dict[str, int]:
    normalized = [normalize_header(h) for h in headers]
    mapping: dict[str, int] = {}
    claimed: set[int] = set()

    for field, aliases in COLUMN_ALIASES.items():
        alias_set = set(aliases)
        for idx, header in enumerate(normalized):
            if idx in claimed or not header:
                continue
            if header in alias_set:
                mapping[field] = idx
                claimed.add(idx)
                break

    for field, aliases in COLUMN_ALIASES.items():
        if field in mapping:
            continue
        for idx, header in enumerate(normalized):
            if idx in claimed or not header:
                continue
            if any(alias in header or header in alias for alias in aliases):
                mapping[field] = idx
                claimed.add(idx)
                break

    return mapping


def find_header_row(
    rows: Sequence[Sequence[Any]], max_scan: int = HEADER_SCAN_ROWS
) -> tuple[int, dict[str, int]]:
    """Pick the row among the first ``max_scan`` that maps the most fields.

    Ties go to the earliest row. Returns ``(-1, {})`` when no candidate maps
    a single field.
    """
    best_index = -1
    best_mapping: dict[str, int] = {}
    for idx, row in enumerate(rows[:max_scan]):
        mapping = map_columns(list(row or []))
        if len(mapping) > len(best_mapping):
            best_index = idx
            best_mapping = mapping
    return best_index, best_mapping
