"""Statement rows to canonical transactions.

``process_raw_data`` is the single entry point: header detection, row
conversion, ticker backfill, twin-row dedupe and id assignment. It never
raises for data-quality problems; an unrecognizable table comes back as an
empty result with ``IngestStatus.UNRECOGNIZED_FORMAT``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from portfolio_ledger.config.settings import DEFAULT_ACCOUNT_LABEL, HEADER_SCAN_ROWS
from portfolio_ledger.db.models import TICKER_REQUIRED_TYPES, Transaction, UnmappedName
from portfolio_ledger.ingest.classifiers import detect_asset_class, is_bond_row, map_tx_type
from portfolio_ledger.ingest.csv_mapping import file_signature, find_header_row
from portfolio_ledger.ingest.dedupe import deduplicate_transactions
from portfolio_ledger.ingest.ticker_map import backfill_tickers
from portfolio_ledger.ingest.validators import (
    cell_text,
    normalize_ticker,
    parse_date,
    parse_number,
)
from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)


class IngestStatus(str, Enum):
    OK = "OK"
    UNRECOGNIZED_FORMAT = "UNRECOGNIZED_FORMAT"


@dataclass(frozen=True)
class IngestResult:
    transactions: list[Transaction]
    unmapped_names: list[UnmappedName]
    status: IngestStatus = IngestStatus.OK
    header_row: int = -1
    column_map: dict[str, int] = field(default_factory=dict)

    @property
    def recognized(self) -> bool:
        return self.status == IngestStatus.OK


def _is_blank_row(row: Sequence[Any] | None) -> bool:
    return not row or all(cell_text(cell) == "" for cell in row)


def rows_to_transactions(
    rows: Sequence[Sequence[Any]],
    column_map: Mapping[str, int],
    ticker_cache: Mapping[str, str],
    account_label: str,
) -> tuple[list[Transaction], list[UnmappedName]]:
    transactions: list[Transaction] = []
    unmapped: list[UnmappedName] = []
    unmapped_seen: set[str] = set()

    for row in rows:
        def get(field_name: str) -> Any:
            idx = column_map.get(field_name)
            if idx is None or idx >= len(row):
                return None
            return row[idx]

        date = parse_date(get("date"))
        name = cell_text(get("name"))
        tx_type_raw = cell_text(get("tx_type_raw"))
        if not date and not name and not tx_type_raw:
            continue
        if is_bond_row(name, tx_type_raw):
            continue
        tx_type = map_tx_type(tx_type_raw, cell_text(get("memo")))
        if tx_type is None:
            continue

        qty = parse_number(get("qty"))
        price = parse_number(get("price"))
        amount = parse_number(get("amount")) or qty * price
        fx_rate = parse_number(get("fx_rate")) or 1.0
        currency = cell_text(get("currency")).upper() or "KRW"
        if currency != "KRW":
            amount_krw = parse_number(get("amount_krw")) or amount * fx_rate
        else:
            amount_krw = amount

        ticker = normalize_ticker(get("ticker")) or ticker_cache.get(name) or None
        if ticker is None and name and tx_type in TICKER_REQUIRED_TYPES and name not in unmapped_seen:
            unmapped_seen.add(name)
            unmapped.append(UnmappedName(name=name))

        account = (account_label or "").strip() or cell_text(get("account")) or DEFAULT_ACCOUNT_LABEL

        transactions.append(
            Transaction(
                date=date,
                name=name,
                ticker=ticker,
                tx_type=tx_type,
                tx_type_raw=tx_type_raw,
                qty=qty,
                price=price,
                amount=amount,
                amount_krw=amount_krw,
                fee=parse_number(get("fee")),
                tax=parse_number(get("tax")),
                fx_rate=fx_rate,
                currency=currency,
                ref_id=cell_text(get("ref_id")),
                account=account,
                asset_class=detect_asset_class(name, ticker, currency),
            )
        )

    return transactions, unmapped


def epoch_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def assign_ids(transactions: Sequence[Transaction], seed: int | None = None) -> list[Transaction]:
    base = seed if seed is not None else epoch_millis()
    return [replace(tx, id=base + idx) for idx, tx in enumerate(transactions)]


def process_raw_data(
    raw_rows: Sequence[Sequence[Any]],
    ticker_cache: Mapping[str, str] | None,
    account_label: str,
    *,
    id_seed: int | None = None,
    max_header_scan: int = HEADER_SCAN_ROWS,
) -> IngestResult:
    cache = dict(ticker_cache or {})
    rows = list(raw_rows or [])

    header_row, column_map = find_header_row(rows, max_scan=max_header_scan)
    if header_row < 0:
        logger.warning("No recognizable header in the first %d rows", min(len(rows), max_header_scan))
        return IngestResult(
            transactions=[],
            unmapped_names=[],
            status=IngestStatus.UNRECOGNIZED_FORMAT,
        )

    logger.info(
        "Header row %d mapped %d fields (signature %s)",
        header_row,
        len(column_map),
        file_signature(rows[header_row])[:12],
    )
    data_rows = [list(row) for row in rows[header_row + 1 :] if not _is_blank_row(row)]

    provisional, unmapped = rows_to_transactions(data_rows, column_map, cache, account_label)
    filled = backfill_tickers(provisional, cache)
    deduped = deduplicate_transactions(filled)
    transactions = assign_ids(deduped, seed=id_seed)

    pending_names = {tx.name for tx in filled if tx.ticker is None}
    still_unmapped = [item for item in unmapped if item.name in pending_names]

    logger.info(
        "Converted %d data rows into %d transactions (%d merged, %d unmapped names)",
        len(data_rows),
        len(transactions),
        len(filled) - len(deduped),
        len(still_unmapped),
    )
    return IngestResult(
        transactions=transactions,
        unmapped_names=still_unmapped,
        status=IngestStatus.OK,
        header_row=header_row,
        column_map=dict(column_map),
    )
