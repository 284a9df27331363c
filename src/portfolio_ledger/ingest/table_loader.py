"""Turn pasted text or uploaded files into a plain 2-D table of cells."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

from portfolio_ledger.utils.logging import get_logger

logger = get_logger(__name__)

TEXT_ENCODINGS = ("utf-8-sig", "cp949", "euc-kr")
SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class TableLoadError(ValueError):
    pass


def sniff_delimiter(text: str) -> str | None:
    for line in text.splitlines():
        if not line.strip():
            continue
        if "\t" in line:
            return "\t"
        if "," in line:
            return ","
        return None
    return None


def parse_text_table(text: str, delimiter: str | None = None) -> list[list[str]]:
    if not text or not text.strip():
        return []
    sep = delimiter or sniff_delimiter(text)
    if sep is None:
        return []
    reader = csv.reader(io.StringIO(text.strip("\r\n")), delimiter=sep)
    return [row for row in reader if any(cell.strip() for cell in row)]


def decode_bytes(data: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise TableLoadError(f"Unable to decode statement text with {', '.join(TEXT_ENCODINGS)}")


def _frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    cleaned = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in cleaned.itertuples(index=False, name=None)]


def load_table(source: str | Path | BinaryIO, filename: str | None = None) -> list[list[Any]]:
    """Read a statement file into rows; the header row is left for the mapper to find."""
    label = filename or (str(source) if isinstance(source, (str, Path)) else getattr(source, "name", ""))
    suffix = Path(label).suffix.lower()

    if isinstance(source, (str, Path)):
        try:
            data = Path(source).read_bytes()
        except OSError as exc:
            raise TableLoadError(f"Unable to read statement file: {source}") from exc
    else:
        data = source.read()
        if isinstance(data, str):
            data = data.encode("utf-8")

    if suffix in SPREADSHEET_SUFFIXES:
        try:
            df = pd.read_excel(io.BytesIO(data), header=None, sheet_name=0, dtype=object)
        except Exception as exc:
            raise TableLoadError(f"Unable to read spreadsheet {label}: {exc}") from exc
        rows = _frame_to_rows(df)
    else:
        rows = parse_text_table(decode_bytes(data))

    logger.debug("Loaded %d raw rows from %s", len(rows), label or "<buffer>")
    return rows
