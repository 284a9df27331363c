"""Money helpers for deterministic rounding and display."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


CENT = Decimal("0.01")


def to_decimal(value: float | int | str | Decimal | None) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: float | int | str | Decimal | None) -> float:
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_won(value: float) -> str:
    """Compact KRW label: 억 above one hundred million, 만 otherwise."""
    if abs(value) >= 1e8:
        return f"{value / 1e8:.1f}억"
    return f"{round(value / 1e4)}만"


def format_percent(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value * 100:.2f}%"
