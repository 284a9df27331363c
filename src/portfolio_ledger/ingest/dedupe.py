from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from portfolio_ledger.db.models import Transaction, TxType

AMOUNT_TOLERANCE = 1.0
TRADE_TYPES = frozenset({TxType.BUY, TxType.SELL})


def is_twin(a: Transaction, b: Transaction) -> bool:
    """Two rows describe the same event when date, name, amount and ref id agree."""
    return (
        a.date == b.date
        and a.name == b.name
        and abs(a.amount - b.amount) < AMOUNT_TOLERANCE
        and bool(a.ref_id)
        and bool(b.ref_id)
        and a.ref_id == b.ref_id
    )


def _merge_twins(first: Transaction, second: Transaction) -> Transaction:
    master, other = (first, second) if first.tx_type in TRADE_TYPES else (second, first)
    return replace(master, fee=master.fee + other.fee, tax=master.tax + other.tax)


def deduplicate_transactions(transactions: Sequence[Transaction]) -> list[Transaction]:
    used = [False] * len(transactions)
    merged: list[Transaction] = []
    for i, tx in enumerate(transactions):
        if used[i]:
            continue
        used[i] = True
        twin_index = next(
            (
                j
                for j in range(i + 1, len(transactions))
                if not used[j] and is_twin(tx, transactions[j])
            ),
            None,
        )
        if twin_index is None:
            merged.append(tx)
            continue
        used[twin_index] = True
        merged.append(_merge_twins(tx, transactions[twin_index]))
    return merged
