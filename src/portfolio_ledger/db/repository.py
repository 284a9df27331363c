"""Key-namespaced object store and typed helpers for the ledger collections."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from portfolio_ledger.db.models import CollectionItem, Portfolio, Transaction

TRANSACTIONS = "transactions"
TICKER_MAP = "ticker_map"
PORTFOLIOS = "portfolios"

COLLECTION_KEYS: dict[str, str] = {
    TRANSACTIONS: "id",
    TICKER_MAP: "name",
    PORTFOLIOS: "id",
}


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class CollectionStore:
    """fetch-all / upsert-all / delete-by-key / clear-all over named collections."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @staticmethod
    def _key_field(collection: str) -> str:
        try:
            return COLLECTION_KEYS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        self._key_field(collection)
        stmt = (
            select(CollectionItem.payload)
            .where(CollectionItem.collection == collection)
            .order_by(CollectionItem.id)
        )
        return [dict(payload) for payload in self.session.scalars(stmt).all()]

    def put_all(self, collection: str, items: Iterable[Mapping[str, Any]]) -> int:
        key_field = self._key_field(collection)
        written = 0
        for item in items:
            key = item.get(key_field)
            if key is None or str(key) == "":
                raise ValueError(f"Item in '{collection}' is missing key field '{key_field}'.")
            item_key = str(key)
            existing = self.session.scalar(
                select(CollectionItem).where(
                    CollectionItem.collection == collection,
                    CollectionItem.item_key == item_key,
                )
            )
            if existing is None:
                self.session.add(
                    CollectionItem(collection=collection, item_key=item_key, payload=dict(item))
                )
            else:
                existing.payload = dict(item)
            written += 1
        self.session.flush()
        return written

    def delete(self, collection: str, key: str | int) -> int:
        self._key_field(collection)
        result = self.session.execute(
            delete(CollectionItem).where(
                CollectionItem.collection == collection,
                CollectionItem.item_key == str(key),
            )
        )
        return result.rowcount

    def clear(self, collection: str) -> None:
        self._key_field(collection)
        self.session.execute(delete(CollectionItem).where(CollectionItem.collection == collection))


def load_transactions(session: Session) -> list[Transaction]:
    return [Transaction.from_record(r) for r in CollectionStore(session).get_all(TRANSACTIONS)]


def max_transaction_id(session: Session) -> int | None:
    ids = [tx.id for tx in load_transactions(session) if tx.id is not None]
    return max(ids) if ids else None


def save_transactions(session: Session, transactions: Iterable[Transaction]) -> int:
    return CollectionStore(session).put_all(TRANSACTIONS, (tx.to_record() for tx in transactions))


def replace_transactions(session: Session, transactions: Iterable[Transaction]) -> int:
    store = CollectionStore(session)
    store.clear(TRANSACTIONS)
    return store.put_all(TRANSACTIONS, (tx.to_record() for tx in transactions))


def load_ticker_map(session: Session) -> dict[str, str]:
    return {
        str(r["name"]): str(r.get("ticker") or "")
        for r in CollectionStore(session).get_all(TICKER_MAP)
        if r.get("ticker")
    }


def save_ticker_map(session: Session, ticker_map: Mapping[str, str]) -> int:
    return CollectionStore(session).put_all(
        TICKER_MAP, ({"name": name, "ticker": ticker} for name, ticker in ticker_map.items())
    )


def load_portfolios(session: Session) -> list[Portfolio]:
    return [Portfolio.from_record(r) for r in CollectionStore(session).get_all(PORTFOLIOS)]


def save_portfolio(session: Session, portfolio: Portfolio) -> None:
    CollectionStore(session).put_all(PORTFOLIOS, [portfolio.to_record()])
