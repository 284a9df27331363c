from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class TxType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    DIVIDEND = "DIVIDEND"
    TAX = "TAX"
    FEE = "FEE"
    MERGER_SPLIT = "MERGER_SPLIT"
    INTEREST = "INTEREST"


class AssetClass(str, Enum):
    KR_STOCK = "KR_STOCK"
    KR_ETF = "KR_ETF"
    US_STOCK = "US_STOCK"
    US_ETF = "US_ETF"
    KR_BOND = "KR_BOND"
    GOLD = "GOLD"
    PENSION = "PENSION"
    CASH = "CASH"


ASSET_CLASS_LABELS: dict[AssetClass, str] = {
    AssetClass.KR_STOCK: "국내주식",
    AssetClass.KR_ETF: "국내ETF",
    AssetClass.US_STOCK: "해외주식",
    AssetClass.US_ETF: "해외ETF",
    AssetClass.KR_BOND: "채권",
    AssetClass.GOLD: "금현물",
    AssetClass.PENSION: "연금",
    AssetClass.CASH: "현금",
}

# Types that need a ticker before they can be tracked per instrument.
TICKER_REQUIRED_TYPES = frozenset({TxType.BUY, TxType.SELL, TxType.DIVIDEND})


def _float(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Transaction:
    date: str | None
    name: str
    ticker: str | None
    tx_type: TxType
    tx_type_raw: str = ""
    qty: float = 0.0
    price: float = 0.0
    amount: float = 0.0
    amount_krw: float = 0.0
    fee: float = 0.0
    tax: float = 0.0
    fx_rate: float = 1.0
    currency: str = "KRW"
    ref_id: str = ""
    account: str = ""
    asset_class: AssetClass = AssetClass.KR_STOCK
    id: int | None = None

    @property
    def holding_key(self) -> str:
        return self.ticker or self.name

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "ticker": self.ticker,
            "txType": self.tx_type.value,
            "txTypeRaw": self.tx_type_raw,
            "qty": self.qty,
            "price": self.price,
            "amount": self.amount,
            "amountKRW": self.amount_krw,
            "fee": self.fee,
            "tax": self.tax,
            "fxRate": self.fx_rate,
            "currency": self.currency,
            "refId": self.ref_id,
            "account": self.account,
            "assetClass": self.asset_class.value,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Transaction:
        raw_id = record.get("id")
        return cls(
            id=int(raw_id) if raw_id is not None else None,
            date=record.get("date") or None,
            name=str(record.get("name") or ""),
            ticker=record.get("ticker") or None,
            tx_type=TxType(record.get("txType", TxType.DEPOSIT.value)),
            tx_type_raw=str(record.get("txTypeRaw") or ""),
            qty=_float(record.get("qty")),
            price=_float(record.get("price")),
            amount=_float(record.get("amount")),
            amount_krw=_float(record.get("amountKRW")),
            fee=_float(record.get("fee")),
            tax=_float(record.get("tax")),
            fx_rate=_float(record.get("fxRate")) or 1.0,
            currency=str(record.get("currency") or "KRW"),
            ref_id=str(record.get("refId") or ""),
            account=str(record.get("account") or ""),
            asset_class=AssetClass(record.get("assetClass", AssetClass.KR_STOCK.value)),
        )


@dataclass(frozen=True)
class UnmappedName:
    name: str
    ticker: str = ""


@dataclass(slots=True)
class Holding:
    ticker: str
    name: str
    currency: str
    asset_class: AssetClass
    qty: float = 0.0
    avg_cost: float = 0.0
    total_cost: float = 0.0
    realized_pnl: float = 0.0
    dividends: float = 0.0
    fees: float = 0.0
    fx_rate: float = 1.0
    transactions: list[Transaction] = field(default_factory=list)
    last_sell_date: str | None = None


@dataclass(frozen=True)
class Portfolio:
    id: str
    name: str
    tickers: tuple[str, ...] = ()
    target_weights: dict[str, float] = field(default_factory=dict)
    created_at: str = ""

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tickers": list(self.tickers),
            "targetWeights": dict(self.target_weights),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Portfolio:
        weights = record.get("targetWeights") or {}
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            tickers=tuple(str(t) for t in record.get("tickers") or ()),
            target_weights={str(k): _float(v) for k, v in weights.items()},
            created_at=str(record.get("createdAt") or ""),
        )


class CollectionItem(Base):
    __tablename__ = "collection_items"
    __table_args__ = (
        UniqueConstraint("collection", "item_key", name="uq_collection_items_key"),
        Index("ix_collection_items_collection_id", "collection", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_key: Mapped[str] = mapped_column(String(256), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )
