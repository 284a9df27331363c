from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from portfolio_ledger.db.models import AssetClass, Base, Transaction, TxType


@pytest.fixture
def db_session() -> Session:
    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_tx():
    def _make(
        tx_type: TxType,
        *,
        date: str | None = "2024-01-02",
        name: str = "삼성전자",
        ticker: str | None = "005930",
        qty: float = 0.0,
        price: float = 0.0,
        amount: float | None = None,
        fee: float = 0.0,
        tax: float = 0.0,
        ref_id: str = "",
        tx_id: int | None = None,
    ) -> Transaction:
        return Transaction(
            id=tx_id,
            date=date,
            name=name,
            ticker=ticker,
            tx_type=tx_type,
            tx_type_raw=tx_type.value,
            qty=qty,
            price=price,
            amount=qty * price if amount is None else amount,
            amount_krw=qty * price if amount is None else amount,
            fee=fee,
            tax=tax,
            ref_id=ref_id,
            account="테스트계좌",
            asset_class=AssetClass.KR_STOCK,
        )

    return _make


@pytest.fixture
def samsung_round_trip_rows() -> list[list[str]]:
    return [
        ["날짜", "종목명", "종목코드", "거래구분", "수량", "단가"],
        ["2023-01-05", "삼성전자", "005930", "매수", "10", "70000"],
        ["2023-06-10", "삼성전자", "005930", "매도", "10", "85000"],
    ]


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("PORTFOLIO_LEDGER_DATA_DIR", str(tmp_path / "data"))
