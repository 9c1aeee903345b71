from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.api import app
from api.dependencies import get_session
from db.models import Base


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(engine)

    def _session() -> Generator[Session, None, None]:
        with factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


def _payload(tx_id: str, kind: str, quantity: str, price: str, day: int) -> dict[str, str]:
    return {
        "id": tx_id,
        "venue": "BINANCE",
        "timestamp": datetime(2024, 1, day, tzinfo=timezone.utc).isoformat(),
        "kind": kind,
        "pair": "BTC/USDT",
        "quantity": quantity,
        "price": price,
        "total_fiat": str(Decimal(quantity) * Decimal(price)),
    }


SCENARIO = [
    _payload("buy-1", "SPOT_BUY", "1", "10000", 1),
    _payload("buy-2", "SPOT_BUY", "1", "20000", 2),
    _payload("sell-1", "SPOT_SELL", "1", "25000", 3),
]


def test_transactions_round_trip(client: TestClient) -> None:
    response = client.post("/transactions", json=SCENARIO)
    assert response.status_code == 201

    listed = client.get("/transactions")
    assert listed.status_code == 200
    assert [tx["id"] for tx in listed.json()] == ["buy-1", "buy-2", "sell-1"]


def test_invalid_transaction_is_rejected(client: TestClient) -> None:
    bad = dict(SCENARIO[0], quantity="-1")

    response = client.post("/transactions", json=[bad])

    assert response.status_code == 422


def test_create_report_uses_requested_strategy(client: TestClient) -> None:
    client.post("/transactions", json=SCENARIO)

    fifo = client.post("/reports")
    hifo = client.post("/reports", params={"strategy": "HIFO"})

    assert fifo.status_code == 201
    assert Decimal(fifo.json()["total_tax_due"]) == Decimal("2850")
    assert hifo.json()["strategy"] == "HIFO"
    assert Decimal(hifo.json()["total_tax_due"]) == Decimal("950")

    stored = client.get("/reports").json()
    assert [report["strategy"] for report in stored] == ["FIFO", "HIFO"]


def test_reserved_strategy_is_unprocessable(client: TestClient) -> None:
    response = client.post("/reports", params={"strategy": "AVCO"})

    assert response.status_code == 422
    assert "AVCO" in response.json()["detail"]


def test_oversell_is_a_conflict(client: TestClient) -> None:
    client.post("/transactions", json=[SCENARIO[0], _payload("sell-2", "SPOT_SELL", "2", "15000", 5)])

    response = client.post("/reports")

    assert response.status_code == 409
    assert "sell-2" in response.json()["detail"]


def test_snapshot_endpoint(client: TestClient) -> None:
    client.post("/transactions", json=SCENARIO)

    before_sale = client.get("/snapshots", params={"as_of": "2024-01-02"})
    after_sale = client.get("/snapshots", params={"as_of": "2024-01-03"})

    assert before_sale.status_code == 200
    assert [Decimal(pos["quantity_remaining"]) for pos in before_sale.json()["holdings"]["BTC"]] == [
        Decimal("1"),
        Decimal("1"),
    ]
    assert [pos["lot_id"] for pos in after_sale.json()["holdings"]["BTC"]] == ["buy-2"]
    assert Decimal(after_sale.json()["realized_gain"]) == Decimal("15000")


def test_posting_known_transactions_returns_only_new_ones(client: TestClient) -> None:
    client.post("/transactions", json=SCENARIO[:2])

    response = client.post("/transactions", json=SCENARIO)

    assert response.status_code == 201
    assert [tx["id"] for tx in response.json()] == ["sell-1"]
