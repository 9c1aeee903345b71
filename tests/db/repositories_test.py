from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from db.repositories import TaxReportRepository, TransactionRepository
from domain.engine import TaxEngine
from domain.strategies import CostBasisStrategy
from domain.transactions import Transaction, TransactionId, TransactionKind, Venue


def _sample_transaction(tx_id: str, timestamp: datetime, **overrides: object) -> Transaction:
    fields: dict[str, object] = {
        "id": TransactionId(tx_id),
        "venue": Venue.KRAKEN,
        "timestamp": timestamp,
        "kind": TransactionKind.SPOT_BUY,
        "pair": "BTC/EUR",
        "quantity": Decimal("0.1"),
        "price": Decimal("20000"),
        "total_fiat": Decimal("2000"),
        "fee_fiat": Decimal("1.25"),
    }
    fields.update(overrides)
    return Transaction.model_validate(fields)


@pytest.fixture()
def repo(test_session: Session) -> TransactionRepository:
    return TransactionRepository(test_session)


@pytest.fixture()
def report_repo(test_session: Session) -> TaxReportRepository:
    return TaxReportRepository(test_session)


def test_create_and_get_transaction(repo: TransactionRepository) -> None:
    tx = _sample_transaction(
        "ext-1",
        datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        kind=TransactionKind.FUTURES_PNL,
        realized_pnl=Decimal("-12.345678901234567890"),
        tx_hash="0xabc",
    )
    repo.create_many([tx])

    fetched = repo.get(tx.id)

    assert fetched == tx
    assert fetched is not None and fetched.realized_pnl == Decimal("-12.345678901234567890")
    assert fetched.timestamp.tzinfo is not None


def test_get_missing_transaction_returns_none(repo: TransactionRepository) -> None:
    assert repo.get(TransactionId("missing")) is None


def test_list_orders_by_timestamp(repo: TransactionRepository) -> None:
    later = _sample_transaction("ext-2", datetime(2024, 1, 2, tzinfo=timezone.utc))
    earlier = _sample_transaction("ext-1", datetime(2024, 1, 1, tzinfo=timezone.utc))
    repo.create_many([later, earlier])

    assert [tx.id for tx in repo.list()] == ["ext-1", "ext-2"]


def test_create_many_skips_known_ids(repo: TransactionRepository) -> None:
    tx = _sample_transaction("ext-1", datetime(2024, 1, 1, tzinfo=timezone.utc))
    repo.create_many([tx])
    second = _sample_transaction("ext-2", datetime(2024, 1, 2, tzinfo=timezone.utc))

    inserted = repo.create_many([tx, second, second])

    assert inserted == [second]
    assert [stored.id for stored in repo.list()] == ["ext-1", "ext-2"]


def test_create_many_with_empty_list(repo: TransactionRepository) -> None:
    assert repo.create_many([]) == []
    assert repo.list() == []


def test_report_round_trip(repo: TransactionRepository, report_repo: TaxReportRepository) -> None:
    transactions = [
        _sample_transaction("buy", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        _sample_transaction(
            "sell",
            datetime(2024, 2, 1, tzinfo=timezone.utc),
            kind=TransactionKind.SPOT_SELL,
            quantity=Decimal("0.05"),
            price=Decimal("30000"),
            total_fiat=Decimal("1500"),
        ),
    ]
    report = TaxEngine(strategy=CostBasisStrategy.LIFO).process(transactions)

    report_repo.create(report)

    assert report_repo.list() == [report]
    assert report_repo.latest() == report
    assert report_repo.latest(year=2024) == report
    assert report_repo.latest(year=2020) is None


def test_latest_returns_most_recent(report_repo: TaxReportRepository) -> None:
    engine = TaxEngine()
    first = engine.process([_sample_transaction("a", datetime(2023, 1, 1, tzinfo=timezone.utc))])
    second = engine.process([_sample_transaction("b", datetime(2024, 1, 1, tzinfo=timezone.utc))])
    report_repo.create(first)
    report_repo.create(second)

    assert report_repo.latest() == second
    assert report_repo.latest(year=2023) == first
