from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from db import models
from domain.report import TaxReport
from domain.transactions import Transaction, TransactionId, TransactionKind, Venue


class TransactionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, transactions: list[Transaction]) -> list[Transaction]:
        """Insert transactions, skipping ids that are already stored.

        Returns only the transactions that were inserted; repeated ids within
        ``transactions`` keep their first occurrence.
        """
        if not transactions:
            return []

        known = select(models.TransactionOrm.id).where(models.TransactionOrm.id.in_([tx.id for tx in transactions]))
        seen = set(self._session.scalars(known))
        fresh: list[Transaction] = []
        for tx in transactions:
            if tx.id in seen:
                continue
            seen.add(tx.id)
            fresh.append(tx)
        if not fresh:
            return []

        records = [
            {
                "id": tx.id,
                "venue": tx.venue.value,
                "timestamp": tx.timestamp,
                "kind": tx.kind.value,
                "pair": tx.pair,
                "quantity": tx.quantity,
                "price": tx.price,
                "total_fiat": tx.total_fiat,
                "fee_fiat": tx.fee_fiat,
                "realized_pnl": tx.realized_pnl,
                "tx_hash": tx.tx_hash,
            }
            for tx in fresh
        ]
        stmt = insert(models.TransactionOrm).values(records)
        stmt = stmt.on_conflict_do_nothing(index_elements=["id"])
        self._session.execute(stmt)
        self._session.commit()
        return fresh

    def get(self, transaction_id: TransactionId) -> Transaction | None:
        orm_tx = self._session.get(models.TransactionOrm, transaction_id)
        if orm_tx is None:
            return None
        return self._to_domain(orm_tx)

    def list(self) -> list[Transaction]:
        stmt = select(models.TransactionOrm).order_by(models.TransactionOrm.timestamp.asc())
        return [self._to_domain(orm_tx) for orm_tx in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(orm_tx: models.TransactionOrm) -> Transaction:
        timestamp = orm_tx.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        return Transaction(
            id=TransactionId(orm_tx.id),
            venue=Venue(orm_tx.venue),
            timestamp=timestamp,
            kind=TransactionKind(orm_tx.kind),
            pair=orm_tx.pair,
            quantity=orm_tx.quantity,
            price=orm_tx.price,
            total_fiat=orm_tx.total_fiat,
            fee_fiat=orm_tx.fee_fiat,
            realized_pnl=orm_tx.realized_pnl,
            tx_hash=orm_tx.tx_hash,
        )


class TaxReportRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, report: TaxReport, *, created_at: datetime | None = None) -> TaxReport:
        orm_report = models.TaxReportOrm(
            created_at=created_at or datetime.now(timezone.utc),
            year=report.year,
            strategy=report.strategy.value,
            total_tax_due=report.total_tax_due,
            payload=report.model_dump_json(),
        )
        self._session.add(orm_report)
        self._session.commit()
        return report

    def list(self) -> list[TaxReport]:
        stmt = select(models.TaxReportOrm).order_by(models.TaxReportOrm.id.asc())
        return [TaxReport.model_validate_json(orm.payload) for orm in self._session.scalars(stmt)]

    def latest(self, *, year: int | None = None) -> TaxReport | None:
        stmt = select(models.TaxReportOrm)
        if year is not None:
            stmt = stmt.where(models.TaxReportOrm.year == year)
        stmt = stmt.order_by(models.TaxReportOrm.id.desc()).limit(1)
        orm_report = self._session.scalars(stmt).first()
        if orm_report is None:
            return None
        return TaxReport.model_validate_json(orm_report.payload)
