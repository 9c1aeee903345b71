from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class TransactionOrm(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    venue: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    pair: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    total_fiat: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    fee_fiat: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    realized_pnl: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    tx_hash: Mapped[str | None] = mapped_column(String, nullable=True)


class TaxReportOrm(Base):
    __tablename__ = "tax_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    strategy: Mapped[str] = mapped_column(String, nullable=False)
    total_tax_due: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
