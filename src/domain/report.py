from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from .lots import OpenLotPosition
from .matcher import DisposalResult
from .strategies import CostBasisStrategy
from .transactions import Transaction, TransactionId

DEFAULT_TAX_RATE = Decimal("0.19")


class WarningKind(StrEnum):
    UNSUPPORTED_KIND = "UNSUPPORTED_KIND"
    UNPARSEABLE_ASSET = "UNPARSEABLE_ASSET"
    EMPTY_QUANTITY = "EMPTY_QUANTITY"
    OVERSELL = "OVERSELL"


class ReportWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    transaction_id: TransactionId
    timestamp: datetime
    message: str


class TaxReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int | None
    strategy: CostBasisStrategy
    tax_rate: Decimal
    spot_income: Decimal
    spot_cost: Decimal
    spot_taxable_base: Decimal
    derivative_income: Decimal
    derivative_cost: Decimal
    derivative_taxable_base: Decimal
    total_tax_due: Decimal
    transactions_processed: int
    ignored_transactions: int
    disposals: list[DisposalResult]
    open_lots: list[OpenLotPosition]
    warnings: list[ReportWarning]


@dataclass
class LedgerTotals:
    income: Decimal = Decimal(0)
    cost: Decimal = Decimal(0)

    @property
    def taxable_base(self) -> Decimal:
        return max(Decimal(0), self.income - self.cost)


class TaxAggregator:
    """Running spot and derivative totals for one report."""

    def __init__(self, *, tax_rate: Decimal = DEFAULT_TAX_RATE) -> None:
        self.tax_rate = tax_rate
        self.spot = LedgerTotals()
        self.derivative = LedgerTotals()

    def add_disposal(self, disposal: DisposalResult) -> None:
        self.spot.income += disposal.proceeds
        # Fees are always a cost, whatever sign the venue reports them with.
        self.spot.cost += disposal.cost_basis + abs(disposal.fee)

    def add_derivative(self, transaction: Transaction) -> None:
        pnl = transaction.realized_pnl or Decimal(0)
        if pnl > 0:
            self.derivative.income += pnl
        else:
            self.derivative.cost += abs(pnl)
        # Same rule as spot fees.
        self.derivative.cost += abs(transaction.fee_fiat)

    @property
    def tax_due(self) -> Decimal:
        taxable = self.spot.taxable_base + self.derivative.taxable_base
        return (taxable * self.tax_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    def build_report(
        self,
        *,
        year: int | None,
        strategy: CostBasisStrategy,
        transactions_processed: int,
        ignored_transactions: int,
        disposals: list[DisposalResult],
        open_lots: list[OpenLotPosition],
        warnings: list[ReportWarning],
    ) -> TaxReport:
        return TaxReport(
            year=year,
            strategy=strategy,
            tax_rate=self.tax_rate,
            spot_income=self.spot.income,
            spot_cost=self.spot.cost,
            spot_taxable_base=self.spot.taxable_base,
            derivative_income=self.derivative.income,
            derivative_cost=self.derivative.cost,
            derivative_taxable_base=self.derivative.taxable_base,
            total_tax_due=self.tax_due,
            transactions_processed=transactions_processed,
            ignored_transactions=ignored_transactions,
            disposals=disposals,
            open_lots=open_lots,
            warnings=warnings,
        )
