from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from .classifier import TransactionRoute, classify
from .lots import Lot, LotDelta, LotInventory
from .matcher import DisposalResult, match_disposal
from .report import DEFAULT_TAX_RATE, ReportWarning, TaxAggregator, TaxReport, WarningKind
from .snapshot import InventorySnapshot, reconstruct_snapshot
from .strategies import CostBasisStrategy, ensure_supported
from .transactions import AssetId, AssetSymbolError, Transaction, asset_from_pair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineRun:
    report: TaxReport
    deltas: list[LotDelta]
    # Every disposal in the history, including those outside the reporting year.
    disposals: list[DisposalResult]


class TaxEngine:
    """Match disposals to acquisition lots and aggregate the result into a tax report.

    Every call recomputes from the full transaction history it is given; the
    instance keeps nothing but its settings between calls.
    """

    def __init__(
        self,
        *,
        strategy: CostBasisStrategy = CostBasisStrategy.FIFO,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        reporting_year: int | None = None,
        allow_negative_inventory: bool = False,
    ) -> None:
        self.strategy = ensure_supported(CostBasisStrategy(strategy))
        self.tax_rate = tax_rate
        self.reporting_year = reporting_year
        self.allow_negative_inventory = allow_negative_inventory

    def process(self, transactions: Iterable[Transaction]) -> TaxReport:
        return self.run(transactions).report

    def snapshot_at(self, transactions: Iterable[Transaction], as_of: date | datetime) -> InventorySnapshot:
        run = self.run(transactions)
        return reconstruct_snapshot(run.deltas, run.disposals, as_of, warnings=run.report.warnings)

    def run(self, transactions: Iterable[Transaction]) -> EngineRun:
        """Caller may pass transactions in any order; ties on timestamp keep input order."""
        ordered = sorted(transactions, key=lambda tx: tx.timestamp)

        inventory = LotInventory()
        aggregator = TaxAggregator(tax_rate=self.tax_rate)
        disposals: list[DisposalResult] = []
        reported: list[DisposalResult] = []
        warnings: list[ReportWarning] = []
        ignored = 0

        for sequence, tx in enumerate(ordered):
            route = classify(tx)

            if route == TransactionRoute.TRANSFER:
                continue

            if route == TransactionRoute.UNSUPPORTED:
                ignored += 1
                self._warn(warnings, WarningKind.UNSUPPORTED_KIND, tx, f"No tax treatment defined for {tx.kind}")
                continue

            if route == TransactionRoute.DERIVATIVE:
                if self._in_reporting_period(tx):
                    aggregator.add_derivative(tx)
                continue

            asset = self._resolve_asset(tx, warnings)
            if asset is None:
                ignored += 1
                continue
            if tx.quantity == 0:
                ignored += 1
                self._warn(warnings, WarningKind.EMPTY_QUANTITY, tx, f"{tx.kind} of {asset} has zero quantity")
                continue

            if route == TransactionRoute.ACQUISITION:
                inventory.add_lot(
                    Lot(
                        id=tx.id,
                        asset=asset,
                        acquired_at=tx.timestamp,
                        quantity=tx.quantity,
                        # Deposits carry no purchase price of their own; the recorded price is used as is.
                        unit_cost=tx.price,
                        source_transaction_id=tx.id,
                        venue=tx.venue,
                        sequence=sequence,
                    )
                )
                continue

            disposal = match_disposal(
                inventory,
                tx,
                asset,
                self.strategy,
                allow_negative_inventory=self.allow_negative_inventory,
            )
            if disposal.provisional:
                self._warn(
                    warnings,
                    WarningKind.OVERSELL,
                    tx,
                    f"Sold {disposal.unmatched_quantity} {asset} more than held; booked at provisional zero cost",
                )
            disposals.append(disposal)
            if self._in_reporting_period(tx):
                reported.append(disposal)
                aggregator.add_disposal(disposal)

        report = aggregator.build_report(
            year=self._report_year(ordered),
            strategy=self.strategy,
            transactions_processed=len(ordered),
            ignored_transactions=ignored,
            disposals=reported,
            open_lots=inventory.open_lots(),
            warnings=warnings,
        )
        logger.info(
            "Processed %d transactions (%s): %d disposals, %d ignored, tax due %s",
            report.transactions_processed,
            report.strategy,
            len(report.disposals),
            report.ignored_transactions,
            report.total_tax_due,
        )
        return EngineRun(report=report, deltas=inventory.deltas, disposals=disposals)

    def _resolve_asset(self, tx: Transaction, warnings: list[ReportWarning]) -> AssetId | None:
        try:
            return asset_from_pair(tx.pair, transaction_id=tx.id)
        except AssetSymbolError as err:
            self._warn(warnings, WarningKind.UNPARSEABLE_ASSET, tx, str(err))
            return None

    def _in_reporting_period(self, tx: Transaction) -> bool:
        return self.reporting_year is None or tx.timestamp.year == self.reporting_year

    def _report_year(self, ordered: list[Transaction]) -> int | None:
        if self.reporting_year is not None:
            return self.reporting_year
        if not ordered:
            return None
        return ordered[-1].timestamp.year

    @staticmethod
    def _warn(warnings: list[ReportWarning], kind: WarningKind, tx: Transaction, message: str) -> None:
        logger.warning("%s transaction=%s: %s", kind, tx.id, message)
        warnings.append(ReportWarning(kind=kind, transaction_id=tx.id, timestamp=tx.timestamp, message=message))
