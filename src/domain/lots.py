from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator

from .strategies import CostBasisStrategy, order_lots
from .transactions import AssetId, TransactionId, Venue


class Lot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: TransactionId
    asset: AssetId
    acquired_at: datetime
    quantity: Decimal
    unit_cost: Decimal
    source_transaction_id: TransactionId
    venue: Venue
    sequence: int

    @model_validator(mode="after")
    def _validate_fields(self) -> Lot:
        if self.quantity <= 0:
            raise ValueError("Lot.quantity must be > 0")
        if self.unit_cost < 0:
            raise ValueError("Lot.unit_cost must be >= 0")
        return self


class DeltaKind(StrEnum):
    ACQUIRED = "ACQUIRED"
    CONSUMED = "CONSUMED"


class LotDelta(BaseModel):
    """One change to a lot's remaining quantity; quantity is always a positive magnitude."""

    model_config = ConfigDict(frozen=True)

    kind: DeltaKind
    lot_id: TransactionId
    # Unique within a run; lot ids repeat when a source reuses a transaction id.
    lot_sequence: int
    asset: AssetId
    timestamp: datetime
    quantity: Decimal
    transaction_id: TransactionId
    acquired_at: datetime
    unit_cost: Decimal
    venue: Venue


class OpenLotPosition(BaseModel):
    lot_id: TransactionId
    asset: AssetId
    acquired_at: datetime
    quantity_remaining: Decimal
    unit_cost: Decimal
    venue: Venue


@dataclass
class _OpenLotState:
    lot: Lot
    remaining_quantity: Decimal

    @property
    def acquired_at(self) -> datetime:
        return self.lot.acquired_at

    @property
    def unit_cost(self) -> Decimal:
        return self.lot.unit_cost

    @property
    def sequence(self) -> int:
        return self.lot.sequence


@dataclass
class Consumption:
    slices: list[tuple[Lot, Decimal]] = field(default_factory=list)
    cost_basis: Decimal = Decimal(0)
    unmatched_quantity: Decimal = Decimal(0)


class LotInventory:
    """Open acquisition lots per asset plus an append-only log of every change.

    One instance belongs to a single engine run and is discarded afterwards.
    """

    def __init__(self) -> None:
        self._open: dict[AssetId, list[_OpenLotState]] = defaultdict(list)
        self._deltas: list[LotDelta] = []

    @property
    def deltas(self) -> list[LotDelta]:
        return list(self._deltas)

    def add_lot(self, lot: Lot) -> None:
        self._open[lot.asset].append(_OpenLotState(lot=lot, remaining_quantity=lot.quantity))
        self._record(DeltaKind.ACQUIRED, lot, lot.quantity, timestamp=lot.acquired_at, transaction_id=lot.id)

    def available(self, asset: AssetId) -> Decimal:
        return sum((state.remaining_quantity for state in self._open.get(asset, [])), start=Decimal(0))

    def consume(
        self,
        asset: AssetId,
        quantity: Decimal,
        strategy: CostBasisStrategy,
        *,
        timestamp: datetime,
        transaction_id: TransactionId,
    ) -> Consumption:
        """Take ``quantity`` of ``asset`` from open lots in ``strategy`` order.

        Stops early when the lots run out; the shortfall is returned as
        ``unmatched_quantity`` and contributes no cost basis.
        """
        if quantity <= 0:
            raise ValueError(f"Consumed quantity must be > 0, got {quantity}")

        consumption = Consumption()
        outstanding = quantity
        for state in order_lots(self._open.get(asset, []), strategy):
            if outstanding == 0:
                break
            take_quantity = min(outstanding, state.remaining_quantity)
            state.remaining_quantity -= take_quantity
            outstanding -= take_quantity

            consumption.slices.append((state.lot, take_quantity))
            consumption.cost_basis += take_quantity * state.lot.unit_cost
            self._record(DeltaKind.CONSUMED, state.lot, take_quantity, timestamp=timestamp, transaction_id=transaction_id)

        if asset in self._open:
            self._open[asset] = [state for state in self._open[asset] if state.remaining_quantity > 0]
        consumption.unmatched_quantity = outstanding
        return consumption

    def open_lots(self, asset: AssetId | None = None) -> list[OpenLotPosition]:
        assets = [asset] if asset is not None else sorted(self._open)
        return [
            OpenLotPosition(
                lot_id=state.lot.id,
                asset=state.lot.asset,
                acquired_at=state.lot.acquired_at,
                quantity_remaining=state.remaining_quantity,
                unit_cost=state.lot.unit_cost,
                venue=state.lot.venue,
            )
            for name in assets
            for state in sorted(self._open.get(name, []), key=lambda s: (s.acquired_at, s.sequence))
        ]

    def _record(
        self,
        kind: DeltaKind,
        lot: Lot,
        quantity: Decimal,
        *,
        timestamp: datetime,
        transaction_id: TransactionId,
    ) -> None:
        self._deltas.append(
            LotDelta(
                kind=kind,
                lot_id=lot.id,
                lot_sequence=lot.sequence,
                asset=lot.asset,
                timestamp=timestamp,
                quantity=quantity,
                transaction_id=transaction_id,
                acquired_at=lot.acquired_at,
                unit_cost=lot.unit_cost,
                venue=lot.venue,
            )
        )
