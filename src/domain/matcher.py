from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from .lots import LotInventory
from .strategies import CostBasisStrategy
from .transactions import AssetId, Transaction, TransactionId


class InventoryError(Exception):
    def __init__(
        self,
        message: str,
        *,
        transaction: Transaction | None = None,
        asset: AssetId | None = None,
        quantity_needed: Decimal | None = None,
    ) -> None:
        super().__init__(message)
        self.transaction = transaction
        self.asset = asset
        self.quantity_needed = quantity_needed


class DisposalMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    lot_id: TransactionId
    acquired_at: datetime
    quantity: Decimal
    unit_cost: Decimal
    cost_basis: Decimal
    gain: Decimal


class DisposalResult(BaseModel):
    """Outcome of matching one sale against open lots.

    ``unmatched_quantity`` is non-zero only when negative inventory is allowed;
    that part carries a provisional cost of zero and ``provisional`` is set.
    """

    model_config = ConfigDict(frozen=True)

    transaction_id: TransactionId
    timestamp: datetime
    asset: AssetId
    quantity: Decimal
    price: Decimal
    proceeds: Decimal
    fee: Decimal
    matches: list[DisposalMatch]
    cost_basis: Decimal
    realized_gain: Decimal
    unmatched_quantity: Decimal = Decimal(0)
    provisional: bool = False


def match_disposal(
    inventory: LotInventory,
    transaction: Transaction,
    asset: AssetId,
    strategy: CostBasisStrategy,
    *,
    allow_negative_inventory: bool = False,
) -> DisposalResult:
    available = inventory.available(asset)
    if available < transaction.quantity and not allow_negative_inventory:
        raise _inventory_error(transaction, asset, available)

    consumption = inventory.consume(
        asset,
        transaction.quantity,
        strategy,
        timestamp=transaction.timestamp,
        transaction_id=transaction.id,
    )

    matches = [
        DisposalMatch(
            lot_id=lot.id,
            acquired_at=lot.acquired_at,
            quantity=quantity,
            unit_cost=lot.unit_cost,
            cost_basis=quantity * lot.unit_cost,
            gain=quantity * (transaction.price - lot.unit_cost),
        )
        for lot, quantity in consumption.slices
    ]
    realized_gain = sum((match.gain for match in matches), start=Decimal(0))
    unmatched = consumption.unmatched_quantity
    if unmatched > 0:
        realized_gain += unmatched * transaction.price

    return DisposalResult(
        transaction_id=transaction.id,
        timestamp=transaction.timestamp,
        asset=asset,
        quantity=transaction.quantity,
        price=transaction.price,
        proceeds=transaction.total_fiat,
        fee=transaction.fee_fiat,
        matches=matches,
        cost_basis=consumption.cost_basis,
        realized_gain=realized_gain,
        unmatched_quantity=unmatched,
        provisional=unmatched > 0,
    )


def _inventory_error(transaction: Transaction, asset: AssetId, available: Decimal) -> InventoryError:
    missing = transaction.quantity - available
    return InventoryError(
        f"Not enough inventory for asset={asset} transaction={transaction.id} "
        f"{transaction.kind} @{transaction.timestamp.isoformat()} "
        f"requested={transaction.quantity} available={available}",
        transaction=transaction,
        asset=asset,
        quantity_needed=missing,
    )
