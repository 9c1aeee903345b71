from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from .lots import DeltaKind, LotDelta, OpenLotPosition
from .matcher import DisposalResult
from .report import ReportWarning
from .transactions import AssetId


class InventorySnapshot(BaseModel):
    as_of: datetime
    holdings: dict[AssetId, list[OpenLotPosition]]
    realized_gain: Decimal
    warnings: list[ReportWarning]


def snapshot_cutoff(as_of: date | datetime) -> datetime:
    """A bare date means the end of that UTC day."""
    if isinstance(as_of, datetime):
        if as_of.tzinfo is None:
            return as_of.replace(tzinfo=timezone.utc)
        return as_of
    return datetime.combine(as_of, time.max, tzinfo=timezone.utc)


def reconstruct_snapshot(
    deltas: Iterable[LotDelta],
    disposals: Iterable[DisposalResult],
    as_of: date | datetime,
    *,
    warnings: Iterable[ReportWarning] = (),
) -> InventorySnapshot:
    """Replay lot deltas up to ``as_of`` to rebuild the inventory held at that moment.

    Only warnings raised by transactions at or before ``as_of`` are kept.
    """
    cutoff = snapshot_cutoff(as_of)

    remaining: dict[int, Decimal] = {}
    first_seen: dict[int, LotDelta] = {}
    for delta in deltas:
        if delta.timestamp > cutoff:
            continue
        if delta.kind == DeltaKind.ACQUIRED:
            first_seen.setdefault(delta.lot_sequence, delta)
            remaining[delta.lot_sequence] = remaining.get(delta.lot_sequence, Decimal(0)) + delta.quantity
        else:
            remaining[delta.lot_sequence] = remaining.get(delta.lot_sequence, Decimal(0)) - delta.quantity

    holdings: dict[AssetId, list[OpenLotPosition]] = {}
    for sequence, origin in first_seen.items():
        quantity = remaining[sequence]
        if quantity <= 0:
            continue
        holdings.setdefault(origin.asset, []).append(
            OpenLotPosition(
                lot_id=origin.lot_id,
                asset=origin.asset,
                acquired_at=origin.acquired_at,
                quantity_remaining=quantity,
                unit_cost=origin.unit_cost,
                venue=origin.venue,
            )
        )

    realized_gain = sum(
        (disposal.realized_gain for disposal in disposals if disposal.timestamp <= cutoff),
        start=Decimal(0),
    )
    return InventorySnapshot(
        as_of=cutoff,
        holdings={asset: holdings[asset] for asset in sorted(holdings)},
        realized_gain=realized_gain,
        warnings=[warning for warning in warnings if warning.timestamp <= cutoff],
    )
