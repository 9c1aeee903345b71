from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Protocol, Sequence, TypeVar


class CostBasisStrategy(StrEnum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    HIFO = "HIFO"
    # Reserved: accepted as input values, rejected by ensure_supported().
    AVCO = "AVCO"
    SPECID = "SPECID"


SUPPORTED_STRATEGIES = frozenset({CostBasisStrategy.FIFO, CostBasisStrategy.LIFO, CostBasisStrategy.HIFO})


class UnsupportedStrategyError(ValueError):
    def __init__(self, strategy: CostBasisStrategy) -> None:
        self.strategy = strategy
        supported = ", ".join(sorted(SUPPORTED_STRATEGIES))
        super().__init__(f"Cost basis strategy {strategy} has no lot ordering rule (supported: {supported})")


class OrderableLot(Protocol):
    """Read-only view of an open lot needed to decide consumption order."""

    @property
    def acquired_at(self) -> datetime: ...

    @property
    def unit_cost(self) -> Decimal: ...

    @property
    def sequence(self) -> int: ...


L = TypeVar("L", bound=OrderableLot)


def ensure_supported(strategy: CostBasisStrategy) -> CostBasisStrategy:
    if strategy not in SUPPORTED_STRATEGIES:
        raise UnsupportedStrategyError(strategy)
    return strategy


def order_lots(lots: Sequence[L], strategy: CostBasisStrategy) -> list[L]:
    """Return the lots in the order a disposal consumes them.

    The input sequence is left untouched; ``sequence`` (insertion order) makes
    every ordering total, so equal keys never depend on the sort algorithm.
    """
    if strategy == CostBasisStrategy.FIFO:
        return sorted(lots, key=lambda lot: (lot.acquired_at, lot.sequence))
    if strategy == CostBasisStrategy.LIFO:
        return sorted(lots, key=lambda lot: (lot.acquired_at, lot.sequence), reverse=True)
    if strategy == CostBasisStrategy.HIFO:
        return sorted(lots, key=lambda lot: (-lot.unit_cost, lot.acquired_at, lot.sequence))
    raise UnsupportedStrategyError(strategy)
