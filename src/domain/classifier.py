from __future__ import annotations

from enum import StrEnum

from .transactions import Transaction, TransactionKind


class TransactionRoute(StrEnum):
    ACQUISITION = "ACQUISITION"
    DISPOSAL = "DISPOSAL"
    DERIVATIVE = "DERIVATIVE"
    # Moves an asset between venues; lots are tracked per asset, so nothing changes.
    TRANSFER = "TRANSFER"
    UNSUPPORTED = "UNSUPPORTED"


_ROUTES: dict[TransactionKind, TransactionRoute] = {
    TransactionKind.SPOT_BUY: TransactionRoute.ACQUISITION,
    TransactionKind.DEPOSIT: TransactionRoute.ACQUISITION,
    TransactionKind.SPOT_SELL: TransactionRoute.DISPOSAL,
    TransactionKind.WITHDRAWAL: TransactionRoute.DISPOSAL,
    TransactionKind.FUTURES_PNL: TransactionRoute.DERIVATIVE,
    TransactionKind.FUNDING_FEE: TransactionRoute.DERIVATIVE,
    TransactionKind.BRIDGE_SEND: TransactionRoute.TRANSFER,
    TransactionKind.BRIDGE_RECEIVE: TransactionRoute.TRANSFER,
    TransactionKind.STAKING_REWARD: TransactionRoute.UNSUPPORTED,
    TransactionKind.DEFI_SWAP: TransactionRoute.UNSUPPORTED,
    TransactionKind.LIQUIDITY_ADD: TransactionRoute.UNSUPPORTED,
    TransactionKind.LIQUIDITY_REMOVE: TransactionRoute.UNSUPPORTED,
}


def classify(transaction: Transaction) -> TransactionRoute:
    return _ROUTES.get(transaction.kind, TransactionRoute.UNSUPPORTED)
