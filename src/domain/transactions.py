from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

AssetId = NewType("AssetId", str)
TransactionId = NewType("TransactionId", str)

_ASSET_SYMBOL = re.compile(r"^[A-Z0-9.]+$")


class Venue(StrEnum):
    BINANCE = "BINANCE"
    KRAKEN = "KRAKEN"
    COINBASE = "COINBASE"
    KUCOIN = "KUCOIN"
    BYBIT = "BYBIT"
    MEXC = "MEXC"
    OKX = "OKX"
    BITGET = "BITGET"
    ETHEREUM = "ETHEREUM"
    ARBITRUM = "ARBITRUM"
    BASE = "BASE"
    OPTIMISM = "OPTIMISM"
    MANUAL = "MANUAL"


class TransactionKind(StrEnum):
    SPOT_BUY = "SPOT_BUY"
    SPOT_SELL = "SPOT_SELL"
    FUTURES_PNL = "FUTURES_PNL"
    FUNDING_FEE = "FUNDING_FEE"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    STAKING_REWARD = "STAKING_REWARD"
    DEFI_SWAP = "DEFI_SWAP"
    LIQUIDITY_ADD = "LIQUIDITY_ADD"
    LIQUIDITY_REMOVE = "LIQUIDITY_REMOVE"
    BRIDGE_SEND = "BRIDGE_SEND"
    BRIDGE_RECEIVE = "BRIDGE_RECEIVE"


class AssetSymbolError(ValueError):
    def __init__(self, pair: str, *, transaction_id: str | None = None) -> None:
        self.pair = pair
        self.transaction_id = transaction_id
        target = f" in transaction={transaction_id}" if transaction_id else ""
        super().__init__(f"Cannot derive asset symbol from pair={pair!r}{target}")


class Transaction(BaseModel):
    """A single exchange or wallet record, denominated in the reporting fiat currency.

    ``price`` is the fiat price per unit, ``total_fiat`` the fiat value of the
    whole record. ``realized_pnl`` is only meaningful for derivative kinds.
    """

    model_config = ConfigDict(frozen=True)

    id: TransactionId
    venue: Venue
    timestamp: datetime
    kind: TransactionKind
    pair: str
    quantity: Decimal
    price: Decimal
    total_fiat: Decimal
    fee_fiat: Decimal = Decimal(0)
    realized_pnl: Decimal | None = None
    tx_hash: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _validate_fields(self) -> Transaction:
        if not self.id:
            raise ValueError("Transaction.id must be non-empty")
        if self.quantity < 0:
            raise ValueError("Transaction.quantity must be >= 0")
        if self.price < 0:
            raise ValueError("Transaction.price must be >= 0")
        if self.total_fiat < 0:
            raise ValueError("Transaction.total_fiat must be >= 0")
        return self


def asset_from_pair(pair: str, *, transaction_id: str | None = None) -> AssetId:
    """Return the base asset of a trading pair, e.g. ``BTC/USDT`` -> ``BTC``.

    Bare symbols are accepted as-is. Anything that does not yield a clean
    symbol raises :class:`AssetSymbolError`.
    """
    base = pair.split("/")[0].split("-")[0].strip().upper()
    if not base or not _ASSET_SYMBOL.match(base):
        raise AssetSymbolError(pair, transaction_id=transaction_id)
    return AssetId(base)
