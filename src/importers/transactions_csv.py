from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path

from domain.transactions import Transaction, TransactionId, TransactionKind, Venue

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "venue", "timestamp", "kind", "pair", "quantity", "price", "total_fiat"}


def load_transactions(csv_path: Path) -> list[Transaction]:
    """Load transactions from a CSV export with a fixed header.

    Required columns: id,venue,timestamp,kind,pair,quantity,price,total_fiat
    Optional columns: fee_fiat,realized_pnl,tx_hash
    Timestamps without an offset are read as UTC.
    """

    if not csv_path.exists():
        return []

    with csv_path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"Transactions CSV {csv_path} is empty or missing headers")

        missing = REQUIRED_COLUMNS - set(reader.fieldnames)
        if missing:
            raise ValueError(f"Transactions CSV {csv_path} missing required columns: {', '.join(sorted(missing))}")

        transactions: list[Transaction] = []
        for line_no, row in enumerate(reader, start=2):
            try:
                transactions.append(_parse_row(row))
            except (InvalidOperation, ValueError) as err:
                raise ValueError(f"Transactions CSV {csv_path} line {line_no}: {err}") from err

    logger.info("Loaded %d transactions from %s", len(transactions), csv_path)
    return transactions


def _parse_row(row: dict[str, str]) -> Transaction:
    return Transaction(
        id=TransactionId(row["id"].strip()),
        venue=Venue(row["venue"].strip().upper()),
        timestamp=_parse_timestamp(row["timestamp"]),
        kind=TransactionKind(row["kind"].strip().upper()),
        pair=row["pair"].strip(),
        quantity=Decimal(row["quantity"]),
        price=Decimal(row["price"]),
        total_fiat=Decimal(row["total_fiat"]),
        fee_fiat=_parse_optional_decimal(row.get("fee_fiat")) or Decimal(0),
        realized_pnl=_parse_optional_decimal(row.get("realized_pnl")),
        tx_hash=(row.get("tx_hash") or "").strip() or None,
    )


def _parse_timestamp(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw.strip())
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _parse_optional_decimal(raw: str | None) -> Decimal | None:
    if raw is None or raw.strip() == "":
        return None
    return Decimal(raw.strip())
