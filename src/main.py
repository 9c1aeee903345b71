from __future__ import annotations

import argparse
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Sequence

from config import config
from db.db import init_db
from db.repositories import TaxReportRepository, TransactionRepository
from domain.engine import TaxEngine
from domain.snapshot import reconstruct_snapshot
from domain.strategies import CostBasisStrategy
from importers.transactions_csv import load_transactions
from utils.report_summary import render_inventory_snapshot, render_tax_report


def run(
    csv_path: Path,
    *,
    db_file: Path,
    strategy: CostBasisStrategy,
    tax_rate: Decimal,
    reporting_year: int | None,
    allow_negative_inventory: bool,
    snapshot_date: date | None = None,
) -> None:
    # Setup components
    session = init_db(db_file=db_file)
    transaction_repository = TransactionRepository(session)
    report_repository = TaxReportRepository(session)
    engine = TaxEngine(
        strategy=strategy,
        tax_rate=tax_rate,
        reporting_year=reporting_year,
        allow_negative_inventory=allow_negative_inventory,
    )

    # Get data
    imported = load_transactions(csv_path)
    inserted = transaction_repository.create_many(imported)
    transactions = transaction_repository.list()

    # Process stuff
    result = engine.run(transactions)
    report_repository.create(result.report)

    # Print summary
    print(f"Imported {len(imported)} transactions from {csv_path} ({len(inserted)} new, {len(transactions)} stored)")
    render_tax_report(result.report)
    if snapshot_date is not None:
        render_inventory_snapshot(
            reconstruct_snapshot(result.deltas, result.disposals, snapshot_date, warnings=result.report.warnings)
        )


def main(argv: Sequence[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    settings = config()
    parser = argparse.ArgumentParser(description="Import transactions and compute a cost-basis tax report.")
    parser.add_argument("--csv", type=Path, default=Path("data/transactions.csv"))
    parser.add_argument("--db-file", type=Path, default=settings.db_file)
    parser.add_argument(
        "--strategy",
        type=CostBasisStrategy,
        choices=list(CostBasisStrategy),
        default=settings.strategy,
    )
    parser.add_argument("--tax-rate", type=Decimal, default=settings.tax_rate)
    parser.add_argument("--year", type=int, default=settings.reporting_year)
    parser.add_argument(
        "--allow-negative-inventory",
        action="store_true",
        default=settings.allow_negative_inventory,
        help="Book oversold quantities at a provisional zero cost instead of failing.",
    )
    parser.add_argument("--snapshot-date", type=date.fromisoformat, default=None)
    args = parser.parse_args(argv)
    run(
        args.csv,
        db_file=args.db_file,
        strategy=args.strategy,
        tax_rate=args.tax_rate,
        reporting_year=args.year,
        allow_negative_inventory=args.allow_negative_inventory,
        snapshot_date=args.snapshot_date,
    )


if __name__ == "__main__":
    main()
