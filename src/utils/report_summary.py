from __future__ import annotations

from domain.report import ReportWarning, TaxReport
from domain.snapshot import InventorySnapshot

from .formatting import format_currency, format_decimal, format_rate


def render_tax_report(report: TaxReport) -> None:
    year = report.year if report.year is not None else "-"
    print(f"Tax report {year} ({report.strategy}, rate {format_rate(report.tax_rate)}):")

    rows = [
        ("Spot", report.spot_income, report.spot_cost, report.spot_taxable_base),
        ("Derivatives", report.derivative_income, report.derivative_cost, report.derivative_taxable_base),
    ]
    label_width = max(len("Ledger"), max(len(label) for label, _, _, _ in rows))
    income_width = max(len("Income"), max(len(format_currency(income)) for _, income, _, _ in rows))
    cost_width = max(len("Cost"), max(len(format_currency(cost)) for _, _, cost, _ in rows))
    base_width = max(len("Taxable base"), max(len(format_currency(base)) for _, _, _, base in rows))

    header = (
        f"{'Ledger':<{label_width}} "
        f"{'Income':>{income_width}} "
        f"{'Cost':>{cost_width}} "
        f"{'Taxable base':>{base_width}}"
    )
    lines = [header, "-" * len(header)]
    for label, income, cost, base in rows:
        lines.append(
            f"{label:<{label_width}} "
            f"{format_currency(income):>{income_width}} "
            f"{format_currency(cost):>{cost_width}} "
            f"{format_currency(base):>{base_width}}"
        )
    lines.append("-" * len(header))
    lines.append(f"Tax due: {format_currency(report.total_tax_due)}")
    lines.append(
        f"Transactions processed: {report.transactions_processed} "
        f"(disposals: {len(report.disposals)}, ignored: {report.ignored_transactions})"
    )
    print("\n".join(lines))

    _render_warnings(report.warnings)


def render_inventory_snapshot(snapshot: InventorySnapshot) -> None:
    print(f"Inventory as of {snapshot.as_of.isoformat()}:")
    if not snapshot.holdings:
        print("  (empty)")
        _render_warnings(snapshot.warnings)
        return

    rows: list[tuple[str, str, str, str]] = []
    for asset, positions in snapshot.holdings.items():
        for position in positions:
            rows.append(
                (
                    asset,
                    position.acquired_at.date().isoformat(),
                    format_decimal(position.quantity_remaining),
                    format_currency(position.unit_cost),
                )
            )

    asset_width = max(len("Asset"), max(len(asset) for asset, _, _, _ in rows))
    date_width = max(len("Acquired"), max(len(acquired) for _, acquired, _, _ in rows))
    quantity_width = max(len("Quantity"), max(len(qty) for _, _, qty, _ in rows))
    cost_width = max(len("Unit cost"), max(len(cost) for _, _, _, cost in rows))

    header = (
        f"{'Asset':<{asset_width}} "
        f"{'Acquired':<{date_width}} "
        f"{'Quantity':>{quantity_width}} "
        f"{'Unit cost':>{cost_width}}"
    )
    lines = [header, "-" * len(header)]
    for asset, acquired, qty, cost in rows:
        lines.append(f"{asset:<{asset_width}} {acquired:<{date_width}} {qty:>{quantity_width}} {cost:>{cost_width}}")
    lines.append("-" * len(header))
    lines.append(f"Realized gain to date: {format_currency(snapshot.realized_gain)}")
    print("\n".join(lines))
    _render_warnings(snapshot.warnings)


def _render_warnings(warnings: list[ReportWarning]) -> None:
    if not warnings:
        return
    print("Warnings:")
    for warning in warnings:
        print(f"  [{warning.kind}] {warning.transaction_id}: {warning.message}")
