"""Output helpers for the EMI calculator.

This module renders amounts the way Indian lenders print them (``₹12,34,567``:
the last three digits, then groups of two) and prints summaries, schedules and
restructure previews as plain text tables through ``click.echo``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

import click

from .data_models import AmortizationPeriod, AmortizationSummary, RestructurePreview
from .utils import Number, round_money, to_decimal

RUPEE = "₹"


def _group_indian(digits: str) -> str:
    """Insert separators into a string of integer digits using lakh/crore grouping."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(
    amount: Optional[Number],
    symbol: str = RUPEE,
    show_symbol: bool = True,
    places: Optional[int] = None,
) -> str:
    """Format ``amount`` with Indian digit grouping.

    Without ``places`` the value is shown with up to two fraction digits and
    trailing zeros are dropped (``1234.50`` becomes ``1,234.5``). ``None``
    renders as zero.
    """
    prefix = symbol if show_symbol else ""
    if amount is None:
        return f"{prefix}0"
    value = to_decimal(amount)
    rounded = round_money(value, 2 if places is None else places)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):f}"
    integer, _, fraction = text.partition(".")
    if places is None:
        fraction = fraction.rstrip("0")
    result = _group_indian(integer)
    if fraction:
        result = f"{result}.{fraction}"
    return f"{sign}{prefix}{result}"


def format_compact_currency(amount: Optional[Number], symbol: str = RUPEE) -> str:
    """Abbreviate large amounts with crore (Cr), lakh (L) and thousand (K) suffixes."""
    if amount is None:
        return f"{symbol}0"
    value = to_decimal(amount)
    if value >= Decimal("10000000"):
        return f"{symbol}{value / Decimal('10000000'):.2f}Cr"
    if value >= Decimal("100000"):
        return f"{symbol}{value / Decimal('100000'):.2f}L"
    if value >= Decimal("1000"):
        return f"{symbol}{value / Decimal('1000'):.1f}K"
    return f"{symbol}{value:.0f}"


def parse_currency(value: Any) -> Decimal:
    """Parse a formatted amount such as ``"₹1,00,000"``; blank or invalid input gives 0."""
    if value is None:
        return Decimal("0")
    cleaned = "".join(ch for ch in str(value) if ch not in f"{RUPEE}, \t\n")
    if not cleaned:
        return Decimal("0")
    try:
        return to_decimal(cleaned)
    except ValueError:
        return Decimal("0")


def format_percentage(value: Optional[Number], decimals: int = 2) -> str:
    if value is None:
        return "0%"
    return f"{to_decimal(value):.{decimals}f}%"


def print_summary(summary: AmortizationSummary, symbol: str = RUPEE) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Loan amount        : {format_currency(summary.principal, symbol)}")
    click.echo(f"Monthly EMI        : {format_currency(summary.installment, symbol)}")
    click.echo(f"Tenure             : {summary.tenure_months} months")
    click.echo(f"Total interest     : {format_currency(summary.total_interest, symbol)}")
    click.echo(f"Total payable      : {format_currency(summary.total_payable, symbol)}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[AmortizationPeriod], symbol: str = RUPEE) -> None:
    """Print the amortization schedule as a tab-separated table.

    A ``Due`` column is included when the entries carry due dates.
    """
    entries = list(schedule)
    show_due = any(e.due_date for e in entries)
    headers = ["Month"]
    if show_due:
        headers.append("Due")
    headers.extend(["EMI", "Principal", "Interest", "Balance"])
    click.echo("\t".join(headers))
    for entry in entries:
        row = [str(entry.period)]
        if show_due:
            row.append(entry.due_date.strftime("%Y-%m-%d") if entry.due_date else "-")
        row.extend(
            [
                format_currency(entry.installment, symbol),
                format_currency(entry.principal_component, symbol),
                format_currency(entry.interest_component, symbol),
                format_currency(entry.closing_balance, symbol),
            ]
        )
        click.echo("\t".join(row))


def print_restructure(preview: RestructurePreview, symbol: str = RUPEE) -> None:
    """Print current and proposed terms side by side with their differences."""
    click.echo("Restructure preview")
    click.echo("=" * 72)
    click.echo(f"{'Metric':20s} {'Current':>15s} {'Proposed':>15s}")
    rows: Dict[str, tuple] = {
        "EMI": (preview.current.installment, preview.proposed.installment),
        "Total payable": (preview.current.total_payable, preview.proposed.total_payable),
        "Total interest": (preview.current.total_interest, preview.proposed.total_interest),
    }
    for label, (current, proposed) in rows.items():
        click.echo(
            f"{label:20s} {format_currency(current, symbol):>15s} "
            f"{format_currency(proposed, symbol):>15s}"
        )
    click.echo(
        f"{'Interest rate':20s} {format_percentage(preview.current_rate):>15s} "
        f"{format_percentage(preview.proposed_rate):>15s}"
    )
    click.echo(
        f"{'Tenure (months)':20s} {preview.current.tenure_months:>15d} "
        f"{preview.proposed.tenure_months:>15d}"
    )
    arrow = "down" if preview.emi_difference < 0 else "up"
    sign = "+" if preview.emi_percent_change > 0 else ""
    click.echo(
        f"EMI change: {arrow} {format_currency(abs(preview.emi_difference), symbol)} "
        f"({sign}{preview.emi_percent_change}%)"
    )
    arrow = "down" if preview.total_interest_difference < 0 else "up"
    click.echo(
        f"Total interest change: {arrow} "
        f"{format_currency(abs(preview.total_interest_difference), symbol)}"
    )
    click.echo("=" * 72)
