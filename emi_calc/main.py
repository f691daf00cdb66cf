"""Command-line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute a full amortization schedule, view the summary only or
preview how restructuring an outstanding loan changes its installment. Results
can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Callable, List, Optional

import click

from .config import Settings
from .data_models import AmortizationPeriod, EmiResult, LoanTerms
from .engine import calculate, preview_restructure
from .exceptions import LoanCalculationError
from .formatter import print_restructure, print_schedule, print_summary
from .utils import MAX_PLACES, decimal_from_str, parse_year_month

logger = logging.getLogger(__name__)

AMOUNT_SUFFIXES = (
    ("cr", Decimal("10000000")),
    ("l", Decimal("100000")),
    ("k", Decimal("1000")),
    ("m", Decimal("1000000")),
)


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000", "5,00,000") and shorthand with ``k``
    (thousand), ``l`` (lakh), ``cr`` (crore) or ``m`` (million) suffixes,
    e.g. "5l" meaning 500_000.
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    for suffix, multiplier in AMOUNT_SUFFIXES:
        if value.endswith(suffix):
            factor = multiplier
            value = value[: -len(suffix)]
            break
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def build_terms_from_options(
    principal: str,
    rate: float,
    tenure: int,
    tenure_unit: str = "months",
) -> LoanTerms:
    try:
        return LoanTerms.from_values(parse_amount(principal), str(rate), tenure, tenure_unit)
    except LoanCalculationError as exc:
        raise click.BadParameter(str(exc))


def load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as exc:
        raise click.UsageError(str(exc))


def run_calculation(
    principal: str,
    rate: float,
    tenure: int,
    tenure_unit: str,
    places: Optional[int],
    settle_final: bool,
    start_date: Optional[str],
) -> EmiResult:
    settings = load_settings()
    terms = build_terms_from_options(principal, rate, tenure, tenure_unit)
    first_due = None
    if start_date:
        try:
            first_due = parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    try:
        return calculate(
            terms,
            places=settings.rounding_places if places is None else places,
            settle_final=settle_final or settings.settle_final,
            first_due_date=first_due,
        )
    except LoanCalculationError as exc:
        raise click.UsageError(str(exc))


def export_to_json(path: Path, result: EmiResult) -> None:
    """Export schedule and summary to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


def export_to_csv(path: Path, schedule: List[AmortizationPeriod]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Due_Date",
        "EMI",
        "Principal",
        "Interest",
        "Opening_Balance",
        "Closing_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.period,
                    e.due_date.isoformat() if e.due_date else "",
                    str(e.installment),
                    str(e.principal_component),
                    str(e.interest_component),
                    str(e.opening_balance),
                    str(e.closing_balance),
                ]
            )


def loan_options(func: Callable) -> Callable:
    """Attach the loan input options shared by ``schedule`` and ``summary``."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (e.g. 100000, 5l, 1.2cr)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, type=int, help="Loan tenure"),
        click.option(
            "--tenure-unit",
            "tenure_unit",
            type=click.Choice(["months", "years"]),
            default="months",
            help="Unit of --tenure",
        ),
        click.option("--places", "places", type=click.IntRange(0, MAX_PLACES), help=f"Decimal places for rounding, 0 to {MAX_PLACES} (default 0)"),
        click.option(
            "--settle-final",
            "settle_final",
            is_flag=True,
            help="Adjust the last installment so the balance closes at exactly zero",
        ),
        click.option("--start-date", "-s", "start_date", help="First EMI due date (YYYY-MM or YYYY-MM-DD)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line EMI calculator for reducing-balance loans."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    tenure: int,
    tenure_unit: str,
    places: Optional[int],
    settle_final: bool,
    start_date: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    result = run_calculation(principal, rate, tenure, tenure_unit, places, settle_final, start_date)
    symbol = load_settings().currency_symbol
    if output:
        path = Path(output)
        logger.debug("Exporting %d periods to %s", len(result.schedule), path)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        print_summary(result.summary, symbol)
        print_schedule(result.schedule, symbol)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: float,
    tenure: int,
    tenure_unit: str,
    places: Optional[int],
    settle_final: bool,
    start_date: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    result = run_calculation(principal, rate, tenure, tenure_unit, places, settle_final, start_date)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": result.summary.to_dict()}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result.summary, load_settings().currency_symbol)


@cli.command()
@click.option("--outstanding", "-o", "outstanding", required=True, help="Outstanding principal")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Current annual interest rate (percent)")
@click.option("--remaining", "-n", "remaining", required=True, type=int, help="Remaining EMIs")
@click.option("--new-rate", "new_rate", type=float, help="Proposed annual interest rate (percent)")
@click.option("--new-tenure", "new_tenure", type=int, help="Proposed tenure in months")
def restructure(
    outstanding: str,
    rate: float,
    remaining: int,
    new_rate: Optional[float],
    new_tenure: Optional[int],
) -> None:
    """Preview the effect of restructuring an outstanding loan.

    Example:

        emi-calc restructure -o 3l -r 12 -n 24 --new-tenure 36
    """
    settings = load_settings()
    try:
        preview = preview_restructure(
            parse_amount(outstanding),
            str(rate),
            remaining,
            new_rate=str(new_rate) if new_rate is not None else None,
            new_tenure_months=new_tenure,
            places=settings.rounding_places,
        )
    except LoanCalculationError as exc:
        raise click.UsageError(str(exc))
    print_restructure(preview, settings.currency_symbol)


if __name__ == "__main__":
    cli()
