"""Core calculation engine for the EMI calculator.

This module implements the reducing-balance (amortizing) loan arithmetic: the
equated monthly installment, the period-by-period amortization schedule, the
derived summary and a preview of restructured terms. Every function is pure;
invalid input raises :class:`~emi_calc.exceptions.InvalidInput` and inputs that
cannot yield a meaningful result raise
:class:`~emi_calc.exceptions.NotComputable`.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation, Overflow, getcontext
from typing import Any, Dict, List, Optional, Sequence

from .data_models import (
    AmortizationPeriod,
    AmortizationSummary,
    EmiResult,
    LoanTerms,
    RestructurePreview,
)
from .exceptions import InvalidInput, NotComputable
from .utils import MAX_PLACES, MONTHS_IN_YEAR, Number, add_months, round_money, to_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the unrounded equal installment for a reducing-balance loan.

    The formula is:

        payment = P * i * (1 + i)^n / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if rate_per_month == 0:
        return principal / Decimal(term)
    try:
        factor = (1 + rate_per_month) ** term
        denominator = factor - 1
        if denominator == 0:
            raise NotComputable("Interest rate too small to amortize over the requested tenure")
        return principal * rate_per_month * factor / denominator
    except (Overflow, InvalidOperation) as exc:
        raise NotComputable(
            f"Interest rate {rate_per_month * 1200}% overflows over {term} months"
        ) from exc


def _installment_for(terms: LoanTerms, places: int) -> Decimal:
    if isinstance(places, bool) or not isinstance(places, int) or not 0 <= places <= MAX_PLACES:
        raise InvalidInput("places", f"must be an integer between 0 and {MAX_PLACES}")
    installment = round_money(
        _calculate_annuity_payment(terms.principal, terms.monthly_rate, terms.tenure_months),
        places,
    )
    if installment <= 0:
        raise NotComputable(
            f"Installment rounds to zero for principal {terms.principal} over "
            f"{terms.tenure_months} months"
        )
    first_interest = round_money(terms.principal * terms.monthly_rate, places)
    if installment <= first_interest:
        raise NotComputable("Installment does not cover the first month's interest")
    return installment


def compute_installment(
    principal: Number,
    annual_rate: Number,
    tenure_months: Number,
    places: int = 0,
) -> Decimal:
    """Return the fixed monthly installment (EMI).

    Parameters
    ----------
    principal:
        Amount borrowed, strictly positive.
    annual_rate:
        Nominal annual rate in percent, zero or more.
    tenure_months:
        Number of monthly installments, 1 to ``MAX_TENURE_MONTHS``.
    places:
        Decimal places the installment is rounded to (half-up), 0 to
        ``MAX_PLACES``. The default rounds to whole currency units.
    """
    terms = LoanTerms.from_values(principal, annual_rate, tenure_months)
    return _installment_for(terms, places)


def _build_schedule(
    terms: LoanTerms,
    installment: Decimal,
    places: int,
    settle_final: bool,
    first_due_date: Optional[date],
) -> List[AmortizationPeriod]:
    rate = terms.monthly_rate
    balance = terms.principal
    schedule: List[AmortizationPeriod] = []
    for period in range(1, terms.tenure_months + 1):
        opening = balance
        interest = round_money(balance * rate, places)
        if settle_final and period == terms.tenure_months:
            # last period absorbs the accumulated rounding residual
            principal_paid = balance
            payment = principal_paid + interest
        else:
            principal_paid = installment - interest
            payment = installment
        balance = max(ZERO, balance - principal_paid)
        schedule.append(
            AmortizationPeriod(
                period=period,
                installment=payment,
                principal_component=principal_paid,
                interest_component=interest,
                opening_balance=opening,
                closing_balance=balance,
                due_date=add_months(first_due_date, period - 1) if first_due_date else None,
            )
        )
    return schedule


def generate_schedule(
    principal: Number,
    annual_rate: Number,
    tenure_months: Number,
    places: int = 0,
    settle_final: bool = False,
    first_due_date: Optional[date] = None,
) -> List[AmortizationPeriod]:
    """Build the amortization schedule, periods ``1..tenure_months`` in order.

    Each period charges interest on the previous closing balance, rounded to
    ``places``; the rest of the installment repays principal and the balance
    is floored at zero. Interest is rounded independently every period, so the
    final balance may miss zero by a few currency units over long tenures.
    Passing ``settle_final=True`` makes the last period repay whatever balance
    remains, closing the schedule at exactly zero at the cost of a last
    installment that differs from the others.

    When ``first_due_date`` is given, period ``i`` is due ``i - 1`` months
    after it.
    """
    terms = LoanTerms.from_values(principal, annual_rate, tenure_months)
    installment = _installment_for(terms, places)
    return _build_schedule(terms, installment, places, settle_final, first_due_date)


def compute_summary(schedule: Sequence[AmortizationPeriod], principal: Number) -> AmortizationSummary:
    """Return total payable and total interest for ``schedule``.

    ``total_payable`` is the sum of the period installments, which equals
    ``installment * tenure`` whenever the final period is not settled
    separately. ``total_interest`` is ``total_payable - principal``.
    """
    if not schedule:
        raise NotComputable("Cannot summarize an empty schedule")
    try:
        principal_value = to_decimal(principal)
    except ValueError as exc:
        raise InvalidInput("principal", str(exc)) from exc
    total_payable = sum((p.installment for p in schedule), ZERO)
    return AmortizationSummary(
        principal=principal_value,
        installment=schedule[0].installment,
        tenure_months=len(schedule),
        total_payable=total_payable,
        total_interest=total_payable - principal_value,
    )


def calculate(
    terms: LoanTerms,
    places: int = 0,
    settle_final: bool = False,
    first_due_date: Optional[date] = None,
) -> EmiResult:
    """Compute installment, schedule and summary for validated ``terms``."""
    installment = _installment_for(terms, places)
    schedule = _build_schedule(terms, installment, places, settle_final, first_due_date)
    summary = compute_summary(schedule, terms.principal)
    logger.debug(
        "EMI %s for principal=%s rate=%s%% tenure=%d (total interest %s)",
        installment,
        terms.principal,
        terms.annual_rate,
        terms.tenure_months,
        summary.total_interest,
    )
    return EmiResult(terms=terms, installment=installment, schedule=schedule, summary=summary)


def _summary_for(terms: LoanTerms, places: int) -> AmortizationSummary:
    installment = _installment_for(terms, places)
    total_payable = installment * terms.tenure_months
    return AmortizationSummary(
        principal=terms.principal,
        installment=installment,
        tenure_months=terms.tenure_months,
        total_payable=total_payable,
        total_interest=total_payable - terms.principal,
    )


def preview_restructure(
    outstanding_principal: Number,
    current_rate: Number,
    remaining_months: Number,
    new_rate: Optional[Number] = None,
    new_tenure_months: Optional[Number] = None,
    places: int = 0,
) -> RestructurePreview:
    """Compare the remaining repayment of a loan with restructured terms.

    The outstanding principal is re-amortized under ``new_rate`` and/or
    ``new_tenure_months``; an omitted value keeps the current one. At least
    one of them must be provided.
    """
    if new_rate is None and new_tenure_months is None:
        raise InvalidInput("restructure", "provide a new tenure or a new interest rate")
    current_terms = LoanTerms.from_values(outstanding_principal, current_rate, remaining_months)
    proposed_terms = LoanTerms.from_values(
        outstanding_principal,
        new_rate if new_rate is not None else current_terms.annual_rate,
        new_tenure_months if new_tenure_months is not None else current_terms.tenure_months,
    )
    current = _summary_for(current_terms, places)
    proposed = _summary_for(proposed_terms, places)
    emi_difference = proposed.installment - current.installment
    emi_percent_change = round_money(emi_difference / current.installment * 100, 1)
    logger.debug(
        "Restructure preview: EMI %s -> %s over %d -> %d months",
        current.installment,
        proposed.installment,
        current.tenure_months,
        proposed.tenure_months,
    )
    return RestructurePreview(
        current=current,
        proposed=proposed,
        current_rate=current_terms.annual_rate,
        proposed_rate=proposed_terms.annual_rate,
        emi_difference=emi_difference,
        emi_percent_change=emi_percent_change,
        total_interest_difference=proposed.total_interest - current.total_interest,
    )


def aggregate_yearly(schedule: Sequence[AmortizationPeriod]) -> List[Dict[str, Any]]:
    """Aggregate a monthly schedule into loan years.

    Returns one dict per year with keys: year, installment, principal,
    interest, closing_balance (balance after the year's last period).
    """
    years: List[Dict[str, Any]] = []
    for entry in schedule:
        year = (entry.period - 1) // MONTHS_IN_YEAR + 1
        if not years or years[-1]["year"] != year:
            years.append(
                {
                    "year": year,
                    "installment": ZERO,
                    "principal": ZERO,
                    "interest": ZERO,
                    "closing_balance": ZERO,
                }
            )
        row = years[-1]
        row["installment"] += entry.installment
        row["principal"] += entry.principal_component
        row["interest"] += entry.interest_component
        row["closing_balance"] = entry.closing_balance
    return years
