"""Data models for the EMI calculator.

This module defines dataclasses representing the entities used by the
calculator: the loan terms entered by the user, individual amortization
periods, the derived summary and the restructure comparison. Using dataclasses
makes it easy to construct, inspect and serialize these structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .exceptions import InvalidInput
from .utils import Number, tenure_to_months, to_decimal

MAX_TENURE_MONTHS = 600  # 50 years


def _parse_tenure(value: Any) -> int:
    if value is None or isinstance(value, bool):
        raise InvalidInput("tenure", "a whole number of periods is required")
    if isinstance(value, int):
        return value
    try:
        dec = to_decimal(value)
    except ValueError as exc:
        raise InvalidInput("tenure", str(exc)) from exc
    if dec != dec.to_integral_value():
        raise InvalidInput("tenure", f"must be a whole number; got {value}")
    return int(dec)


@dataclass(frozen=True)
class LoanTerms:
    """Validated inputs of a reducing-balance loan.

    Attributes
    ----------
    principal: Decimal
        Amount borrowed. Must be strictly positive.
    annual_rate: Decimal
        Nominal annual interest rate in percent (``12`` means 12 % p.a.). Zero
        is allowed and describes an interest-free loan.
    tenure_months: int
        Number of monthly installments, between 1 and ``MAX_TENURE_MONTHS``.
    """

    principal: Decimal
    annual_rate: Decimal
    tenure_months: int

    def __post_init__(self) -> None:
        if not isinstance(self.principal, Decimal) or not self.principal.is_finite():
            raise InvalidInput("principal", "must be a finite Decimal")
        if not isinstance(self.annual_rate, Decimal) or not self.annual_rate.is_finite():
            raise InvalidInput("rate", "must be a finite Decimal")
        if isinstance(self.tenure_months, bool) or not isinstance(self.tenure_months, int):
            raise InvalidInput("tenure", "must be an integer number of months")
        if self.principal <= 0:
            raise InvalidInput("principal", "must be greater than zero")
        if self.annual_rate < 0:
            raise InvalidInput("rate", "must not be negative")
        if self.tenure_months <= 0:
            raise InvalidInput("tenure", "must be at least one month")
        if self.tenure_months > MAX_TENURE_MONTHS:
            raise InvalidInput("tenure", f"must not exceed {MAX_TENURE_MONTHS} months")

    @property
    def monthly_rate(self) -> Decimal:
        """Periodic rate as a fraction: ``annual_rate / 12 / 100``."""
        return self.annual_rate / Decimal(12) / Decimal(100)

    @classmethod
    def from_values(
        cls,
        principal: Optional[Number],
        annual_rate: Optional[Number],
        tenure: Optional[Number],
        tenure_unit: str = "months",
    ) -> "LoanTerms":
        """Build terms from raw form or CLI values.

        Strings may contain thousands separators. ``tenure_unit`` of
        ``"years"`` multiplies the tenure by twelve before validation.
        """
        try:
            principal_value = to_decimal(principal)  # type: ignore[arg-type]
        except ValueError as exc:
            raise InvalidInput("principal", str(exc)) from exc
        try:
            rate_value = to_decimal(annual_rate)  # type: ignore[arg-type]
        except ValueError as exc:
            raise InvalidInput("rate", str(exc)) from exc
        try:
            months = tenure_to_months(_parse_tenure(tenure), tenure_unit)
        except InvalidInput:
            raise
        except ValueError as exc:
            raise InvalidInput("tenure_unit", str(exc)) from exc
        return cls(principal=principal_value, annual_rate=rate_value, tenure_months=months)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": float(self.principal),
            "annual_rate": float(self.annual_rate),
            "tenure_months": self.tenure_months,
        }


@dataclass
class AmortizationPeriod:
    """One month of the amortization schedule.

    ``principal_component + interest_component == installment`` for every
    period. ``closing_balance`` never drops below zero.
    """

    period: int
    installment: Decimal
    principal_component: Decimal
    interest_component: Decimal
    opening_balance: Decimal
    closing_balance: Decimal
    due_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "installment": float(self.installment),
            "principal": float(self.principal_component),
            "interest": float(self.interest_component),
            "opening_balance": float(self.opening_balance),
            "closing_balance": float(self.closing_balance),
        }


@dataclass
class AmortizationSummary:
    """Totals derived from a schedule; never persisted."""

    principal: Decimal
    installment: Decimal
    tenure_months: int
    total_payable: Decimal
    total_interest: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": float(self.principal),
            "installment": float(self.installment),
            "tenure_months": self.tenure_months,
            "total_payable": float(self.total_payable),
            "total_interest": float(self.total_interest),
        }


@dataclass
class EmiResult:
    """Everything a single calculation produces."""

    terms: LoanTerms
    installment: Decimal
    schedule: List[AmortizationPeriod] = field(default_factory=list)
    summary: Optional[AmortizationSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "terms": self.terms.to_dict(),
            "installment": float(self.installment),
            "summary": self.summary.to_dict() if self.summary else None,
            "schedule": [p.to_dict() for p in self.schedule],
        }


@dataclass
class RestructurePreview:
    """Side-by-side view of the current and proposed repayment terms.

    Differences are ``proposed - current``: a negative ``emi_difference``
    means the borrower pays less each month.
    """

    current: AmortizationSummary
    proposed: AmortizationSummary
    current_rate: Decimal
    proposed_rate: Decimal
    emi_difference: Decimal
    emi_percent_change: Decimal
    total_interest_difference: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": {
                "emi_amount": float(self.current.installment),
                "interest_rate": float(self.current_rate),
                "remaining_emis": self.current.tenure_months,
                "total_remaining": float(self.current.total_payable),
                "total_interest": float(self.current.total_interest),
            },
            "proposed": {
                "emi_amount": float(self.proposed.installment),
                "interest_rate": float(self.proposed_rate),
                "new_tenure": self.proposed.tenure_months,
                "total_payable": float(self.proposed.total_payable),
                "total_interest": float(self.proposed.total_interest),
            },
            "comparison": {
                "emi_difference": float(self.emi_difference),
                "emi_percent_change": float(self.emi_percent_change),
                "total_interest_difference": float(self.total_interest_difference),
            },
        }
