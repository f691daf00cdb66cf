"""Errors raised by the EMI calculator.

Every failure is detected at the calculation boundary and raised as a subclass
of :class:`LoanCalculationError`. The base class derives from ``ValueError`` so
callers that already guard numeric parsing with ``except ValueError`` keep
working.
"""


class LoanCalculationError(ValueError):
    """Base class for calculator errors."""


class InvalidInput(LoanCalculationError):
    """Principal, rate or tenure is missing, non-numeric, zero or negative.

    A rate of exactly zero is valid (interest-free loan) and never raises.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class NotComputable(LoanCalculationError):
    """The inputs are valid but no meaningful installment or schedule exists."""
