from .data_models import AmortizationPeriod, AmortizationSummary, EmiResult, LoanTerms, RestructurePreview
from .engine import aggregate_yearly, calculate, compute_installment, compute_summary, generate_schedule, preview_restructure
from .exceptions import InvalidInput, LoanCalculationError, NotComputable

__all__ = [
    "AmortizationPeriod",
    "AmortizationSummary",
    "EmiResult",
    "LoanTerms",
    "RestructurePreview",
    "aggregate_yearly",
    "calculate",
    "compute_installment",
    "compute_summary",
    "generate_schedule",
    "preview_restructure",
    "InvalidInput",
    "LoanCalculationError",
    "NotComputable",
]
