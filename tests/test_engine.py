from datetime import date
from decimal import Decimal

import pytest

from emi_calc.data_models import LoanTerms
from emi_calc.engine import (
    aggregate_yearly,
    calculate,
    compute_installment,
    compute_summary,
    generate_schedule,
    preview_restructure,
)
from emi_calc.exceptions import InvalidInput, LoanCalculationError, NotComputable


def test_one_lakh_at_twelve_percent_for_a_year():
    assert compute_installment(100_000, 12, 12) == Decimal("8885")
    schedule = generate_schedule(100_000, 12, 12)
    assert len(schedule) == 12
    assert [p.period for p in schedule] == list(range(1, 13))
    summary = compute_summary(schedule, 100_000)
    assert summary.total_payable == Decimal("106620")
    assert summary.total_interest == Decimal("6620")
    assert schedule[-1].closing_balance <= 12


def test_installment_to_paise():
    assert compute_installment(100_000, 12, 12, places=2) == Decimal("8884.88")


def test_first_period_split():
    first = generate_schedule(100_000, 12, 12)[0]
    assert first.interest_component == Decimal("1000")
    assert first.principal_component == Decimal("7885")
    assert first.opening_balance == Decimal("100000")
    assert first.closing_balance == Decimal("92115")


def test_calculation_is_idempotent():
    assert generate_schedule("500000", "10.5", 60) == generate_schedule("500000", "10.5", 60)
    terms = LoanTerms.from_values(250_000, 9.25, 36)
    assert calculate(terms).to_dict() == calculate(terms).to_dict()


@pytest.mark.parametrize(
    "principal,rate,tenure",
    [(100_000, 12, 12), (500_000, 10.5, 60), (75_000, 0, 7)],
)
def test_schedule_invariants(principal, rate, tenure):
    schedule = generate_schedule(principal, rate, tenure)
    installment = compute_installment(principal, rate, tenure)
    previous = Decimal(principal)
    for period in schedule:
        assert period.principal_component + period.interest_component == period.installment
        assert period.installment == installment
        assert period.closing_balance <= previous
        assert period.closing_balance >= 0
        previous = period.closing_balance
    assert schedule[-1].closing_balance <= tenure


def test_zero_rate_is_interest_free():
    schedule = generate_schedule(100_000, 0, 10)
    assert compute_installment(100_000, 0, 10) == Decimal("10000")
    assert all(p.interest_component == 0 for p in schedule)
    assert all(p.principal_component == Decimal("10000") for p in schedule)
    assert schedule[-1].closing_balance == 0
    assert compute_summary(schedule, 100_000).total_interest == 0


def test_long_tenure_shifts_from_interest_to_principal():
    schedule = generate_schedule(500_000, 10.5, 60)
    assert len(schedule) == 60
    for earlier, later in zip(schedule, schedule[1:]):
        assert later.interest_component < earlier.interest_component
        assert later.principal_component > earlier.principal_component


def test_single_period_loan():
    schedule = generate_schedule(50_000, 12, 1)
    assert len(schedule) == 1
    assert schedule[0].installment == Decimal("50500")
    assert schedule[0].principal_component == Decimal("50000")
    assert schedule[0].closing_balance == 0


def test_summary_matches_installment_times_tenure():
    result = calculate(LoanTerms.from_values(500_000, 10.5, 60))
    assert result.summary.total_payable == result.installment * 60
    assert result.summary.total_interest == result.summary.total_payable - Decimal(500_000)
    assert result.summary.tenure_months == 60


def test_settle_final_closes_at_zero():
    schedule = generate_schedule(500_000, 10.5, 60, settle_final=True)
    last = schedule[-1]
    assert last.closing_balance == 0
    assert last.principal_component == last.opening_balance
    assert last.principal_component + last.interest_component == last.installment
    summary = compute_summary(schedule, 500_000)
    assert summary.total_payable == sum(p.installment for p in schedule)


def test_due_dates_follow_first_due_date():
    schedule = generate_schedule(100_000, 12, 3, first_due_date=date(2024, 1, 31))
    assert [p.due_date for p in schedule] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]


def test_tenure_in_years():
    terms = LoanTerms.from_values("1,00,000", "12", 2, tenure_unit="years")
    assert terms.tenure_months == 24
    assert len(calculate(terms).schedule) == 24


@pytest.mark.parametrize(
    "principal,rate,tenure",
    [
        (0, 12, 12),
        (-1, 12, 12),
        (100_000, -0.5, 12),
        (100_000, 12, 0),
        (100_000, 12, -3),
        (None, 12, 12),
        (100_000, None, 12),
        (100_000, 12, None),
        ("abc", 12, 12),
        (100_000, "twelve", 12),
        (100_000, 12, 12.5),
        (100_000, 12, True),
        ("NaN", 12, 12),
    ],
)
def test_invalid_input_is_rejected(principal, rate, tenure):
    with pytest.raises(InvalidInput):
        compute_installment(principal, rate, tenure)
    with pytest.raises(InvalidInput):
        generate_schedule(principal, rate, tenure)


def test_invalid_input_names_the_field():
    with pytest.raises(InvalidInput) as excinfo:
        compute_installment(100_000, 12, 0)
    assert excinfo.value.field == "tenure"


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        compute_installment(0, 12, 12)
    assert issubclass(NotComputable, LoanCalculationError)


def test_installment_rounding_to_zero_is_not_computable():
    with pytest.raises(NotComputable):
        compute_installment(1, 0, 12)


def test_summary_of_empty_schedule_is_not_computable():
    with pytest.raises(NotComputable):
        compute_summary([], 100_000)


def test_preview_restructure_longer_tenure_lowers_emi():
    preview = preview_restructure(300_000, 12, 24, new_tenure_months=36)
    assert preview.current.installment == compute_installment(300_000, 12, 24)
    assert preview.proposed.installment == compute_installment(300_000, 12, 36)
    assert preview.proposed.tenure_months == 36
    assert preview.proposed_rate == preview.current_rate == Decimal("12")
    assert preview.emi_difference < 0
    assert preview.total_interest_difference > 0
    assert Decimal("-30") < preview.emi_percent_change < Decimal("-29")


def test_preview_restructure_rate_cut():
    preview = preview_restructure(300_000, 12, 24, new_rate=0)
    assert preview.proposed.installment == Decimal("12500")
    assert preview.proposed.total_interest == 0
    assert preview.total_interest_difference == -preview.current.total_interest
    data = preview.to_dict()
    assert data["proposed"]["new_tenure"] == 24
    assert data["current"]["remaining_emis"] == 24


def test_preview_restructure_needs_a_change():
    with pytest.raises(InvalidInput):
        preview_restructure(300_000, 12, 24)


def test_aggregate_yearly():
    schedule = generate_schedule(100_000, 12, 18)
    years = aggregate_yearly(schedule)
    assert [y["year"] for y in years] == [1, 2]
    assert years[0]["installment"] == schedule[0].installment * 12
    assert years[1]["installment"] == schedule[0].installment * 6
    assert years[0]["interest"] == sum(p.interest_component for p in schedule[:12])
    assert years[1]["closing_balance"] == schedule[-1].closing_balance
    assert aggregate_yearly([]) == []


def test_tenure_above_fifty_years_is_rejected():
    assert len(generate_schedule(100_000, 12, 600)) == 600
    with pytest.raises(InvalidInput) as excinfo:
        compute_installment(100_000, 1200, 4_000_000)
    assert excinfo.value.field == "tenure"
    with pytest.raises(InvalidInput):
        LoanTerms.from_values(100_000, 12, 51, tenure_unit="years")


def test_rate_overflowing_the_decimal_context_is_not_computable():
    with pytest.raises(NotComputable):
        compute_installment(100_000, "1E+1700", 600)


def test_non_string_tenure_unit_is_invalid_input():
    with pytest.raises(InvalidInput) as excinfo:
        LoanTerms.from_values(100_000, 12, 12, tenure_unit=5)
    assert excinfo.value.field == "tenure_unit"


@pytest.mark.parametrize("places", [-1, 7, 30, True])
def test_places_outside_supported_range_are_rejected(places):
    with pytest.raises(InvalidInput) as excinfo:
        compute_installment(100_000, 12, 12, places=places)
    assert excinfo.value.field == "places"
    with pytest.raises(InvalidInput):
        calculate(LoanTerms.from_values(100_000, 12, 12), places=places)


def test_rounding_beyond_context_precision_is_not_computable():
    from emi_calc.utils import round_money

    with pytest.raises(NotComputable):
        round_money(Decimal("123456789"), 30)
