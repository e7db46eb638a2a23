from datetime import time
from decimal import Decimal

import pytest

from wage_engine.core.exceptions import ValidationError
from wage_engine.engine.calculator import WageCalculator, calculate_wage, classify_daily_hours
from wage_engine.engine.models import EmployeePayProfile, PayPolicy


def profile(rate="10.00", eligible=True, override=None) -> EmployeePayProfile:
    return EmployeePayProfile(
        employee_id="emp-1",
        name="John Doe",
        hourly_wage=Decimal(rate),
        fnpf_eligible=eligible,
        normal_hours_threshold_override=Decimal(override) if override is not None else None,
    )


def test_same_inputs_give_identical_results():
    first = calculate_wage(profile("12.37"), "47.25", "15.10", "3.33")
    second = calculate_wage(profile("12.37"), "47.25", "15.10", "3.33")

    assert first == second


def test_hours_up_to_threshold_are_all_normal():
    result = calculate_wage(profile(), 45)

    assert result.normal_hours == Decimal("45.00")
    assert result.overtime_hours == Decimal("0.00")
    assert result.overtime_pay == Decimal("0.00")
    assert result.gross_pay == Decimal("450.00")


def test_hours_past_threshold_are_paid_time_and_a_half():
    result = calculate_wage(profile(), 50)

    assert result.normal_hours == Decimal("45.00")
    assert result.overtime_hours == Decimal("5.00")
    assert result.overtime_pay == Decimal("75.00")
    assert result.gross_pay == Decimal("525.00")


def test_fnpf_only_applies_to_regular_pay():
    result = calculate_wage(profile(override="40"), 50, meal_allowance=20)

    assert result.normal_hours_threshold == Decimal("40.00")
    assert result.regular_pay == Decimal("400.00")
    assert result.overtime_pay == Decimal("150.00")
    assert result.gross_pay == Decimal("570.00")
    assert result.fnpf_deduction == Decimal("32.00")
    assert result.net_pay == Decimal("538.00")


def test_ineligible_employee_has_no_fnpf():
    result = calculate_wage(profile(eligible=False), 40)

    assert result.fnpf_deduction == Decimal("0.00")
    assert result.net_pay == result.gross_pay


def test_threshold_override_replaces_policy_threshold():
    result = calculate_wage(profile(override="48"), 48)

    assert result.overtime_hours == Decimal("0.00")
    assert result.normal_hours == Decimal("48.00")


def test_net_pay_is_floored_at_zero():
    result = calculate_wage(profile(), 10, other_deductions=500)

    assert result.gross_pay == Decimal("100.00")
    assert result.fnpf_deduction == Decimal("8.00")
    assert result.net_pay == Decimal("0.00")


def test_thousand_identical_records_sum_exactly():
    result = calculate_wage(profile("10.33"), "37.5", "7.15", "1.01")
    total = sum((calculate_wage(profile("10.33"), "37.5", "7.15", "1.01").net_pay for _ in range(1000)), Decimal("0"))

    assert total == result.net_pay * 1000


def test_net_pay_reconciles_with_rounded_parts():
    result = calculate_wage(profile("10.01"), "40.5")

    assert result.gross_pay == Decimal("405.41")
    assert result.fnpf_deduction == Decimal("32.43")
    assert result.net_pay == Decimal("372.98")
    assert result.net_pay == result.gross_pay - result.fnpf_deduction - result.other_deductions


@pytest.mark.parametrize(
    "rate, hours, meal, other",
    [
        ("12.37", "47.25", "15.10", "3.33"),
        ("10.33", "37.5", "7.15", "1.01"),
        ("9.99", "52.75", "0", "0.49"),
    ],
)
def test_gross_is_sum_of_rounded_parts(rate, hours, meal, other):
    result = calculate_wage(profile(rate), hours, meal, other)

    assert result.gross_pay == result.regular_pay + result.overtime_pay + result.meal_allowance
    assert result.net_pay == result.gross_pay - result.fnpf_deduction - result.other_deductions


def test_hours_are_rounded_to_cents_before_pay_is_computed():
    result = calculate_wage(profile(), "45.004")

    assert result.total_hours == Decimal("45.00")
    assert result.overtime_hours == Decimal("0.00")
    assert result.overtime_pay == Decimal("0.00")
    assert result.gross_pay == Decimal("450.00")


def test_recomputing_from_stored_hours_gives_the_same_pay():
    first = calculate_wage(profile("11.11"), "46.126", "2.005", "0.004")
    again = calculate_wage(profile("11.11"), first.total_hours, first.meal_allowance, first.other_deductions)

    assert again == first


def test_float_inputs_keep_their_decimal_value():
    result = calculate_wage(profile("10.00"), 0.1)

    assert result.total_hours == Decimal("0.10")
    assert result.gross_pay == Decimal("1.00")


@pytest.mark.parametrize("hours", [-1, "abc", float("nan"), float("inf"), True])
def test_invalid_hours_are_rejected(hours):
    with pytest.raises(ValidationError):
        calculate_wage(profile(), hours)


def test_custom_policy_is_used():
    policy = PayPolicy(normal_hours_threshold=Decimal("40"), overtime_multiplier=Decimal("2"), fnpf_rate=Decimal("0.10"))
    result = WageCalculator(policy).calculate(profile(), 42)

    assert result.overtime_pay == Decimal("40.00")
    assert result.fnpf_deduction == Decimal("40.00")


def test_daily_hours_subtract_lunch():
    hours = classify_daily_hours(time(8, 0), time(17, 30), time(12, 0), time(12, 30))

    assert hours.worked_hours == Decimal("9.00")
    assert hours.normal_hours == Decimal("8.00")
    assert hours.overtime_hours == Decimal("1.00")


def test_day_without_clock_out_counts_zero():
    hours = classify_daily_hours(time(8, 0), None)

    assert hours.worked_hours == Decimal("0")
    assert hours.overtime_hours == Decimal("0")


@pytest.mark.parametrize(
    "times",
    [
        (time(17, 0), time(8, 0), time(12, 0), time(12, 30)),
        (time(8, 0), time(17, 0), None, None),
        (time(8, 0), time(17, 0), time(12, 30), time(12, 0)),
        (time(8, 0), time(17, 0), time(7, 30), time(8, 30)),
    ],
)
def test_invalid_days_are_rejected(times):
    with pytest.raises(ValidationError):
        classify_daily_hours(*times)
