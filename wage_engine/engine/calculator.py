"""Wage computation.

Everything here is pure: no database, no clock, no logging. Inputs (hours,
rate, allowance, deductions) are quantized to cents as they come in, the way
they are stored. Each pay part and the FNPF deduction is then rounded once,
and gross and net are exact sums of the rounded parts, so a stored record
always reconciles and recomputing it from its stored hours gives the same pay.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from wage_engine.core.exceptions import ValidationError

from .models import DEFAULT_POLICY, DailyHours, EmployeePayProfile, PayPolicy, WageCalculation

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0")
MINUTES_PER_HOUR = Decimal("60")


def to_decimal(value: Optional[Number], field: str) -> Decimal:
    """Parse a numeric input, rejecting anything that is not a finite number."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        if isinstance(value, Decimal):
            parsed = value
        elif isinstance(value, int):
            parsed = Decimal(value)
        elif isinstance(value, float):
            # str() keeps the shortest repr, so 0.1 stays 0.1 instead of its binary expansion.
            parsed = Decimal(str(value))
        elif isinstance(value, str):
            parsed = Decimal(value.strip() or "0")
        else:
            raise ValidationError(f"{field} must be a number", field=field)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is not a valid number: {value!r}", field=field) from exc
    if not parsed.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    return parsed


def non_negative(value: Optional[Number], field: str) -> Decimal:
    parsed = to_decimal(value, field)
    if parsed < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return parsed


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def split_hours(total_hours: Decimal, threshold: Decimal) -> Tuple[Decimal, Decimal]:
    normal = min(total_hours, threshold)
    overtime = max(ZERO, total_hours - threshold)
    return normal, overtime


class WageCalculator:
    def __init__(self, policy: PayPolicy = DEFAULT_POLICY):
        self.policy = policy

    def threshold_for(self, profile: EmployeePayProfile) -> Decimal:
        if profile.normal_hours_threshold_override is not None:
            return non_negative(profile.normal_hours_threshold_override, "normal_hours_threshold_override")
        return self.policy.normal_hours_threshold

    def calculate(
        self,
        profile: EmployeePayProfile,
        total_hours: Number,
        meal_allowance: Optional[Number] = None,
        other_deductions: Optional[Number] = None,
    ) -> WageCalculation:
        hours = quantize_money(non_negative(total_hours, "total_hours"))
        meal = quantize_money(non_negative(meal_allowance, "meal_allowance"))
        other = quantize_money(non_negative(other_deductions, "other_deductions"))
        rate = quantize_money(non_negative(profile.hourly_wage, "hourly_wage"))

        threshold = quantize_money(self.threshold_for(profile))
        normal_hours, overtime_hours = split_hours(hours, threshold)
        regular_pay = quantize_money(rate * normal_hours)
        overtime_pay = quantize_money(rate * overtime_hours * self.policy.overtime_multiplier)
        gross_pay = regular_pay + overtime_pay + meal

        # FNPF is levied on regular pay only: never on overtime or allowances.
        fnpf = quantize_money(regular_pay * self.policy.fnpf_rate if profile.fnpf_eligible else ZERO)
        net_pay = quantize_money(max(ZERO, gross_pay - fnpf - other))

        return WageCalculation(
            employee_id=profile.employee_id,
            employee_name=profile.name,
            hourly_wage=rate,
            fnpf_eligible=profile.fnpf_eligible,
            normal_hours_threshold=threshold,
            total_hours=hours,
            normal_hours=normal_hours,
            overtime_hours=overtime_hours,
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            meal_allowance=meal,
            fnpf_deduction=fnpf,
            other_deductions=other,
            gross_pay=gross_pay,
            net_pay=net_pay,
        )

    def classify_day(
        self,
        time_in: Optional[time],
        time_out: Optional[time],
        lunch_in: Optional[time] = None,
        lunch_out: Optional[time] = None,
    ) -> DailyHours:
        """Split one attendance day into normal and overtime hours.

        A day with no clock-out yet counts zero hours. Once clocked out the
        lunch interval is mandatory and must sit inside the working interval.
        """
        if time_in is None or time_out is None:
            return DailyHours(worked_hours=ZERO, normal_hours=ZERO, overtime_hours=ZERO)
        if time_out <= time_in:
            raise ValidationError("time_out must be after time_in", field="time_out")
        if lunch_in is None or lunch_out is None:
            raise ValidationError("lunch_in and lunch_out are required once time_out is set", field="lunch_in")
        if lunch_out <= lunch_in:
            raise ValidationError("lunch_out must be after lunch_in", field="lunch_out")
        if lunch_in < time_in or lunch_out > time_out:
            raise ValidationError("lunch must fall within working hours", field="lunch_in")

        worked_minutes = _minutes_between(time_in, time_out) - _minutes_between(lunch_in, lunch_out)
        worked = Decimal(worked_minutes) / MINUTES_PER_HOUR
        normal, overtime = split_hours(worked, self.policy.daily_normal_hours)
        return DailyHours(
            worked_hours=quantize_money(worked),
            normal_hours=quantize_money(normal),
            overtime_hours=quantize_money(overtime),
        )


def _minutes_between(start: time, end: time) -> int:
    anchor = date(2000, 1, 1)
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return int(delta.total_seconds() // 60)


_default_calculator = WageCalculator()


def calculate_wage(
    profile: EmployeePayProfile,
    total_hours: Number,
    meal_allowance: Optional[Number] = None,
    other_deductions: Optional[Number] = None,
    *,
    policy: Optional[PayPolicy] = None,
) -> WageCalculation:
    calculator = _default_calculator if policy is None else WageCalculator(policy)
    return calculator.calculate(profile, total_hours, meal_allowance, other_deductions)


def classify_daily_hours(
    time_in: Optional[time],
    time_out: Optional[time],
    lunch_in: Optional[time] = None,
    lunch_out: Optional[time] = None,
    *,
    policy: Optional[PayPolicy] = None,
) -> DailyHours:
    calculator = _default_calculator if policy is None else WageCalculator(policy)
    return calculator.classify_day(time_in, time_out, lunch_in, lunch_out)
