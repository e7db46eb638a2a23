from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PayPolicy:
    normal_hours_threshold: Decimal = Decimal("45")
    overtime_multiplier: Decimal = Decimal("1.5")
    fnpf_rate: Decimal = Decimal("0.08")
    daily_normal_hours: Decimal = Decimal("8")

    @classmethod
    def from_settings(cls, settings) -> "PayPolicy":
        return cls(
            normal_hours_threshold=Decimal(settings.normal_hours_threshold),
            overtime_multiplier=Decimal(settings.overtime_multiplier),
            fnpf_rate=Decimal(settings.fnpf_rate),
            daily_normal_hours=Decimal(settings.daily_normal_hours),
        )


DEFAULT_POLICY = PayPolicy()


@dataclass(frozen=True)
class EmployeePayProfile:
    employee_id: str
    name: str
    hourly_wage: Decimal
    payment_method: str = "cash"  # cash or online
    fnpf_eligible: bool = True
    normal_hours_threshold_override: Optional[Decimal] = None
    is_active: bool = True

    @classmethod
    def from_employee(cls, employee) -> "EmployeePayProfile":
        override = employee.normal_hours_threshold_override
        return cls(
            employee_id=employee.id,
            name=employee.name,
            hourly_wage=Decimal(employee.hourly_wage),
            payment_method=employee.payment_method,
            fnpf_eligible=bool(employee.fnpf_eligible),
            normal_hours_threshold_override=Decimal(override) if override is not None else None,
            is_active=bool(employee.is_active),
        )


@dataclass(frozen=True)
class WageCalculation:
    employee_id: str
    employee_name: str
    hourly_wage: Decimal
    fnpf_eligible: bool
    normal_hours_threshold: Decimal
    total_hours: Decimal
    normal_hours: Decimal
    overtime_hours: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    meal_allowance: Decimal
    fnpf_deduction: Decimal
    other_deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal

    def total_deductions(self) -> Decimal:
        return self.fnpf_deduction + self.other_deductions


@dataclass(frozen=True)
class DailyHours:
    worked_hours: Decimal
    normal_hours: Decimal
    overtime_hours: Decimal
