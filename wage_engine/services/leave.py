"""Leave requests and the balances derived from approved ones."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from wage_engine.core.config import Settings
from wage_engine.core.exceptions import NotFoundError, ValidationError
from wage_engine.core.logging import get_logger
from wage_engine.core.security import Actor, require
from wage_engine.db.session import Database
from wage_engine.engine.calculator import non_negative
from wage_engine.models import Employee, LeaveCarryOver, LeaveRequest, WageApproval

from .batches import BatchCreated, build_approval_url, check_period, insert_batch

logger = get_logger(__name__)

# Yearly entitlement in days; None is unbounded.
LEAVE_CATEGORIES: dict[str, Optional[Decimal]] = {
    "annual": Decimal("10"),
    "sick": Decimal("10"),
    "bereavement": Decimal("5"),
    "maternity_paternity": Decimal("5"),
    "unpaid": None,
}

ZERO = Decimal("0")


@dataclass(frozen=True)
class LeaveBalance:
    leave_type: str
    base_entitlement: Optional[Decimal]
    carried_over: Decimal
    total_entitlement: Optional[Decimal]
    used_days: Decimal
    remaining: Optional[Decimal]


def leave_days(date_from: date, date_to: date) -> int:
    """Calendar days covered by a leave, both ends inclusive."""
    return (date_to - date_from).days + 1


def _check_leave_type(leave_type: str) -> None:
    if leave_type not in LEAVE_CATEGORIES:
        raise ValidationError(f"Unknown leave type: {leave_type}", field="leave_type")


class LeaveService:
    def __init__(self, database: Database, settings: Settings):
        self.database = database
        self.settings = settings

    def request_leave(
        self,
        employee_id: str,
        leave_type: str,
        date_from: date,
        date_to: date,
        initiator: Actor,
        notes: Optional[str] = None,
    ) -> BatchCreated:
        """Open a single-request approval batch. Balances are not capped here."""
        require(initiator, "leave:request")
        _check_leave_type(leave_type)
        check_period(date_from, date_to)

        with self.database.transaction() as db:
            employee = db.get(Employee, employee_id)
            if employee is None:
                raise NotFoundError("Employee", employee_id)
            request = LeaveRequest(
                employee_id=employee.id,
                employee_name=employee.name,
                leave_type=leave_type,
                date_from=date_from,
                date_to=date_to,
                notes=(notes or "").strip() or None,
            )
            batch = insert_batch(
                db,
                subject_type="leave_request",
                initiator=initiator,
                date_from=date_from,
                date_to=date_to,
                children=[request],
            )
            created = BatchCreated(
                batch_id=batch.id,
                token=batch.token,
                approval_url=build_approval_url(self.settings, batch.token),
            )

        logger.info(
            "leave_requested",
            batch_id=created.batch_id,
            employee_id=employee_id,
            leave_type=leave_type,
            days=leave_days(date_from, date_to),
        )
        return created

    def set_carry_over(self, employee_id: str, leave_type: str, year: int, days, actor: Actor) -> Decimal:
        require(actor, "leave:carry_over")
        _check_leave_type(leave_type)
        if LEAVE_CATEGORIES[leave_type] is None:
            raise ValidationError(f"{leave_type} leave has no entitlement to carry over", field="leave_type")
        amount = non_negative(days, "days")

        with self.database.transaction() as db:
            row = (
                db.query(LeaveCarryOver)
                .filter(
                    LeaveCarryOver.employee_id == employee_id,
                    LeaveCarryOver.leave_type == leave_type,
                    LeaveCarryOver.year == year,
                )
                .with_for_update()
                .one_or_none()
            )
            if row is None:
                db.add(LeaveCarryOver(employee_id=employee_id, leave_type=leave_type, year=year, days=amount))
            else:
                row.days = amount

        logger.info("leave_carry_over_set", employee_id=employee_id, leave_type=leave_type, year=year, days=str(amount))
        return amount

    def carry_over_for_year(self, employee_id: str, year: int) -> dict[str, Decimal]:
        with self.database.session() as db:
            rows = (
                db.query(LeaveCarryOver)
                .filter(LeaveCarryOver.employee_id == employee_id, LeaveCarryOver.year == year)
                .all()
            )
        return {row.leave_type: Decimal(row.days) for row in rows}

    def compute_balances(self, employee_id: str, year: int) -> list[LeaveBalance]:
        """Balance per category for ``year``.

        Only approved leave counts, and a leave is charged in full to the year
        it starts in, even when it runs into the next one.
        """
        carry_over = self.carry_over_for_year(employee_id, year)
        with self.database.session() as db:
            approved = (
                db.query(LeaveRequest)
                .join(WageApproval, LeaveRequest.approval_id == WageApproval.id)
                .filter(
                    LeaveRequest.employee_id == employee_id,
                    WageApproval.subject_type == "leave_request",
                    WageApproval.status == "approved",
                    LeaveRequest.date_from >= date(year, 1, 1),
                    LeaveRequest.date_from <= date(year, 12, 31),
                )
                .all()
            )

        used: dict[str, Decimal] = {leave_type: ZERO for leave_type in LEAVE_CATEGORIES}
        for request in approved:
            if request.leave_type in used:
                used[request.leave_type] += leave_days(request.date_from, request.date_to)

        balances = []
        for leave_type, base in LEAVE_CATEGORIES.items():
            carried = carry_over.get(leave_type, ZERO)
            if base is None:
                total = remaining = None
            else:
                total = base + carried
                remaining = max(ZERO, total - used[leave_type])
            balances.append(
                LeaveBalance(
                    leave_type=leave_type,
                    base_entitlement=base,
                    carried_over=carried,
                    total_entitlement=total,
                    used_days=used[leave_type],
                    remaining=remaining,
                )
            )
        return balances
