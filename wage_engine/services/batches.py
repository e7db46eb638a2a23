"""Approval batches: creation, lookup, locked edits and atomic deletion.

A batch groups computed records under one secret token. Every multi-row
mutation runs in a single ``Database.transaction()``; the batch row is locked
first (``SELECT ... FOR UPDATE``) wherever the batch's state changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from hmac import compare_digest
from typing import Iterable, Optional, Sequence
from urllib.parse import urlencode

from sqlalchemy import update
from sqlalchemy.orm import Session

from wage_engine.core.config import Settings
from wage_engine.core.exceptions import NotFoundError, ValidationError
from wage_engine.core.logging import get_logger
from wage_engine.core.security import Actor, new_approval_token, require
from wage_engine.db.session import Database
from wage_engine.engine.calculator import ZERO, Number, WageCalculator, non_negative, quantize_money
from wage_engine.engine.models import EmployeePayProfile, PayPolicy, WageCalculation
from wage_engine.models import Employee, LeaveRequest, TimesheetEntry, WageApproval, WageRecord
from wage_engine.models.approval import SUBJECT_TYPES

logger = get_logger(__name__)


@dataclass(frozen=True)
class PeriodWage:
    """A computed wage bound to the pay period it covers."""

    calculation: WageCalculation
    date_from: date
    date_to: date


@dataclass(frozen=True)
class WageEntry:
    employee_id: str
    total_hours: Number
    meal_allowance: Number = 0
    other_deductions: Number = 0


@dataclass(frozen=True)
class RecordEdit:
    record_id: str
    total_hours: Number
    meal_allowance: Number = 0
    other_deductions: Number = 0


@dataclass(frozen=True)
class TimesheetDay:
    employee_id: str
    entry_date: date
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    lunch_in: Optional[time] = None
    lunch_out: Optional[time] = None
    is_present: bool = True
    meal_allowance: Number = 0
    overtime_reason: Optional[str] = None


@dataclass(frozen=True)
class BatchCreated:
    batch_id: str
    token: str
    approval_url: str


@dataclass
class BatchView:
    batch: WageApproval
    records: list = field(default_factory=list)


def build_approval_url(settings: Settings, token: str) -> str:
    return f"{settings.base_url}{settings.approval_path}?{urlencode({'token': token})}"


def check_period(date_from: date, date_to: date) -> None:
    if date_from is None or date_to is None:
        raise ValidationError("Period start and end are required", field="date_from")
    if date_to < date_from:
        raise ValidationError("Period end cannot be before its start", field="date_to")


def insert_batch(
    db: Session,
    *,
    subject_type: str,
    initiator: Actor,
    date_from: date,
    date_to: date,
    children: Iterable,
) -> WageApproval:
    """Add a pending batch and its owned rows to ``db``. The caller commits."""
    if subject_type not in SUBJECT_TYPES:
        raise ValidationError(f"Unknown subject type: {subject_type}", field="subject_type")
    check_period(date_from, date_to)

    batch = WageApproval(
        token=new_approval_token(),
        subject_type=subject_type,
        date_from=date_from,
        date_to=date_to,
        status="pending",
        initiated_by=initiator.identity,
    )
    db.add(batch)
    db.flush()
    for child in children:
        child.approval_id = batch.id
        db.add(child)
    db.flush()
    return batch


def load_records(batch: WageApproval) -> list:
    if batch.subject_type == "final_wage":
        return list(batch.wage_records)
    if batch.subject_type == "timesheet_review":
        return list(batch.timesheet_entries)
    return [batch.leave_request] if batch.leave_request is not None else []


def _record_from_calculation(item: PeriodWage) -> WageRecord:
    calc = item.calculation
    return WageRecord(
        employee_id=calc.employee_id,
        employee_name=calc.employee_name,
        hourly_wage=calc.hourly_wage,
        fnpf_eligible=calc.fnpf_eligible,
        normal_hours_threshold=calc.normal_hours_threshold,
        total_hours=calc.total_hours,
        normal_hours=calc.normal_hours,
        overtime_hours=calc.overtime_hours,
        meal_allowance=calc.meal_allowance,
        fnpf_deduction=calc.fnpf_deduction,
        other_deductions=calc.other_deductions,
        gross_pay=calc.gross_pay,
        net_pay=calc.net_pay,
        date_from=item.date_from,
        date_to=item.date_to,
    )


def _apply_calculation(record: WageRecord, calc: WageCalculation) -> None:
    record.total_hours = calc.total_hours
    record.normal_hours = calc.normal_hours
    record.overtime_hours = calc.overtime_hours
    record.meal_allowance = calc.meal_allowance
    record.fnpf_deduction = calc.fnpf_deduction
    record.other_deductions = calc.other_deductions
    record.gross_pay = calc.gross_pay
    record.net_pay = calc.net_pay


def _resolve_period(records: Sequence[PeriodWage], period: Optional[tuple[date, date]]) -> tuple[date, date]:
    periods = {(item.date_from, item.date_to) for item in records}
    if len(periods) != 1:
        raise ValidationError("All records in a batch must cover the same period", field="records")
    resolved = periods.pop()
    if period is not None and tuple(period) != resolved:
        raise ValidationError("Records do not match the batch period", field="records")
    check_period(*resolved)
    return resolved


def _load_profiles(db: Session, employee_ids: Iterable[str]) -> dict[str, Employee]:
    ids = set(employee_ids)
    employees = db.query(Employee).filter(Employee.id.in_(ids)).all() if ids else []
    found = {employee.id: employee for employee in employees}
    for employee_id in ids:
        if employee_id not in found:
            raise NotFoundError("Employee", employee_id)
        if not found[employee_id].is_active:
            raise ValidationError(f"Employee {employee_id} is inactive", field="employee_id")
    return found


class ApprovalBatchStore:
    def __init__(self, database: Database, settings: Settings, calculator: Optional[WageCalculator] = None):
        self.database = database
        self.settings = settings
        self.calculator = calculator or WageCalculator(PayPolicy.from_settings(settings))

    def _created(self, batch: WageApproval) -> BatchCreated:
        return BatchCreated(
            batch_id=batch.id,
            token=batch.token,
            approval_url=build_approval_url(self.settings, batch.token),
        )

    def create_batch(
        self,
        records: Sequence[PeriodWage],
        initiator: Actor,
        subject_type: str = "final_wage",
        period: Optional[tuple[date, date]] = None,
    ) -> BatchCreated:
        """Persist already-computed wages as one pending batch."""
        require(initiator, "batch:create")
        if not records:
            raise ValidationError("A batch needs at least one record", field="records")
        if subject_type != "final_wage":
            raise ValidationError("Computed wage records belong to final_wage batches", field="subject_type")
        date_from, date_to = _resolve_period(records, period)

        with self.database.transaction() as db:
            batch = insert_batch(
                db,
                subject_type=subject_type,
                initiator=initiator,
                date_from=date_from,
                date_to=date_to,
                children=[_record_from_calculation(item) for item in records],
            )
            created = self._created(batch)

        logger.info(
            "batch_created",
            batch_id=created.batch_id,
            subject_type=subject_type,
            records=len(records),
            initiated_by=initiator.identity,
        )
        return created

    def create_wage_batch(
        self,
        entries: Sequence[WageEntry],
        date_from: date,
        date_to: date,
        initiator: Actor,
    ) -> BatchCreated:
        """Compute each entry from the employee's stored profile, then batch the results."""
        require(initiator, "batch:create")
        if not entries:
            raise ValidationError("A batch needs at least one record", field="records")
        check_period(date_from, date_to)

        with self.database.session() as db:
            employees = _load_profiles(db, (entry.employee_id for entry in entries))

        records = [
            PeriodWage(
                calculation=self.calculator.calculate(
                    EmployeePayProfile.from_employee(employees[entry.employee_id]),
                    entry.total_hours,
                    entry.meal_allowance,
                    entry.other_deductions,
                ),
                date_from=date_from,
                date_to=date_to,
            )
            for entry in entries
        ]
        return self.create_batch(records, initiator, period=(date_from, date_to))

    def create_timesheet_batch(
        self,
        days: Sequence[TimesheetDay],
        date_from: date,
        date_to: date,
        initiator: Actor,
    ) -> BatchCreated:
        require(initiator, "batch:create")
        if not days:
            raise ValidationError("A timesheet review needs at least one day", field="records")
        check_period(date_from, date_to)
        for day in days:
            if not date_from <= day.entry_date <= date_to:
                raise ValidationError(f"{day.entry_date} is outside the review period", field="entry_date")

        entries = []
        with self.database.transaction() as db:
            employees = _load_profiles(db, (day.employee_id for day in days))
            for day in days:
                if day.is_present:
                    hours = self.calculator.classify_day(day.time_in, day.time_out, day.lunch_in, day.lunch_out)
                    normal, overtime = hours.normal_hours, hours.overtime_hours
                    meal = quantize_money(non_negative(day.meal_allowance, "meal_allowance"))
                else:
                    normal = overtime = meal = ZERO
                entries.append(
                    TimesheetEntry(
                        employee_id=day.employee_id,
                        employee_name=employees[day.employee_id].name,
                        entry_date=day.entry_date,
                        is_present=day.is_present,
                        time_in=day.time_in if day.is_present else None,
                        time_out=day.time_out if day.is_present else None,
                        lunch_in=day.lunch_in if day.is_present else None,
                        lunch_out=day.lunch_out if day.is_present else None,
                        normal_hours=normal,
                        overtime_hours=overtime,
                        meal_allowance=meal,
                        overtime_reason=(day.overtime_reason or "").strip() or None,
                    )
                )
            batch = insert_batch(
                db,
                subject_type="timesheet_review",
                initiator=initiator,
                date_from=date_from,
                date_to=date_to,
                children=entries,
            )
            created = self._created(batch)

        logger.info(
            "batch_created",
            batch_id=created.batch_id,
            subject_type="timesheet_review",
            records=len(entries),
            initiated_by=initiator.identity,
        )
        return created

    def get_batch_by_token(self, token: str) -> BatchView:
        token = (token or "").strip()
        if not token:
            raise NotFoundError("Approval")
        with self.database.session() as db:
            batch = db.query(WageApproval).filter(WageApproval.token == token).one_or_none()
            if batch is None or not compare_digest(batch.token, token):
                raise NotFoundError("Approval")
            return BatchView(batch=batch, records=load_records(batch))

    def get_batch(self, batch_id: str) -> BatchView:
        with self.database.session() as db:
            batch = db.get(WageApproval, batch_id)
            if batch is None:
                raise NotFoundError("Approval", batch_id)
            return BatchView(batch=batch, records=load_records(batch))

    def edit_batch_records(self, batch_id: str, edits: Sequence[RecordEdit], actor: Actor) -> BatchView:
        """Recompute edited records and send the batch back for approval.

        Each record keeps the hourly rate, FNPF eligibility and threshold it
        was first computed with. The batch returns to ``pending`` with its
        decision metadata cleared, all in the same transaction.
        """
        require(actor, "batch:edit")
        if not edits:
            raise ValidationError("No record edits supplied", field="edits")

        with self.database.transaction() as db:
            batch = _lock_batch(db, batch_id)
            if batch is None:
                raise NotFoundError("Approval", batch_id)
            if batch.subject_type != "final_wage":
                raise ValidationError("Only wage batches have editable records", field="batch_id")

            by_id = {record.id: record for record in batch.wage_records}
            for edit in edits:
                record = by_id.get(edit.record_id)
                if record is None:
                    raise NotFoundError("Wage record", edit.record_id)
                profile = EmployeePayProfile(
                    employee_id=record.employee_id,
                    name=record.employee_name,
                    hourly_wage=record.hourly_wage,
                    fnpf_eligible=bool(record.fnpf_eligible),
                    normal_hours_threshold_override=record.normal_hours_threshold,
                )
                calc = self.calculator.calculate(profile, edit.total_hours, edit.meal_allowance, edit.other_deductions)
                _apply_calculation(record, calc)

            previous_status = batch.status
            batch.status = "pending"
            batch.decided_by = None
            batch.decided_at = None
            db.flush()
            view = BatchView(batch=batch, records=list(batch.wage_records))

        logger.info(
            "batch_records_edited",
            batch_id=batch_id,
            edited=len(edits),
            previous_status=previous_status,
            edited_by=actor.identity,
        )
        return view

    def delete_batch(self, batch_id: str, actor: Actor) -> bool:
        """Delete a batch and every row it owns. Unknown ids are a logged no-op."""
        require(actor, "batch:delete")
        with self.database.transaction() as db:
            batch = _lock_batch(db, batch_id)
            if batch is None:
                logger.warning("batch_delete_missing", batch_id=batch_id)
                return False
            removed = 0
            for model in (WageRecord, TimesheetEntry, LeaveRequest):
                removed += (
                    db.query(model)
                    .filter(model.approval_id == batch_id)
                    .delete(synchronize_session=False)
                )
            db.query(WageApproval).filter(WageApproval.id == batch_id).delete(synchronize_session=False)

        logger.info("batch_deleted", batch_id=batch_id, records=removed, deleted_by=actor.identity)
        return True

    def backfill_employee_name(self, employee_id: str, new_name: str, actor: Actor) -> int:
        """Rename an employee and carry the new name into their historical rows."""
        require(actor, "employee:backfill")
        name = (new_name or "").strip()
        if not name:
            raise ValidationError("Employee name cannot be blank", field="name")

        with self.database.transaction() as db:
            employee = db.get(Employee, employee_id)
            if employee is None:
                raise NotFoundError("Employee", employee_id)
            employee.name = name
            touched = 0
            for model in (WageRecord, TimesheetEntry, LeaveRequest):
                result = db.execute(
                    update(model)
                    .where(model.employee_id == employee_id)
                    .values(employee_name=name)
                    .execution_options(synchronize_session=False)
                )
                touched += result.rowcount or 0

        logger.info("employee_name_backfilled", employee_id=employee_id, rows=touched, by=actor.identity)
        return touched


def _lock_batch(db: Session, batch_id: str) -> Optional[WageApproval]:
    return (
        db.query(WageApproval)
        .filter(WageApproval.id == batch_id)
        .with_for_update()
        .one_or_none()
    )
