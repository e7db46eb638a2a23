"""Read-only aggregation over approval batches.

Totals are summed in Python from the stored (already quantized) Decimal
amounts so a batch total always equals the sum of its records exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from wage_engine.core.exceptions import NotFoundError, ValidationError
from wage_engine.db.session import Database
from wage_engine.models import Employee, WageApproval, WageRecord
from wage_engine.models.approval import STATUSES, SUBJECT_TYPES

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class BatchSummary:
    approval_id: str
    token: str
    subject_type: str
    date_from: date
    date_to: date
    status: str
    created_at: Optional[datetime]
    record_count: int
    total_wages: Decimal
    total_gross: Decimal
    total_fnpf: Decimal
    total_cash_wages: Decimal
    total_online_wages: Decimal


@dataclass(frozen=True)
class FnpfSummary:
    approval_id: str
    employee_count: int
    total_hours: Decimal
    normal_hours: Decimal
    overtime_hours: Decimal
    meal_allowance: Decimal
    fnpf_deduction: Decimal
    other_deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal


@dataclass(frozen=True)
class TransferRow:
    employee_id: str
    employee_name: str
    bank_code: str
    bank_account_number: str
    net_pay: Decimal


def _sum(values: Iterable) -> Decimal:
    total = ZERO
    for value in values:
        total += Decimal(value)
    return total


class SummaryService:
    def __init__(self, database: Database):
        self.database = database

    def list_summaries(self, status: Optional[str] = None, subject_type: str = "final_wage") -> list[BatchSummary]:
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Unknown status: {status}", field="status")
        if subject_type not in SUBJECT_TYPES:
            raise ValidationError(f"Unknown subject type: {subject_type}", field="subject_type")

        with self.database.session() as db:
            query = db.query(WageApproval).filter(WageApproval.subject_type == subject_type)
            if status is not None:
                query = query.filter(WageApproval.status == status)
            batches = query.order_by(WageApproval.date_from.desc(), WageApproval.created_at.desc()).all()
            if not batches:
                return []

            records = (
                db.query(WageRecord)
                .filter(WageRecord.approval_id.in_([batch.id for batch in batches]))
                .all()
            )
            methods = self._payment_methods(db, {record.employee_id for record in records})

        by_batch: dict[str, list[WageRecord]] = {batch.id: [] for batch in batches}
        for record in records:
            by_batch[record.approval_id].append(record)

        summaries = []
        for batch in batches:
            rows = by_batch[batch.id]
            online = [row for row in rows if methods.get(row.employee_id) == "online"]
            cash = [row for row in rows if methods.get(row.employee_id) != "online"]
            summaries.append(
                BatchSummary(
                    approval_id=batch.id,
                    token=batch.token,
                    subject_type=batch.subject_type,
                    date_from=batch.date_from,
                    date_to=batch.date_to,
                    status=batch.status,
                    created_at=batch.created_at,
                    record_count=len(rows),
                    total_wages=_sum(row.net_pay for row in rows),
                    total_gross=_sum(row.gross_pay for row in rows),
                    total_fnpf=_sum(row.fnpf_deduction for row in rows),
                    total_cash_wages=_sum(row.net_pay for row in cash),
                    total_online_wages=_sum(row.net_pay for row in online),
                )
            )
        return summaries

    def fnpf_summary(self, batch_id: str) -> FnpfSummary:
        """Totals over the FNPF-eligible employees of one wage batch."""
        with self.database.session() as db:
            batch = db.get(WageApproval, batch_id)
            if batch is None:
                raise NotFoundError("Approval", batch_id)
            rows = [record for record in batch.wage_records if record.fnpf_eligible]

        return FnpfSummary(
            approval_id=batch_id,
            employee_count=len({row.employee_id for row in rows}),
            total_hours=_sum(row.total_hours for row in rows),
            normal_hours=_sum(row.normal_hours for row in rows),
            overtime_hours=_sum(row.overtime_hours for row in rows),
            meal_allowance=_sum(row.meal_allowance for row in rows),
            fnpf_deduction=_sum(row.fnpf_deduction for row in rows),
            other_deductions=_sum(row.other_deductions for row in rows),
            gross_pay=_sum(row.gross_pay for row in rows),
            net_pay=_sum(row.net_pay for row in rows),
        )

    def online_transfer_rows(self, batch_id: str) -> list[TransferRow]:
        """Bank transfer lines for online-paid employees. Approved batches only."""
        with self.database.session() as db:
            batch = db.get(WageApproval, batch_id)
            if batch is None:
                raise NotFoundError("Approval", batch_id)
            if batch.subject_type != "final_wage" or batch.status != "approved":
                raise ValidationError("Only approved wage batches can be exported", field="batch_id")
            records = list(batch.wage_records)
            ids = {record.employee_id for record in records}
            employees = {}
            if ids:
                employees = {employee.id: employee for employee in db.query(Employee).filter(Employee.id.in_(ids))}

        rows = []
        for record in records:
            employee = employees.get(record.employee_id)
            if employee is None or employee.payment_method != "online":
                continue
            rows.append(
                TransferRow(
                    employee_id=record.employee_id,
                    employee_name=record.employee_name,
                    bank_code=employee.bank_code or "",
                    bank_account_number=employee.bank_account_number or "",
                    net_pay=Decimal(record.net_pay),
                )
            )
        return rows

    @staticmethod
    def _payment_methods(db, employee_ids: set[str]) -> dict[str, str]:
        # Missing employees fall through to cash.
        if not employee_ids:
            return {}
        rows = db.query(Employee.id, Employee.payment_method).filter(Employee.id.in_(employee_ids)).all()
        return {employee_id: method for employee_id, method in rows}
