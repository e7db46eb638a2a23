from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from wage_engine.api.deps import get_actor, get_container
from wage_engine.container import Container
from wage_engine.core.security import Actor, require
from wage_engine.services.batches import BatchView, RecordEdit, TimesheetDay, WageEntry

router = APIRouter(prefix="/approvals", tags=["approvals"])


class WageEntryIn(BaseModel):
    employee_id: str
    total_hours: Decimal = Field(..., ge=0)
    meal_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)


class WageBatchCreate(BaseModel):
    date_from: date
    date_to: date
    entries: list[WageEntryIn] = Field(..., min_length=1)


class TimesheetDayIn(BaseModel):
    employee_id: str
    entry_date: date
    is_present: bool = True
    time_in: time | None = None
    time_out: time | None = None
    lunch_in: time | None = None
    lunch_out: time | None = None
    meal_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    overtime_reason: str | None = Field(default=None, max_length=500)


class TimesheetBatchCreate(BaseModel):
    date_from: date
    date_to: date
    days: list[TimesheetDayIn] = Field(..., min_length=1)


class BatchCreatedOut(BaseModel):
    batch_id: str
    approval_url: str


class RecordEditIn(BaseModel):
    record_id: str
    total_hours: Decimal = Field(..., ge=0)
    meal_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)


class RecordEditRequest(BaseModel):
    edits: list[RecordEditIn] = Field(..., min_length=1)


class DecisionRequest(BaseModel):
    token: str = Field(..., min_length=1)
    status: Literal["approved", "declined"]


class WageRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    hourly_wage: Decimal
    total_hours: Decimal
    normal_hours: Decimal
    overtime_hours: Decimal
    meal_allowance: Decimal
    fnpf_deduction: Decimal
    other_deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    date_from: date
    date_to: date


class TimesheetEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    entry_date: date
    is_present: bool
    time_in: time | None = None
    time_out: time | None = None
    lunch_in: time | None = None
    lunch_out: time | None = None
    normal_hours: Decimal
    overtime_hours: Decimal
    meal_allowance: Decimal
    overtime_reason: str | None = None


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    leave_type: str
    date_from: date
    date_to: date
    notes: str | None = None


class BatchOut(BaseModel):
    id: str
    subject_type: str
    date_from: date
    date_to: date
    status: str
    initiated_by: str
    decided_by: str | None = None
    decided_at: datetime | None = None
    wage_records: list[WageRecordOut] = []
    timesheet_entries: list[TimesheetEntryOut] = []
    leave_requests: list[LeaveRequestOut] = []


class DecisionOut(BaseModel):
    batch: BatchOut
    changed: bool
    previous_status: str
    already_decided: bool


class SummaryOut(BaseModel):
    approval_id: str
    token: str
    subject_type: str
    date_from: date
    date_to: date
    status: str
    created_at: datetime | None = None
    record_count: int
    total_wages: Decimal
    total_gross: Decimal
    total_fnpf: Decimal
    total_cash_wages: Decimal
    total_online_wages: Decimal


class FnpfSummaryOut(BaseModel):
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


class TransferRowOut(BaseModel):
    employee_id: str
    employee_name: str
    bank_code: str
    bank_account_number: str
    net_pay: Decimal


def _batch_out(view: BatchView) -> BatchOut:
    batch = view.batch
    out = BatchOut(
        id=batch.id,
        subject_type=batch.subject_type,
        date_from=batch.date_from,
        date_to=batch.date_to,
        status=batch.status,
        initiated_by=batch.initiated_by,
        decided_by=batch.decided_by,
        decided_at=batch.decided_at,
    )
    if batch.subject_type == "final_wage":
        out.wage_records = [WageRecordOut.model_validate(record) for record in view.records]
    elif batch.subject_type == "timesheet_review":
        out.timesheet_entries = [TimesheetEntryOut.model_validate(entry) for entry in view.records]
    else:
        out.leave_requests = [LeaveRequestOut.model_validate(request) for request in view.records]
    return out


@router.post("/wages", response_model=BatchCreatedOut, status_code=201)
def create_wage_batch(
    payload: WageBatchCreate,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> BatchCreatedOut:
    created = container.batches.create_wage_batch(
        [WageEntry(**entry.model_dump()) for entry in payload.entries],
        payload.date_from,
        payload.date_to,
        actor,
    )
    return BatchCreatedOut(batch_id=created.batch_id, approval_url=created.approval_url)


@router.post("/timesheets", response_model=BatchCreatedOut, status_code=201)
def create_timesheet_batch(
    payload: TimesheetBatchCreate,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> BatchCreatedOut:
    created = container.batches.create_timesheet_batch(
        [TimesheetDay(**day.model_dump()) for day in payload.days],
        payload.date_from,
        payload.date_to,
        actor,
    )
    return BatchCreatedOut(batch_id=created.batch_id, approval_url=created.approval_url)


@router.get("/by-token", response_model=BatchOut)
def get_batch_by_token(token: str = Query(..., min_length=1), container: Container = Depends(get_container)):
    return _batch_out(container.batches.get_batch_by_token(token))


@router.post("/decide", response_model=DecisionOut)
def decide(
    payload: DecisionRequest,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> DecisionOut:
    result = container.workflow.decide(payload.token, payload.status, actor)
    view = container.batches.get_batch(result.batch.id)
    return DecisionOut(
        batch=_batch_out(view),
        changed=result.changed,
        previous_status=result.previous_status,
        already_decided=result.conflict is not None,
    )


@router.get("/summaries", response_model=list[SummaryOut])
def list_summaries(
    status: Literal["pending", "approved", "declined"] | None = None,
    subject_type: Literal["final_wage", "timesheet_review", "leave_request"] = "final_wage",
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> list[SummaryOut]:
    require(actor, "batch:read")
    summaries = container.summaries.list_summaries(status=status, subject_type=subject_type)
    return [SummaryOut(**asdict(summary)) for summary in summaries]


@router.get("/{approval_id}", response_model=BatchOut)
def get_batch(
    approval_id: str,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
):
    require(actor, "batch:read")
    return _batch_out(container.batches.get_batch(approval_id))


@router.patch("/{approval_id}/records", response_model=BatchOut)
def edit_records(
    approval_id: str,
    payload: RecordEditRequest,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
):
    edits = [RecordEdit(**edit.model_dump()) for edit in payload.edits]
    return _batch_out(container.batches.edit_batch_records(approval_id, edits, actor))


@router.delete("/{approval_id}", status_code=204)
def delete_batch(
    approval_id: str,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> Response:
    container.batches.delete_batch(approval_id, actor)
    return Response(status_code=204)


@router.get("/{approval_id}/fnpf-summary", response_model=FnpfSummaryOut)
def fnpf_summary(
    approval_id: str,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> FnpfSummaryOut:
    require(actor, "batch:read")
    return FnpfSummaryOut(**asdict(container.summaries.fnpf_summary(approval_id)))


@router.get("/{approval_id}/transfers", response_model=list[TransferRowOut])
def online_transfers(
    approval_id: str,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> list[TransferRowOut]:
    require(actor, "batch:read")
    return [TransferRowOut(**asdict(row)) for row in container.summaries.online_transfer_rows(approval_id)]
