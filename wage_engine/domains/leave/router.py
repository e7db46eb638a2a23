from __future__ import annotations

from dataclasses import asdict
from datetime import date
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from wage_engine.api.deps import get_actor, get_container
from wage_engine.container import Container
from wage_engine.core.security import Actor, require

router = APIRouter(prefix="/leave", tags=["leave"])

LeaveType = Literal["annual", "sick", "bereavement", "maternity_paternity", "unpaid"]


class LeaveRequestCreate(BaseModel):
    employee_id: str
    leave_type: LeaveType
    date_from: date
    date_to: date
    notes: str | None = Field(default=None, max_length=1000)


class LeaveRequestCreated(BaseModel):
    batch_id: str
    approval_url: str


class CarryOverUpdate(BaseModel):
    employee_id: str
    leave_type: LeaveType
    year: int = Field(..., ge=1900, le=9999)
    days: Decimal = Field(..., ge=0)


class CarryOverOut(BaseModel):
    employee_id: str
    leave_type: str
    year: int
    days: Decimal


class LeaveBalanceOut(BaseModel):
    leave_type: str
    base_entitlement: Decimal | None = None
    carried_over: Decimal
    total_entitlement: Decimal | None = None
    used_days: Decimal
    remaining: Decimal | None = None


@router.post("/requests", response_model=LeaveRequestCreated, status_code=201)
def request_leave(
    payload: LeaveRequestCreate,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> LeaveRequestCreated:
    created = container.leave.request_leave(
        payload.employee_id,
        payload.leave_type,
        payload.date_from,
        payload.date_to,
        actor,
        notes=payload.notes,
    )
    return LeaveRequestCreated(batch_id=created.batch_id, approval_url=created.approval_url)


@router.get("/balances/{employee_id}", response_model=list[LeaveBalanceOut])
def leave_balances(
    employee_id: str,
    year: int | None = Query(default=None, ge=1900, le=9999),
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> list[LeaveBalanceOut]:
    require(actor, "batch:read")
    balances = container.leave.compute_balances(employee_id, year or date.today().year)
    return [LeaveBalanceOut(**asdict(balance)) for balance in balances]


@router.put("/carry-over", response_model=CarryOverOut)
def set_carry_over(
    payload: CarryOverUpdate,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> CarryOverOut:
    days = container.leave.set_carry_over(payload.employee_id, payload.leave_type, payload.year, payload.days, actor)
    return CarryOverOut(employee_id=payload.employee_id, leave_type=payload.leave_type, year=payload.year, days=days)
