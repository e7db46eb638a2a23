from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from wage_engine.api.deps import get_actor, get_container
from wage_engine.container import Container
from wage_engine.core.security import Actor

router = APIRouter(prefix="/employees", tags=["employees"])


class NameBackfillRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class NameBackfillOut(BaseModel):
    employee_id: str
    name: str
    rows_updated: int


@router.post("/{employee_id}/name", response_model=NameBackfillOut)
def backfill_name(
    employee_id: str,
    payload: NameBackfillRequest,
    actor: Actor = Depends(get_actor),
    container: Container = Depends(get_container),
) -> NameBackfillOut:
    touched = container.batches.backfill_employee_name(employee_id, payload.name, actor)
    return NameBackfillOut(employee_id=employee_id, name=payload.name.strip(), rows_updated=touched)
