from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from wage_engine.api.deps import get_container
from wage_engine.container import Container
from wage_engine.core.exceptions import ValidationError as WageEngineValidationError
from wage_engine.services.users import normalize_email

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def normalize(cls, value: str) -> str:
        try:
            return normalize_email(value)
        except WageEngineValidationError as exc:
            raise ValueError("Invalid email") from exc


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    email: str
    role: str


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, container: Container = Depends(get_container)) -> LoginResponse:
    issued = container.users.login(payload.email, payload.password)
    return LoginResponse(access_token=issued.access_token, email=issued.email, role=issued.role)
