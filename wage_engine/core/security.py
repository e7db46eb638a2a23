from __future__ import annotations

import secrets
from dataclasses import dataclass
from hashlib import sha256
from typing import Literal

from .exceptions import AuthorizationError

Role = Literal["admin", "payroll", "approver", "viewer"]

ROLES: tuple[str, ...] = ("admin", "payroll", "approver", "viewer")

# Capability -> roles allowed to exercise it.
PERMISSIONS: dict[str, frozenset[str]] = {
    "batch:create": frozenset({"admin", "payroll"}),
    "batch:edit": frozenset({"admin", "payroll"}),
    "batch:delete": frozenset({"admin"}),
    "batch:decide": frozenset({"admin", "approver"}),
    "batch:read": frozenset({"admin", "payroll", "approver", "viewer"}),
    "leave:request": frozenset({"admin", "payroll"}),
    "leave:carry_over": frozenset({"admin"}),
    "employee:backfill": frozenset({"admin", "payroll"}),
}

APPROVAL_TOKEN_BYTES = 32


@dataclass(frozen=True)
class Actor:
    """An authenticated caller. ``identity`` is what gets recorded on batches."""

    identity: str
    role: str

    def can(self, capability: str) -> bool:
        return self.role in PERMISSIONS.get(capability, frozenset())


def require(actor: Actor, capability: str) -> None:
    if not actor.can(capability):
        raise AuthorizationError(f"{actor.identity} ({actor.role}) may not perform {capability}")


def new_approval_token() -> str:
    # 32 random bytes -> 256 bits of entropy, 43 urlsafe characters.
    return secrets.token_urlsafe(APPROVAL_TOKEN_BYTES)


def new_access_token() -> str:
    return secrets.token_urlsafe(32)


def hash_secret(raw: str) -> str:
    return sha256(raw.encode("utf-8")).hexdigest()


SYSTEM_ACTOR = Actor(identity="system", role="admin")
