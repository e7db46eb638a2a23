"""Typed errors raised by the wage engine.

Every error carries a machine-readable ``code`` so callers (HTTP layer, CLI)
can branch on the type instead of parsing messages.
"""

from __future__ import annotations


class WageEngineError(Exception):
    code: str = "WAGE_ENGINE_ERROR"
    retryable: bool = False


class ValidationError(WageEngineError):
    """Malformed or missing input. Raised before anything is persisted."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(WageEngineError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, key: str | None = None):
        self.entity = entity
        self.key = key
        # Token lookups pass key=None so the secret never lands in a message.
        message = f"{entity} not found" if key is None else f"{entity} not found: {key}"
        super().__init__(message)


class ConflictError(WageEngineError):
    """A decision was attempted on a batch that is no longer pending."""

    code = "ALREADY_DECIDED"

    def __init__(self, batch_id: str, status: str):
        self.batch_id = batch_id
        self.status = status
        super().__init__(f"Approval {batch_id} has already been {status}")


class AuthorizationError(WageEngineError):
    """The caller is known but its role lacks the capability."""

    code = "FORBIDDEN"


class StorageUnavailable(WageEngineError):
    """Connection, timeout or transaction failure. The transaction was rolled back."""

    code = "STORAGE_UNAVAILABLE"
    retryable = True


class DuplicateConstraintError(WageEngineError):
    code = "DUPLICATE"

    def __init__(self, message: str, constraint: str | None = None):
        self.constraint = constraint
        super().__init__(message)


class AuthenticationError(WageEngineError):
    """Unknown credentials or bearer token."""

    code = "UNAUTHENTICATED"
