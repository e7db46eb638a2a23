from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from hmac import compare_digest
from typing import Callable, Optional

from wage_engine.core.exceptions import ConflictError, NotFoundError, ValidationError
from wage_engine.core.logging import get_logger
from wage_engine.core.observability import decision_counter, tracer
from wage_engine.core.security import Actor, require
from wage_engine.db.session import Database, utcnow
from wage_engine.models import WageApproval

logger = get_logger(__name__)

DECISIONS = ("approved", "declined")


@dataclass(frozen=True)
class DecisionResult:
    batch: WageApproval
    changed: bool
    previous_status: str

    @property
    def conflict(self) -> Optional[ConflictError]:
        """The "already decided" outcome, for callers that want it as an error."""
        if self.changed:
            return None
        return ConflictError(self.batch.id, self.batch.status)


class ApprovalWorkflow:
    """pending -> approved | declined, at most once per batch.

    The batch row is locked before its status is read, so concurrent callers
    on the same token serialize: the first one to get the lock while the
    batch is still pending decides it, every later one sees the decision.
    """

    def __init__(self, database: Database, clock: Callable[[], datetime] = utcnow):
        self.database = database
        self._clock = clock

    def decide(self, token: str, new_status: str, actor: Actor) -> DecisionResult:
        require(actor, "batch:decide")
        if new_status not in DECISIONS:
            raise ValidationError(f"Decision must be one of {', '.join(DECISIONS)}", field="status")
        token = (token or "").strip()
        if not token:
            raise NotFoundError("Approval")

        with tracer.start_as_current_span("approval.decide") as span:
            span.set_attribute("approval.decision", new_status)
            with self.database.transaction() as db:
                batch = (
                    db.query(WageApproval)
                    .filter(WageApproval.token == token)
                    .with_for_update()
                    .one_or_none()
                )
                if batch is None or not compare_digest(batch.token, token):
                    raise NotFoundError("Approval")

                previous_status = batch.status
                span.set_attribute("approval.id", batch.id)
                if not batch.is_pending:
                    result = DecisionResult(batch=batch, changed=False, previous_status=previous_status)
                else:
                    batch.status = new_status
                    batch.decided_by = actor.identity
                    batch.decided_at = self._clock()
                    db.flush()
                    result = DecisionResult(batch=batch, changed=True, previous_status=previous_status)
            span.set_attribute("approval.changed", result.changed)

        decision_counter.add(1, {"decision": new_status, "changed": result.changed})
        if result.changed:
            logger.info(
                "decision_recorded",
                batch_id=result.batch.id,
                status=new_status,
                decided_by=actor.identity,
            )
        else:
            logger.info(
                "decision_already_made",
                batch_id=result.batch.id,
                status=result.batch.status,
                attempted=new_status,
                attempted_by=actor.identity,
            )
        return result
