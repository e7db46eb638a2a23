import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from wage_engine.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from wage_engine.services.batches import RecordEdit, WageEntry
from wage_engine.services.workflow import ApprovalWorkflow

PERIOD = (date(2024, 3, 4), date(2024, 3, 10))


@pytest.fixture
def pending_batch(container, make_employee, payroll_actor):
    employee = make_employee()
    return container.batches.create_wage_batch([WageEntry(employee.id, 40)], *PERIOD, payroll_actor)


def test_decide_records_decision(container, pending_batch, approver):
    fixed = datetime(2024, 3, 11, 9, 30)
    workflow = ApprovalWorkflow(container.database, clock=lambda: fixed)

    result = workflow.decide(pending_batch.token, "approved", approver)

    assert result.changed is True
    assert result.previous_status == "pending"
    assert result.conflict is None
    stored = container.batches.get_batch(pending_batch.batch_id).batch
    assert stored.status == "approved"
    assert stored.decided_by == approver.identity
    assert stored.decided_at == fixed


def test_second_decision_returns_existing_state(container, pending_batch, approver, admin):
    container.workflow.decide(pending_batch.token, "declined", approver)

    result = container.workflow.decide(pending_batch.token, "approved", admin)

    assert result.changed is False
    assert result.batch.status == "declined"
    assert isinstance(result.conflict, ConflictError)
    assert result.conflict.code == "ALREADY_DECIDED"
    stored = container.batches.get_batch(pending_batch.batch_id).batch
    assert stored.status == "declined"
    assert stored.decided_by == approver.identity


def test_concurrent_decisions_apply_exactly_once(container, pending_batch, approver, admin):
    barrier = threading.Barrier(2)
    results = {}
    errors = []

    def decide(status, actor):
        barrier.wait()
        try:
            results[status] = container.workflow.decide(pending_batch.token, status, actor)
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [
        threading.Thread(target=decide, args=("approved", approver)),
        threading.Thread(target=decide, args=("declined", admin)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    winners = [status for status, result in results.items() if result.changed]
    assert len(winners) == 1
    losers = [result for result in results.values() if not result.changed]
    assert len(losers) == 1
    assert losers[0].batch.status == winners[0]
    assert container.batches.get_batch(pending_batch.batch_id).batch.status == winners[0]


def test_unknown_token_is_not_found(container, approver):
    with pytest.raises(NotFoundError):
        container.workflow.decide("nope", "approved", approver)


def test_invalid_status_is_rejected(container, pending_batch, approver):
    with pytest.raises(ValidationError):
        container.workflow.decide(pending_batch.token, "pending", approver)


def test_payroll_role_cannot_decide(container, pending_batch, payroll_actor):
    with pytest.raises(AuthorizationError):
        container.workflow.decide(pending_batch.token, "approved", payroll_actor)

    assert container.batches.get_batch(pending_batch.batch_id).batch.status == "pending"


def test_edited_batch_can_be_decided_again(container, pending_batch, approver, payroll_actor):
    container.workflow.decide(pending_batch.token, "approved", approver)
    record_id = container.batches.get_batch(pending_batch.batch_id).records[0].id
    container.batches.edit_batch_records(pending_batch.batch_id, [RecordEdit(record_id, 41)], payroll_actor)

    result = container.workflow.decide(pending_batch.token, "declined", approver)

    assert result.changed is True
    assert result.batch.status == "declined"


def test_default_clock_stamps_naive_utc(container, pending_batch, approver):
    before = datetime.now(timezone.utc).replace(tzinfo=None)

    container.workflow.decide(pending_batch.token, "approved", approver)

    decided_at = container.batches.get_batch(pending_batch.batch_id).batch.decided_at
    assert decided_at.tzinfo is None
    assert before - timedelta(seconds=1) <= decided_at <= datetime.now(timezone.utc).replace(tzinfo=None)


def test_edit_and_decision_race_serializes(container, pending_batch, approver, payroll_actor):
    record_id = container.batches.get_batch(pending_batch.batch_id).records[0].id
    barrier = threading.Barrier(2)
    results = {}
    errors = []

    def decide():
        barrier.wait()
        try:
            results["decision"] = container.workflow.decide(pending_batch.token, "approved", approver)
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    def edit():
        barrier.wait()
        try:
            results["edit"] = container.batches.edit_batch_records(
                pending_batch.batch_id, [RecordEdit(record_id, 50)], payroll_actor
            )
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=decide), threading.Thread(target=edit)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert results["decision"].changed is True
    stored = container.batches.get_batch(pending_batch.batch_id)
    assert stored.records[0].total_hours == 50
    if stored.batch.status == "pending":
        # The decision landed first and the edit then reset it.
        assert results["edit"].batch.status == "pending"
        assert stored.batch.decided_by is None
        assert stored.batch.decided_at is None
    else:
        # The edit ran first and the decision applied to the edited batch.
        assert stored.batch.status == "approved"
        assert stored.batch.decided_by == approver.identity
        assert stored.batch.decided_at is not None
