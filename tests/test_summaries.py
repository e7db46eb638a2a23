from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from wage_engine.core.exceptions import NotFoundError, ValidationError
from wage_engine.services.bank_export import export_bank_transfers, export_file_name
from wage_engine.services.batches import WageEntry


def test_summary_total_matches_records_exactly(container, make_employee, payroll_actor):
    entries = []
    for i in range(120):
        employee = make_employee(f"Worker {i:03d}", Decimal("9.37") + Decimal(i) / 100, fnpf_eligible=i % 3 != 0)
        entries.append(WageEntry(employee.id, Decimal("37.33") + Decimal(i % 11) / 3, "3.17", "1.09"))
    created = container.batches.create_wage_batch(entries, date(2024, 3, 4), date(2024, 3, 10), payroll_actor)

    (summary,) = container.summaries.list_summaries()
    records = container.batches.get_batch(created.batch_id).records

    assert summary.record_count == 120
    assert summary.total_wages == sum((record.net_pay for record in records), Decimal("0"))
    assert summary.total_gross == sum((record.gross_pay for record in records), Decimal("0"))
    assert summary.total_cash_wages + summary.total_online_wages == summary.total_wages


def test_totals_are_split_by_payment_method(container, make_employee, payroll_actor):
    cash = make_employee("Cash Worker", "10.00")
    online = make_employee("Online Worker", "10.00", payment_method="online", bank_code="BSP", bank_account_number="123")
    container.batches.create_wage_batch(
        [WageEntry(cash.id, 10), WageEntry(online.id, 20)], date(2024, 3, 4), date(2024, 3, 10), payroll_actor
    )

    (summary,) = container.summaries.list_summaries(status="pending")

    assert summary.total_cash_wages == Decimal("92.00")
    assert summary.total_online_wages == Decimal("184.00")
    assert summary.total_fnpf == Decimal("24.00")


def test_summaries_are_filtered_and_newest_first(container, make_employee, payroll_actor, approver):
    employee = make_employee()
    older = container.batches.create_wage_batch([WageEntry(employee.id, 40)], date(2024, 3, 4), date(2024, 3, 10), payroll_actor)
    newer = container.batches.create_wage_batch([WageEntry(employee.id, 40)], date(2024, 3, 11), date(2024, 3, 17), payroll_actor)
    container.workflow.decide(older.token, "approved", approver)

    assert [s.approval_id for s in container.summaries.list_summaries()] == [newer.batch_id, older.batch_id]
    assert [s.approval_id for s in container.summaries.list_summaries(status="approved")] == [older.batch_id]
    assert container.summaries.list_summaries(subject_type="leave_request") == []


def test_unknown_filters_are_rejected(container):
    with pytest.raises(ValidationError):
        container.summaries.list_summaries(status="archived")


def test_fnpf_summary_only_counts_eligible_employees(container, make_employee, payroll_actor):
    eligible = make_employee("Eligible", "10.00")
    other = make_employee("Not Eligible", "10.00", fnpf_eligible=False)
    created = container.batches.create_wage_batch(
        [WageEntry(eligible.id, 50, 10), WageEntry(other.id, 40)], date(2024, 3, 4), date(2024, 3, 10), payroll_actor
    )

    summary = container.summaries.fnpf_summary(created.batch_id)

    assert summary.employee_count == 1
    assert summary.total_hours == Decimal("50.00")
    assert summary.overtime_hours == Decimal("5.00")
    assert summary.fnpf_deduction == Decimal("36.00")
    assert summary.gross_pay == Decimal("535.00")


def test_fnpf_summary_unknown_batch(container):
    with pytest.raises(NotFoundError):
        container.summaries.fnpf_summary("missing")


def test_bank_export_requires_approval(container, make_employee, payroll_actor, approver, tmp_path):
    online = make_employee("Online Worker", "10.00", payment_method="online", bank_code="BSP01", bank_account_number="998877")
    cash = make_employee("Cash Worker", "10.00")
    created = container.batches.create_wage_batch(
        [WageEntry(online.id, 40), WageEntry(cash.id, 40)], date(2024, 3, 4), date(2024, 3, 10), payroll_actor
    )

    with pytest.raises(ValidationError):
        container.summaries.online_transfer_rows(created.batch_id)

    container.workflow.decide(created.token, "approved", approver)
    rows = container.summaries.online_transfer_rows(created.batch_id)
    assert [row.employee_name for row in rows] == ["Online Worker"]

    path = tmp_path / export_file_name(date(2024, 3, 4), date(2024, 3, 10), "bsp")
    assert export_bank_transfers(path, rows, "BSP") == 1
    assert path.name == "wage_records_20240304_20240310_BSP.csv"
    assert Path(path).read_text().strip() == "BSP01,998877,368.00,Salary,Online Worker"

    bred = tmp_path / "bred.csv"
    export_bank_transfers(bred, rows, "BRED")
    assert bred.read_text().strip() == "BSP01,Online Worker,,998877,368.00,Salary"
