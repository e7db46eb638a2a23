from decimal import Decimal

from sqlalchemy.orm import Session

from wage_engine.models import Employee

DEV_EMPLOYEES = [
    dict(
        id="5d0c9a3e-1f6b-4c2a-9e61-000000001001",
        name="John Doe",
        position="Winder",
        hourly_wage=Decimal("15.50"),
        branch="suva",
        payment_method="online",
        bank_code="BSP",
        bank_account_number="1000200300",
        fnpf_eligible=True,
        fnpf_no="FN-1001",
    ),
    dict(
        id="5d0c9a3e-1f6b-4c2a-9e61-000000001002",
        name="Jane Smith",
        position="Assistant",
        hourly_wage=Decimal("12.00"),
        branch="labasa",
        payment_method="cash",
        fnpf_eligible=False,
    ),
    dict(
        id="5d0c9a3e-1f6b-4c2a-9e61-000000001003",
        name="Vilimone Tora",
        position="Supervisor",
        hourly_wage=Decimal("18.25"),
        branch="labasa",
        payment_method="cash",
        fnpf_eligible=True,
        fnpf_no="FN-1003",
        normal_hours_threshold_override=Decimal("48"),
    ),
]


def seed(session: Session) -> int:
    """Add the development employees that are not there yet. Returns how many were added.

    Rows are matched on their fixed ids, so renaming a seeded employee does not
    make the next run add it again.
    """
    ids = [values["id"] for values in DEV_EMPLOYEES]
    existing = {employee_id for (employee_id,) in session.query(Employee.id).filter(Employee.id.in_(ids))}
    added = [Employee(**values) for values in DEV_EMPLOYEES if values["id"] not in existing]
    session.add_all(added)
    session.flush()
    return len(added)
