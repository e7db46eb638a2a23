from __future__ import annotations

from decimal import Decimal

import pytest

from wage_engine.container import build_container
from wage_engine.core.config import Settings
from wage_engine.core.logging import configure_logging
from wage_engine.core.security import Actor
from wage_engine.models import Employee


@pytest.fixture(autouse=True, scope="session")
def structured_logging():
    configure_logging("INFO")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        database_url=f"sqlite:///{tmp_path / 'wages.db'}",
        base_url="https://payroll.example.com/",
        statement_timeout_ms=10_000,
    )


@pytest.fixture
def container(settings):
    container = build_container(settings)
    container.database.open()
    container.database.create_all()
    yield container
    container.database.close()


@pytest.fixture
def database(container):
    return container.database


@pytest.fixture
def payroll_actor() -> Actor:
    return Actor(identity="payroll@example.com", role="payroll")


@pytest.fixture
def approver() -> Actor:
    return Actor(identity="approver@example.com", role="approver")


@pytest.fixture
def admin() -> Actor:
    return Actor(identity="admin@example.com", role="admin")


@pytest.fixture
def make_employee(database):
    def _make(name: str = "John Doe", hourly_wage="10.00", **overrides) -> Employee:
        values = dict(
            name=name,
            position="Winder",
            hourly_wage=Decimal(str(hourly_wage)),
            payment_method="cash",
            fnpf_eligible=True,
            branch="labasa",
        )
        values.update(overrides)
        with database.transaction() as db:
            employee = Employee(**values)
            db.add(employee)
            db.flush()
        return employee

    return _make
