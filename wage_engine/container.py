from __future__ import annotations

from dataclasses import dataclass

from .core.config import Settings
from .db.session import Database
from .engine.calculator import WageCalculator
from .engine.models import PayPolicy
from .services.batches import ApprovalBatchStore
from .services.leave import LeaveService
from .services.summaries import SummaryService
from .services.users import UserService
from .services.workflow import ApprovalWorkflow


@dataclass(frozen=True)
class Container:
    settings: Settings
    database: Database

    calculator: WageCalculator
    batches: ApprovalBatchStore
    workflow: ApprovalWorkflow
    leave: LeaveService
    summaries: SummaryService
    users: UserService


def build_container(settings: Settings, database: Database | None = None) -> Container:
    """Wire every service around one ``Database``. Opening it is the caller's job."""
    database = database or Database(settings)
    calculator = WageCalculator(PayPolicy.from_settings(settings))

    return Container(
        settings=settings,
        database=database,
        calculator=calculator,
        batches=ApprovalBatchStore(database, settings, calculator=calculator),
        workflow=ApprovalWorkflow(database),
        leave=LeaveService(database, settings),
        summaries=SummaryService(database),
        users=UserService(database),
    )
