from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Numeric, String, Time
from sqlalchemy.orm import relationship

from wage_engine.db.session import Base, utcnow


class TimesheetEntry(Base):
    """One employee-day of attendance submitted for timesheet review."""

    __tablename__ = "timesheet_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    approval_id = Column(String(36), ForeignKey("wage_approvals.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(String(36), nullable=False)
    employee_name = Column(String(255), nullable=False)
    entry_date = Column(Date, nullable=False)

    is_present = Column(Boolean, nullable=False, default=True)
    time_in = Column(Time, nullable=True)
    time_out = Column(Time, nullable=True)
    lunch_in = Column(Time, nullable=True)
    lunch_out = Column(Time, nullable=True)

    normal_hours = Column(Numeric(6, 2), nullable=False, default=0)
    overtime_hours = Column(Numeric(6, 2), nullable=False, default=0)
    meal_allowance = Column(Numeric(10, 2), nullable=False, default=0)
    overtime_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=utcnow)

    approval = relationship("WageApproval", back_populates="timesheet_entries")

    __table_args__ = (
        Index("ix_timesheet_entries_approval_id", "approval_id"),
        Index("ix_timesheet_entries_employee_date", "employee_id", "entry_date"),
    )
