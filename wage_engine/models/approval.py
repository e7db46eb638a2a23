from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Index, String
from sqlalchemy.orm import relationship

from wage_engine.db.session import Base, utcnow

SUBJECT_TYPES = ("final_wage", "timesheet_review", "leave_request")
STATUSES = ("pending", "approved", "declined")


class WageApproval(Base):
    """One approval lifecycle over a batch of records, gated by a secret token."""

    __tablename__ = "wage_approvals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    token = Column(String(64), nullable=False, unique=True)
    subject_type = Column(String(30), nullable=False, default="final_wage")
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="pending")

    initiated_by = Column(String(255), nullable=False)
    decided_by = Column(String(255), nullable=True)
    decided_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    wage_records = relationship(
        "WageRecord",
        back_populates="approval",
        cascade="all, delete-orphan",
        order_by="WageRecord.employee_name",
    )
    timesheet_entries = relationship(
        "TimesheetEntry",
        back_populates="approval",
        cascade="all, delete-orphan",
        order_by="TimesheetEntry.entry_date",
    )
    leave_request = relationship(
        "LeaveRequest",
        back_populates="approval",
        cascade="all, delete-orphan",
        uselist=False,
    )

    __table_args__ = (
        Index("ix_wage_approvals_status_subject", "status", "subject_type"),
        Index("ix_wage_approvals_period", "date_from", "date_to"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"
