from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import relationship

from wage_engine.db.session import Base, utcnow


class WageRecord(Base):
    __tablename__ = "wage_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    approval_id = Column(String(36), ForeignKey("wage_approvals.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(String(36), nullable=False)
    employee_name = Column(String(255), nullable=False)  # name as it was at pay time

    hourly_wage = Column(Numeric(10, 2), nullable=False)
    # Snapshot of the pay profile the amounts were computed with; edits reuse it.
    fnpf_eligible = Column(Boolean, nullable=False, default=True)
    normal_hours_threshold = Column(Numeric(6, 2), nullable=False)
    total_hours = Column(Numeric(10, 2), nullable=False)
    normal_hours = Column(Numeric(10, 2), nullable=False)
    overtime_hours = Column(Numeric(10, 2), nullable=False, default=0)
    meal_allowance = Column(Numeric(10, 2), nullable=False, default=0)
    fnpf_deduction = Column(Numeric(10, 2), nullable=False, default=0)
    other_deductions = Column(Numeric(10, 2), nullable=False, default=0)
    gross_pay = Column(Numeric(12, 2), nullable=False)
    net_pay = Column(Numeric(12, 2), nullable=False)

    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    approval = relationship("WageApproval", back_populates="wage_records")

    __table_args__ = (
        Index("ix_wage_records_approval_id", "approval_id"),
        Index("ix_wage_records_employee_id", "employee_id"),
        Index("ix_wage_records_date_range", "date_from", "date_to"),
    )
