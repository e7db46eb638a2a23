from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from wage_engine.db.session import Base, utcnow


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    approval_id = Column(
        String(36), ForeignKey("wage_approvals.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    employee_id = Column(String(36), nullable=False)
    employee_name = Column(String(255), nullable=False)
    leave_type = Column(String(30), nullable=False)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    approval = relationship("WageApproval", back_populates="leave_request")

    __table_args__ = (Index("ix_leave_requests_employee_id", "employee_id"),)


class LeaveCarryOver(Base):
    __tablename__ = "leave_carry_overs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(String(36), nullable=False)
    leave_type = Column(String(30), nullable=False)
    year = Column(Integer, nullable=False)
    days = Column(Numeric(6, 2), nullable=False, default=0)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type", "year", name="uq_leave_carry_over"),
    )
