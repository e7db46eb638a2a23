from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, Numeric, String

from wage_engine.db.session import Base, utcnow


class Employee(Base):
    """Pay profile as maintained by the employee directory."""

    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False, default="")
    hourly_wage = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String(10), nullable=False, default="cash")  # cash|online
    bank_code = Column(String(50), nullable=True)
    bank_account_number = Column(String(100), nullable=True)

    fnpf_eligible = Column(Boolean, nullable=False, default=True)
    fnpf_no = Column(String(100), nullable=True)
    tin_no = Column(String(100), nullable=True)

    branch = Column(String(10), nullable=False, default="labasa")  # labasa|suva
    is_active = Column(Boolean, nullable=False, default=True)

    # Null means the policy-wide weekly threshold applies.
    normal_hours_threshold_override = Column(Numeric(6, 2), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_employees_branch", "branch"),
        Index("ix_employees_name", "name"),
    )
