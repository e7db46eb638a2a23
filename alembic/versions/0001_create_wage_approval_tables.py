"""create wage approval tables

Revision ID: 0001
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="viewer"),
        sa.Column("token_hash", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index("ix_users_token_hash", "users", ["token_hash"], unique=False)

    op.create_table(
        "employees",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("hourly_wage", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=10), nullable=False, server_default="cash"),
        sa.Column("bank_code", sa.String(length=50), nullable=True),
        sa.Column("bank_account_number", sa.String(length=100), nullable=True),
        sa.Column("fnpf_eligible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("fnpf_no", sa.String(length=100), nullable=True),
        sa.Column("tin_no", sa.String(length=100), nullable=True),
        sa.Column("branch", sa.String(length=10), nullable=False, server_default="labasa"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("normal_hours_threshold_override", sa.Numeric(6, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employees_branch", "employees", ["branch"], unique=False)
    op.create_index("ix_employees_name", "employees", ["name"], unique=False)

    op.create_table(
        "wage_approvals",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("subject_type", sa.String(length=30), nullable=False, server_default="final_wage"),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("initiated_by", sa.String(length=255), nullable=False),
        sa.Column("decided_by", sa.String(length=255), nullable=True),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("ix_wage_approvals_status_subject", "wage_approvals", ["status", "subject_type"], unique=False)
    op.create_index("ix_wage_approvals_period", "wage_approvals", ["date_from", "date_to"], unique=False)

    op.create_table(
        "wage_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("approval_id", sa.String(length=36), nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("hourly_wage", sa.Numeric(10, 2), nullable=False),
        sa.Column("fnpf_eligible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("normal_hours_threshold", sa.Numeric(6, 2), nullable=False),
        sa.Column("total_hours", sa.Numeric(10, 2), nullable=False),
        sa.Column("normal_hours", sa.Numeric(10, 2), nullable=False),
        sa.Column("overtime_hours", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("meal_allowance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("fnpf_deduction", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("other_deductions", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("gross_pay", sa.Numeric(12, 2), nullable=False),
        sa.Column("net_pay", sa.Numeric(12, 2), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["approval_id"], ["wage_approvals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_wage_records_approval_id", "wage_records", ["approval_id"], unique=False)
    op.create_index("ix_wage_records_employee_id", "wage_records", ["employee_id"], unique=False)
    op.create_index("ix_wage_records_date_range", "wage_records", ["date_from", "date_to"], unique=False)

    op.create_table(
        "timesheet_entries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("approval_id", sa.String(length=36), nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("is_present", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("time_in", sa.Time(), nullable=True),
        sa.Column("time_out", sa.Time(), nullable=True),
        sa.Column("lunch_in", sa.Time(), nullable=True),
        sa.Column("lunch_out", sa.Time(), nullable=True),
        sa.Column("normal_hours", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("overtime_hours", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("meal_allowance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("overtime_reason", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["approval_id"], ["wage_approvals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_timesheet_entries_approval_id", "timesheet_entries", ["approval_id"], unique=False)
    op.create_index(
        "ix_timesheet_entries_employee_date", "timesheet_entries", ["employee_id", "entry_date"], unique=False
    )

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("approval_id", sa.String(length=36), nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("employee_name", sa.String(length=255), nullable=False),
        sa.Column("leave_type", sa.String(length=30), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["approval_id"], ["wage_approvals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("approval_id"),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"], unique=False)

    op.create_table(
        "leave_carry_overs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("leave_type", sa.String(length=30), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("days", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_leave_carry_over"),
    )


def downgrade() -> None:
    op.drop_table("leave_carry_overs")
    op.drop_index("ix_leave_requests_employee_id", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_index("ix_timesheet_entries_employee_date", table_name="timesheet_entries")
    op.drop_index("ix_timesheet_entries_approval_id", table_name="timesheet_entries")
    op.drop_table("timesheet_entries")
    op.drop_index("ix_wage_records_date_range", table_name="wage_records")
    op.drop_index("ix_wage_records_employee_id", table_name="wage_records")
    op.drop_index("ix_wage_records_approval_id", table_name="wage_records")
    op.drop_table("wage_records")
    op.drop_index("ix_wage_approvals_period", table_name="wage_approvals")
    op.drop_index("ix_wage_approvals_status_subject", table_name="wage_approvals")
    op.drop_table("wage_approvals")
    op.drop_index("ix_employees_name", table_name="employees")
    op.drop_index("ix_employees_branch", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_users_token_hash", table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
