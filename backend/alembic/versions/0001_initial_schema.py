"""initial schema: work sessions, leave requests, accounts, audit, notifications

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

UUID_TYPE = sa.Uuid(as_uuid=True)
TIMESTAMP = sa.DateTime(timezone=True)

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _resolution_columns() -> list[sa.Column]:
    return [
        sa.Column("resolved_by", UUID_TYPE, nullable=True),
        sa.Column("resolved_by_name", sa.String(length=255), nullable=True),
        sa.Column("resolved_at", TIMESTAMP, nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "work_session",
        sa.Column("id", UUID_TYPE, nullable=False),
        sa.Column("created_at", TIMESTAMP, server_default=sa.func.now(), nullable=False),
        *_resolution_columns(),
        sa.Column("employee_id", UUID_TYPE, nullable=False),
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("branch_id", UUID_TYPE, nullable=True),
        sa.Column("start_time", TIMESTAMP, nullable=False),
        sa.Column("end_time", TIMESTAMP, nullable=True),
        sa.Column("status", sa.String(length=50), server_default="active", nullable=False),
        sa.Column("original_start_time", TIMESTAMP, nullable=True),
        sa.Column("original_end_time", TIMESTAMP, nullable=True),
        sa.Column("edited_start_time", TIMESTAMP, nullable=True),
        sa.Column("edited_end_time", TIMESTAMP, nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_work_session_created_at", "work_session", ["created_at"])
    op.create_index("ix_work_session_resolved_at", "work_session", ["resolved_at"])
    op.create_index("ix_work_session_employee_id", "work_session", ["employee_id"])
    op.create_index("ix_work_session_company_id", "work_session", ["company_id"])
    op.create_index("ix_work_session_branch_id", "work_session", ["branch_id"])
    op.create_index("ix_work_session_status", "work_session", ["status"])
    op.create_index("ix_work_session_company_status", "work_session", ["company_id", "status"])
    op.create_index(
        "uq_work_session_one_active",
        "work_session",
        ["employee_id"],
        unique=True,
        postgresql_where=sa.text("end_time IS NULL"),
        sqlite_where=sa.text("end_time IS NULL"),
    )

    op.create_table(
        "leave_request",
        sa.Column("id", UUID_TYPE, nullable=False),
        sa.Column("created_at", TIMESTAMP, server_default=sa.func.now(), nullable=False),
        *_resolution_columns(),
        sa.Column("request_number", sa.String(length=64), nullable=False),
        sa.Column("employee_id", UUID_TYPE, nullable=False),
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("branch_id", UUID_TYPE, nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days_count", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), server_default="pending", nullable=False),
        sa.CheckConstraint("days_count >= 1", name="ck_leave_request_days_positive"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "request_number", name="uq_leave_request_number"),
    )
    op.create_index("ix_leave_request_created_at", "leave_request", ["created_at"])
    op.create_index("ix_leave_request_resolved_at", "leave_request", ["resolved_at"])
    op.create_index("ix_leave_request_employee_id", "leave_request", ["employee_id"])
    op.create_index("ix_leave_request_company_id", "leave_request", ["company_id"])
    op.create_index("ix_leave_request_branch_id", "leave_request", ["branch_id"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_request_company_status", "leave_request", ["company_id", "status"])

    op.create_table(
        "employee_leave_account",
        sa.Column("employee_id", UUID_TYPE, nullable=False),
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("vacation_days_total", sa.Integer(), server_default="0", nullable=False),
        sa.Column("vacation_days_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.CheckConstraint("vacation_days_total >= 0", name="ck_leave_account_total_non_negative"),
        sa.CheckConstraint("vacation_days_used >= 0", name="ck_leave_account_used_non_negative"),
        sa.PrimaryKeyConstraint("employee_id"),
    )
    op.create_index("ix_employee_leave_account_company_id", "employee_leave_account", ["company_id"])

    op.create_table(
        "leave_request_counter",
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_value", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("company_id", "year"),
    )

    op.create_table(
        "audit_entry",
        sa.Column("id", UUID_TYPE, nullable=False),
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("branch_id", UUID_TYPE, nullable=True),
        sa.Column("employee_id", UUID_TYPE, nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", UUID_TYPE, nullable=False),
        sa.Column("outcome", sa.String(length=50), nullable=False),
        sa.Column("resolver_id", UUID_TYPE, nullable=False),
        sa.Column("resolver_name", sa.String(length=255), nullable=False),
        sa.Column("resolved_at", TIMESTAMP, nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_entry_company_id", "audit_entry", ["company_id"])
    op.create_index("ix_audit_entry_employee_id", "audit_entry", ["employee_id"])
    op.create_index("ix_audit_entry_resolved_at", "audit_entry", ["resolved_at"])
    op.create_index("ix_audit_entity", "audit_entry", ["entity_type", "entity_id"])

    op.create_table(
        "notification",
        sa.Column("id", UUID_TYPE, nullable=False),
        sa.Column("created_at", TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.Column("employee_id", UUID_TYPE, nullable=False),
        sa.Column("company_id", UUID_TYPE, nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_created_at", "notification", ["created_at"])
    op.create_index("ix_notification_employee_id", "notification", ["employee_id"])
    op.create_index("ix_notification_company_id", "notification", ["company_id"])


def downgrade() -> None:
    op.drop_table("notification")
    op.drop_table("audit_entry")
    op.drop_table("leave_request_counter")
    op.drop_table("employee_leave_account")
    op.drop_table("leave_request")
    op.drop_table("work_session")
