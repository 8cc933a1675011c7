"""Initial recruitment schema

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

user_role_enum = sa.Enum("admin", "hr", "employee", "applicant", name="user_role")
job_type_enum = sa.Enum("CDI", "CDD", "Stage", "Intern", name="job_type")
job_status_enum = sa.Enum("draft", "published", "closed", name="job_status")
job_visibility_enum = sa.Enum("internal", "public", name="job_visibility")
application_status_enum = sa.Enum(
    "pending",
    "in_review",
    "interview",
    "offer",
    "rejected",
    "accepted",
    name="application_status",
)
interview_status_enum = sa.Enum("scheduled", "completed", "cancelled", name="interview_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="employee"),
        sa.Column("department", sa.String(length=128), nullable=False, server_default=""),
        sa.Column(
            "manager_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("profile_photo_url", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("department", sa.String(length=128), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False, server_default="Remote"),
        sa.Column("salary_range", sa.String(length=128), nullable=True),
        sa.Column("job_type", job_type_enum, nullable=False, server_default="CDI"),
        sa.Column("requirements", sa.JSON(), nullable=False),
        sa.Column("benefits", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("tags_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_by", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", job_status_enum, nullable=False, server_default="draft"),
        sa.Column("visibility", job_visibility_enum, nullable=False, server_default="public"),
        *_timestamps(),
    )
    op.create_index("ix_jobs_created_by", "jobs", ["created_by"])
    op.create_index("ix_jobs_deleted_at", "jobs", ["deleted_at"])
    op.create_index("ix_jobs_department_status", "jobs", ["department", "status"])

    op.create_table(
        "applications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("applicant_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("job_id", sa.String(length=36), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("resume", sa.String(length=512), nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=False, server_default=""),
        sa.Column("candidate_name", sa.String(length=255), nullable=True),
        sa.Column("candidate_email", sa.String(length=255), nullable=True),
        sa.Column("candidate_phone", sa.String(length=64), nullable=True),
        sa.Column("status", application_status_enum, nullable=False, server_default="pending"),
        sa.Column("scores", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_applications_applicant_id", "applications", ["applicant_id"])
    op.create_index("ix_applications_deleted_at", "applications", ["deleted_at"])
    op.create_index("ix_applications_job_status", "applications", ["job_id", "status"])

    op.create_table(
        "application_notes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "application_id",
            sa.String(length=36),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("added_by", sa.String(length=36), nullable=False),
        sa.Column(
            "added_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_application_notes_application_id", "application_notes", ["application_id"]
    )

    op.create_table(
        "interviews",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "application_id",
            sa.String(length=36),
            sa.ForeignKey("applications.id"),
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("status", interview_status_enum, nullable=False, server_default="scheduled"),
        sa.Column("evaluation", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_interviews_application_id", "interviews", ["application_id"])
    op.create_index("ix_interviews_deleted_at", "interviews", ["deleted_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_deleted_at", "notifications", ["deleted_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=False),
        sa.Column("target_id", sa.String(length=36), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_target_id", "audit_logs", ["target_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("notifications")
    op.drop_table("interviews")
    op.drop_table("application_notes")
    op.drop_table("applications")
    op.drop_table("jobs")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in (
        interview_status_enum,
        application_status_enum,
        job_visibility_enum,
        job_status_enum,
        job_type_enum,
        user_role_enum,
    ):
        enum.drop(bind, checkfirst=True)
