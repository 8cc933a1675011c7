from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda e: [x.value for x in e])


class UserRole(str, enum.Enum):
    """User role enum matching auth.Role."""

    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"
    APPLICANT = "applicant"


class JobStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class JobType(str, enum.Enum):
    CDI = "CDI"
    CDD = "CDD"
    STAGE = "Stage"
    INTERN = "Intern"


class JobVisibility(str, enum.Enum):
    INTERNAL = "internal"
    PUBLIC = "public"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class SoftDeleteMixin:
    """Rows are never removed; ``deleted_at`` marks them invisible to reads."""

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    def mark_deleted(self) -> None:
        self.deleted_at = _utcnow()


class UserModel(TimestampMixin, SoftDeleteMixin, Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole, "user_role"), default=UserRole.EMPLOYEE, nullable=False
    )
    department: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    manager_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    profile_photo_url: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email}, role={self.role.value})>"


class JobModel(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "jobs"
    __table_args__ = (Index("ix_jobs_department_status", "department", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[str] = mapped_column(String(128), nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="Remote", nullable=False)
    salary_range: Mapped[str | None] = mapped_column(String(128), nullable=True)
    job_type: Mapped[JobType] = mapped_column(
        _enum(JobType, "job_type"), default=JobType.CDI, nullable=False
    )
    requirements: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    benefits: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    # Space-joined tags, searchable with LIKE alongside title and description
    tags_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[JobStatus] = mapped_column(
        _enum(JobStatus, "job_status"), default=JobStatus.DRAFT, nullable=False
    )
    visibility: Mapped[JobVisibility] = mapped_column(
        _enum(JobVisibility, "job_visibility"), default=JobVisibility.PUBLIC, nullable=False
    )

    creator: Mapped[UserModel] = relationship(lazy="selectin")

    @validates("tags")
    def _sync_tags_text(self, _key: str, tags: list[str] | None) -> list[str]:
        tags = list(tags or [])
        self.tags_text = " ".join(tags)
        return tags


class ApplicationModel(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (Index("ix_applications_job_status", "job_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    applicant_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id"), nullable=False)
    resume: Mapped[str] = mapped_column(String(512), nullable=False)
    cover_letter: Mapped[str] = mapped_column(Text, default="", nullable=False)
    candidate_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    candidate_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    candidate_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[ApplicationStatus] = mapped_column(
        _enum(ApplicationStatus, "application_status"),
        default=ApplicationStatus.PENDING,
        nullable=False,
    )
    scores: Mapped[dict[str, float]] = mapped_column(JSON, default=dict, nullable=False)

    job: Mapped[JobModel] = relationship(lazy="selectin")
    applicant: Mapped[UserModel] = relationship(lazy="selectin")
    notes: Mapped[list[ApplicationNoteModel]] = relationship(
        back_populates="application",
        cascade="all,delete-orphan",
        order_by="ApplicationNoteModel.added_at",
        lazy="selectin",
    )


class ApplicationNoteModel(Base):
    __tablename__ = "application_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    application_id: Mapped[str] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    added_by: Mapped[str] = mapped_column(String(36), nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    application: Mapped[ApplicationModel] = relationship(back_populates="notes")


class InterviewModel(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    application_id: Mapped[str] = mapped_column(
        ForeignKey("applications.id"), nullable=False, index=True
    )
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    participants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[InterviewStatus] = mapped_column(
        _enum(InterviewStatus, "interview_status"),
        default=InterviewStatus.SCHEDULED,
        nullable=False,
    )
    evaluation: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    application: Mapped[ApplicationModel] = relationship(lazy="selectin")


class NotificationModel(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class AuditLogModel(Base):
    """Insert-only trail of mutating actions."""

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


__all__ = [
    "UserRole",
    "JobStatus",
    "JobType",
    "JobVisibility",
    "ApplicationStatus",
    "InterviewStatus",
    "UserModel",
    "JobModel",
    "ApplicationModel",
    "ApplicationNoteModel",
    "InterviewModel",
    "NotificationModel",
    "AuditLogModel",
]
