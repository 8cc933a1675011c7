"""Entity -> dict conversion shared by services and cached list payloads."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from hirehub.infrastructure.db.models import (
    ApplicationModel,
    ApplicationNoteModel,
    AuditLogModel,
    InterviewModel,
    JobModel,
    NotificationModel,
    UserModel,
)
from hirehub.infrastructure.repositories import Page


def _value(member: Enum | str) -> str:
    return member.value if isinstance(member, Enum) else member


def user_summary(user: UserModel | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
    }


def user_to_dict(user: UserModel) -> dict[str, Any]:
    """Public view of a user; the password hash never leaves the service layer."""
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": _value(user.role),
        "department": user.department,
        "manager_id": user.manager_id,
        "is_active": user.is_active,
        "profile_photo_url": user.profile_photo_url,
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def job_to_dict(job: JobModel) -> dict[str, Any]:
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "department": job.department,
        "location": job.location,
        "salary_range": job.salary_range,
        "job_type": _value(job.job_type),
        "requirements": list(job.requirements or []),
        "benefits": list(job.benefits or []),
        "tags": list(job.tags or []),
        "status": _value(job.status),
        "visibility": _value(job.visibility),
        "created_by": user_summary(job.creator) or {"id": job.created_by},
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


def note_to_dict(note: ApplicationNoteModel) -> dict[str, Any]:
    return {"id": note.id, "text": note.text, "added_by": note.added_by, "added_at": note.added_at}


def application_to_dict(application: ApplicationModel) -> dict[str, Any]:
    job = application.job
    return {
        "id": application.id,
        "job": {"id": job.id, "title": job.title, "department": job.department}
        if job is not None
        else {"id": application.job_id},
        "applicant": user_summary(application.applicant) or {"id": application.applicant_id},
        "resume": application.resume,
        "cover_letter": application.cover_letter,
        "candidate": {
            "name": application.candidate_name,
            "email": application.candidate_email,
            "phone": application.candidate_phone,
        },
        "status": _value(application.status),
        "scores": dict(application.scores or {}),
        "notes": [note_to_dict(note) for note in application.notes],
        "created_at": application.created_at,
        "updated_at": application.updated_at,
    }


def interview_to_dict(interview: InterviewModel) -> dict[str, Any]:
    return {
        "id": interview.id,
        "application_id": interview.application_id,
        "scheduled_at": interview.scheduled_at,
        "duration": interview.duration,
        "participants": list(interview.participants or []),
        "location": interview.location,
        "status": _value(interview.status),
        "evaluation": dict(interview.evaluation or {}),
        "created_at": interview.created_at,
        "updated_at": interview.updated_at,
    }


def notification_to_dict(notification: NotificationModel) -> dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "payload": dict(notification.payload or {}),
        "read": notification.read,
        "created_at": notification.created_at,
    }


def audit_log_to_dict(entry: AuditLogModel) -> dict[str, Any]:
    return {
        "id": entry.id,
        "actor_id": entry.actor_id,
        "action": entry.action,
        "target_type": entry.target_type,
        "target_id": entry.target_id,
        "details": dict(entry.details or {}),
        "created_at": entry.created_at,
    }


def page_to_dict(page: Page[Any], serializer: Callable[[Any], dict[str, Any]]) -> dict[str, Any]:
    return {
        "items": [serializer(item) for item in page.items],
        "count": page.count,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages,
    }
