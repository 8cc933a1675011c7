"""Domain services: one class per aggregate, plus event subscribers."""

from hirehub.domain.services.applications import ApplicationService
from hirehub.domain.services.audit import AuditLogService, AuditRecorder
from hirehub.domain.services.auth_service import AuthService, hash_password, verify_password
from hirehub.domain.services.interviews import InterviewService, build_calendar
from hirehub.domain.services.jobs import JobService
from hirehub.domain.services.notifications import NotificationDispatcher, NotificationService
from hirehub.domain.services.reports import ReportService
from hirehub.domain.services.users import UserService

__all__ = [
    "ApplicationService",
    "AuditLogService",
    "AuditRecorder",
    "AuthService",
    "InterviewService",
    "JobService",
    "NotificationDispatcher",
    "NotificationService",
    "ReportService",
    "UserService",
    "build_calendar",
    "hash_password",
    "verify_password",
]
