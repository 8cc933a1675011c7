from .activity import AuditLogRepository, NotificationRepository
from .applications import ApplicationRepository, InterviewRepository
from .base import Page, Repository, SoftDeleteRepository
from .jobs import JobRepository
from .users import UserRepository

__all__ = [
    "ApplicationRepository",
    "AuditLogRepository",
    "InterviewRepository",
    "JobRepository",
    "NotificationRepository",
    "Page",
    "Repository",
    "SoftDeleteRepository",
    "UserRepository",
]
