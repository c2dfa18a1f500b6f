"""SQLAlchemy models package."""

from taskhub.models.client import Client
from taskhub.models.project import (
    Comment,
    Project,
    ProjectMember,
    ProjectStatus,
    Task,
    TaskAssignment,
    TaskStatus,
)
from taskhub.models.user import User, UserRole

__all__ = [
    "Client",
    "User",
    "UserRole",
    "Project",
    "ProjectMember",
    "ProjectStatus",
    "Task",
    "TaskAssignment",
    "TaskStatus",
    "Comment",
]
