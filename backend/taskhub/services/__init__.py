"""Services package."""

from taskhub.services.comment import CommentService
from taskhub.services.project import ProjectService
from taskhub.services.task import TaskService
from taskhub.services.user import UserService

__all__ = [
    "CommentService",
    "ProjectService",
    "TaskService",
    "UserService",
]
