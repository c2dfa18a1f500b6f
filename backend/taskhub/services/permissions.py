"""Authorization predicates.

Each predicate answers "may this principal do X to this resource" from
already-loaded state and performs no I/O, so callers must load the
relationships a predicate reads (project members, task assignments,
comment -> task -> project). Raising is left to the services, which
check existence first and then translate a False into ForbiddenError.
"""

from typing import Protocol
from uuid import UUID

from taskhub.models.project import Comment, Project, Task
from taskhub.models.user import UserRole


class Principal(Protocol):
    """Authenticated caller; only the id and the role take part in decisions."""

    id: UUID
    role: str


def can_manage_project(user: Principal) -> bool:
    """Create, update and delete projects: admins only."""
    return user.role == UserRole.ADMIN.value


def can_manage_clients(user: Principal) -> bool:
    return user.role == UserRole.ADMIN.value


def can_access_project_tasks(user: Principal, project: Project) -> bool:
    """Project members may see the project's tasks."""
    return user.id in project.member_ids


def can_comment_on_task(user: Principal, task: Task) -> bool:
    """Members of the task's project and assignees of the task may comment."""
    return user.id in task.project.member_ids or user.id in task.assignee_ids


def can_modify_comment(user: Principal, comment: Comment) -> bool:
    """The author, or any collaborator on the comment's task.

    Collaborator means a member of the task's project or an assignee of
    the task, so any teammate may edit or delete any comment.
    """
    if comment.user_id == user.id:
        return True
    return can_comment_on_task(user, comment.task)


def can_view_user_projects(user: Principal, user_id: UUID) -> bool:
    """A user may only list their own project memberships."""
    return user.id == user_id
