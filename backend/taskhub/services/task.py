"""Task lifecycle and task listing service."""

from collections.abc import Sequence
from datetime import date
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import case, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.exceptions import ForbiddenError, NotFoundError, ValidationError
from taskhub.models.project import (
    DEFAULT_PRIORITY,
    Comment,
    Project,
    Task,
    TaskAssignment,
    TaskStatus,
)
from taskhub.services.permissions import Principal, can_access_project_tasks
from taskhub.services.query import Page, PageParams, paginate, task_filter_clauses

logger = structlog.get_logger()

# Columns that may not be cleared through an update
_REQUIRED_FIELDS = frozenset({"title", "status", "priority"})

# Sort key following the workflow rather than the alphabet
_WORKFLOW_ORDER = case(
    {s.value: position for position, s in enumerate(TaskStatus)},
    value=Task.status,
)


def _unique(ids: Sequence[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


class TaskService:
    """Service for creating, updating, deleting and listing tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_project_or_404(self, project_id: UUID) -> Project:
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _load_task(self, task_id: UUID) -> Task | None:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.project))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_task_or_404(self, task_id: UUID) -> Task:
        task = await self._load_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    @staticmethod
    def _check_assignees(project: Project, assignee_ids: Sequence[UUID]) -> list[UUID]:
        """Every assignee must already be a member of the project."""
        assignee_ids = _unique(assignee_ids)
        member_ids = project.member_ids
        invalid = [user_id for user_id in assignee_ids if user_id not in member_ids]
        if invalid:
            raise ValidationError(
                "One or more assignees are not project members: "
                + ", ".join(str(user_id) for user_id in invalid)
            )
        return assignee_ids

    async def _check_parent(self, project_id: UUID, parent_task_id: UUID) -> None:
        result = await self.db.execute(
            select(Task.project_id).where(Task.id == parent_task_id)
        )
        parent_project_id = result.scalar_one_or_none()
        if parent_project_id is None or parent_project_id != project_id:
            raise ValidationError("Invalid parent task")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_task(
        self,
        creator: Principal,
        project_id: UUID,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        priority: int = DEFAULT_PRIORITY,
        due_date: date | None = None,
        assignee_ids: Sequence[UUID] = (),
        parent_task_id: UUID | None = None,
    ) -> Task:
        """Create a task inside a project.

        Checked in order: the project exists, assignees are members, the
        parent task belongs to the same project.
        """
        project = await self._get_project_or_404(project_id)
        assignees = self._check_assignees(project, assignee_ids)
        if parent_task_id is not None:
            await self._check_parent(project_id, parent_task_id)

        task = Task(
            title=title,
            description=description,
            status=TaskStatus(status).value,
            priority=priority,
            due_date=due_date,
            project_id=project_id,
            created_by_id=creator.id,
            parent_task_id=parent_task_id,
        )
        task.assignments = [TaskAssignment(user_id=user_id) for user_id in assignees]
        self.db.add(task)
        await self.db.commit()

        logger.info(
            "Task created",
            task_id=str(task.id),
            project_id=str(project_id),
            assignees=len(assignees),
        )
        return await self.get_task_or_404(task.id)

    async def update_task(
        self,
        user: Principal,
        task_id: UUID,
        changes: dict[str, Any],
    ) -> Task:
        """Partial update. Supplied assignee ids replace the assignee set.

        Any authenticated caller may update an existing task.
        """
        task = await self.get_task_or_404(task_id)

        changes = dict(changes)
        assignee_ids = changes.pop("assignee_ids", None)
        if assignee_ids is not None:
            assignee_ids = self._check_assignees(task.project, assignee_ids)

        if isinstance(changes.get("status"), TaskStatus):
            changes["status"] = changes["status"].value

        old_status = task.status
        for field_name, value in changes.items():
            if value is None and field_name in _REQUIRED_FIELDS:
                continue
            setattr(task, field_name, value)

        if assignee_ids is not None:
            existing = {a.user_id: a for a in task.assignments}
            task.assignments = [
                existing.get(user_id) or TaskAssignment(user_id=user_id)
                for user_id in assignee_ids
            ]

        await self.db.commit()

        logger.info(
            "Task updated",
            task_id=str(task_id),
            updated_by=str(user.id),
            old_status=old_status,
            new_status=task.status,
        )
        return await self.get_task_or_404(task_id)

    async def _descendant_ids(self, task_id: UUID) -> list[UUID]:
        """The task and every subtask below it."""
        collected = [task_id]
        frontier = [task_id]
        while frontier:
            result = await self.db.execute(
                select(Task.id).where(Task.parent_task_id.in_(frontier))
            )
            frontier = [child for child in result.scalars().all() if child not in collected]
            collected.extend(frontier)
        return collected

    async def delete_task(self, user: Principal, task_id: UUID) -> None:
        """Delete a task with its comments, assignments and subtasks."""
        await self.get_task_or_404(task_id)

        task_ids = await self._descendant_ids(task_id)
        for statement in (
            delete(Comment).where(Comment.task_id.in_(task_ids)),
            delete(TaskAssignment).where(TaskAssignment.task_id.in_(task_ids)),
            delete(Task).where(Task.id.in_(task_ids)),
        ):
            await self.db.execute(statement.execution_options(synchronize_session=False))
        await self.db.commit()

        logger.info(
            "Task deleted",
            task_id=str(task_id),
            deleted_by=str(user.id),
            subtasks=len(task_ids) - 1,
        )

    # =========================================================================
    # Listing
    # =========================================================================

    async def list_project_tasks(self, project_id: UUID, params: PageParams) -> Page[Task]:
        """Tasks of one project, newest first."""
        await self._get_project_or_404(project_id)
        return await paginate(
            self.db,
            Task,
            params,
            where=task_filter_clauses(project_id=project_id),
            order_by=[Task.created_at.desc(), Task.id],
        )

    async def list_tasks(
        self,
        params: PageParams,
        status: TaskStatus | None = None,
        project_id: UUID | None = None,
        assignee_id: UUID | None = None,
    ) -> Page[Task]:
        """All tasks, newest first, with ANDed optional filters."""
        return await paginate(
            self.db,
            Task,
            params,
            where=task_filter_clauses(status, project_id, assignee_id),
            order_by=[Task.created_at.desc(), Task.id],
            options=[selectinload(Task.project)],
        )

    async def list_my_project_tasks(
        self,
        user: Principal,
        project_id: UUID,
        status: TaskStatus | None = None,
    ) -> list[Task]:
        """Tasks in a project assigned to the caller, who must be a member."""
        project = await self._get_project_or_404(project_id)
        if not can_access_project_tasks(user, project):
            raise ForbiddenError("You do not have access to this project")

        where = task_filter_clauses(status, project_id, user.id)
        result = await self.db.execute(
            select(Task)
            .where(*where)
            .order_by(_WORKFLOW_ORDER, Task.due_date.is_(None), Task.due_date.asc(), Task.id)
            .options(selectinload(Task.project))
        )
        return list(result.scalars().all())
