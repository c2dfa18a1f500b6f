"""Project lifecycle and aggregation service."""

import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
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
from taskhub.models.user import User
from taskhub.services.permissions import (
    Principal,
    can_manage_project,
    can_view_user_projects,
)
from taskhub.services.progress import ProjectProgress, compute_progress
from taskhub.services.query import (
    Page,
    PageParams,
    paginate,
    project_filter_clauses,
    project_search_clause,
)

logger = structlog.get_logger()

# Random disambiguation suffix appended to a colliding project code
CODE_SUFFIX_MIN = 1000
CODE_SUFFIX_MAX = 9999

# Initials kept from long names so the code fits Project.code
MAX_CODE_INITIALS = 32

# Columns that may not be cleared through an update
_REQUIRED_FIELDS = frozenset({"name", "client_id", "status"})


def generate_project_code(name: str, today: date | None = None) -> str:
    """Initials of each word in the name plus the date, e.g. FW-20240131."""
    words = name.split()
    if not words:
        raise ValidationError("Project name cannot be empty")
    initials = "".join(word[0].upper() for word in words[:MAX_CODE_INITIALS])
    day = today or datetime.now(timezone.utc).date()
    return f"{initials}-{day.strftime('%Y%m%d')}"


def add_collision_suffix(code: str) -> str:
    return f"{code}-{random.randint(CODE_SUFFIX_MIN, CODE_SUFFIX_MAX)}"


def _unique(ids: Sequence[UUID]) -> list[UUID]:
    """Drop repeated ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


@dataclass
class ProjectWithProgress:
    """A project with its derived progress and the tasks shown alongside it."""

    project: Project
    stats: ProjectProgress
    tasks: list[Task] = field(default_factory=list)


@dataclass
class UserProject:
    project: Project
    assigned_task_count: int


class ProjectService:
    """Service for project creation, maintenance and project views."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _load_project(self, project_id: UUID, *options: Any) -> Project | None:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_project_or_404(self, project_id: UUID, *options: Any) -> Project:
        project = await self._load_project(project_id, *options)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _require_client(self, client_id: UUID) -> Client:
        result = await self.db.execute(select(Client).where(Client.id == client_id))
        client = result.scalar_one_or_none()
        if client is None:
            raise NotFoundError("Client not found")
        return client

    async def _require_users(self, user_ids: Sequence[UUID]) -> list[UUID]:
        """Resolve every id or fail without touching anything."""
        unique_ids = _unique(user_ids)
        if not unique_ids:
            return []
        result = await self.db.execute(select(User.id).where(User.id.in_(unique_ids)))
        found = set(result.scalars().all())
        if len(found) != len(unique_ids):
            raise NotFoundError("One or more assigned users not found")
        return unique_ids

    async def _code_exists(self, code: str) -> bool:
        result = await self.db.execute(select(Project.id).where(Project.code == code))
        return result.first() is not None

    async def allocate_project_code(self, name: str) -> str:
        """Derive a project code, retrying once with a random suffix.

        A second collision is not retried and surfaces as a conflict.
        """
        code = generate_project_code(name)
        if not await self._code_exists(code):
            return code

        suffixed = add_collision_suffix(code)
        if await self._code_exists(suffixed):
            logger.warning("Project code collision not resolved", code=suffixed)
            raise ConflictError(f"Project code {suffixed} already exists")
        return suffixed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_project(
        self,
        creator: Principal,
        *,
        name: str,
        client_id: UUID,
        member_ids: Sequence[UUID] = (),
        description: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        budget: Decimal | None = None,
    ) -> Project:
        """Create a project; the creator always ends up a member."""
        if not can_manage_project(creator):
            raise ForbiddenError("Only admins can create projects")

        await self._require_client(client_id)
        members = await self._require_users(member_ids)
        if creator.id not in members:
            members.append(creator.id)

        code = await self.allocate_project_code(name)

        project = Project(
            name=name,
            code=code,
            description=description,
            start_date=start_date,
            end_date=end_date,
            budget=budget,
            client_id=client_id,
        )
        project.members = [ProjectMember(user_id=user_id) for user_id in members]
        self.db.add(project)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Project code taken at insert", code=code)
            raise ConflictError(f"Project code {code} already exists")

        logger.info(
            "Project created",
            project_id=str(project.id),
            code=code,
            created_by=str(creator.id),
            members=len(members),
        )
        return await self.get_project_or_404(project.id)

    async def update_project(
        self,
        user: Principal,
        project_id: UUID,
        changes: dict[str, Any],
    ) -> Project:
        """Apply a partial update; supplied member ids replace the member set."""
        project = await self.get_project_or_404(project_id)

        if not can_manage_project(user):
            raise ForbiddenError("Only admins can update projects")

        changes = dict(changes)
        if isinstance(changes.get("status"), ProjectStatus):
            changes["status"] = changes["status"].value
        if changes.get("client_id") is not None:
            await self._require_client(changes["client_id"])

        member_ids = await self._require_users(changes.pop("member_ids", None) or [])

        if changes.get("name") is not None and not changes["name"].strip():
            raise ValidationError("Project name cannot be empty")

        for field_name, value in changes.items():
            if value is None and field_name in _REQUIRED_FIELDS:
                continue
            setattr(project, field_name, value)

        if member_ids:
            existing = {m.user_id: m for m in project.members}
            project.members = [
                existing.get(user_id) or ProjectMember(user_id=user_id)
                for user_id in member_ids
            ]

        await self.db.commit()

        logger.info(
            "Project updated",
            project_id=str(project_id),
            fields=sorted(changes),
            members_replaced=bool(member_ids),
        )
        return await self.get_project_or_404(project_id)

    async def delete_project(self, user: Principal, project_id: UUID) -> None:
        """Delete a project with its tasks and their comments, atomically.

        Rows go child-first (comments, assignments, tasks, memberships,
        project) so foreign keys hold at every step. Any failure rolls the
        whole deletion back.
        """
        await self.get_project_or_404(project_id)

        if not can_manage_project(user):
            raise ForbiddenError("Only admins can delete projects")

        task_ids = select(Task.id).where(Task.project_id == project_id)
        statements = [
            delete(Comment).where(Comment.task_id.in_(task_ids)),
            delete(TaskAssignment).where(TaskAssignment.task_id.in_(task_ids)),
            delete(Task).where(Task.project_id == project_id),
            delete(ProjectMember).where(ProjectMember.project_id == project_id),
            delete(Project).where(Project.id == project_id),
        ]

        try:
            for statement in statements:
                await self.db.execute(
                    statement.execution_options(synchronize_session=False)
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Project deletion rolled back",
                project_id=str(project_id),
                error=str(e),
            )
            raise

        logger.info("Project deleted", project_id=str(project_id), deleted_by=str(user.id))

    # =========================================================================
    # Views
    # =========================================================================

    async def get_project(self, project_id: UUID) -> Project:
        """Project with client, members and every task with its comments."""
        return await self.get_project_or_404(
            project_id,
            selectinload(Project.tasks).selectinload(Task.comments),
        )

    async def get_all_projects(self, params: PageParams, search: str | None = None) -> Page[Project]:
        """Paginated project list, newest first, optionally searched."""
        search_clause = project_search_clause(search)
        where = [search_clause] if search_clause is not None else []
        return await paginate(
            self.db,
            Project,
            params,
            where=where,
            order_by=[Project.created_at.desc(), Project.id],
        )

    async def get_all_projects_with_progress(
        self,
        params: PageParams,
        search: str | None = None,
        assignee_id: UUID | None = None,
        client_id: UUID | None = None,
        status: TaskStatus | None = None,
    ) -> Page[ProjectWithProgress]:
        """Paginated projects enriched with task progress.

        Progress counts every task of the project. The status filter narrows
        both the projects (some task must have it) and the tasks listed with
        each project.
        """
        page = await paginate(
            self.db,
            Project,
            params,
            where=project_filter_clauses(search, client_id, assignee_id, status),
            order_by=[Project.updated_at.desc(), Project.id],
            options=[selectinload(Project.tasks)],
        )

        items = []
        for project in page.data:
            stats = compute_progress(task.status for task in project.tasks)
            shown = [
                task for task in project.tasks
                if status is None or task.status == status.value
            ]
            # Due date ascending, undated tasks last
            shown.sort(key=lambda t: (t.due_date is None, t.due_date or date.min))
            items.append(ProjectWithProgress(project=project, stats=stats, tasks=shown))

        return Page(data=items, meta=page.meta)

    async def get_user_projects(self, caller: Principal, user_id: UUID) -> list[UserProject]:
        """Projects the user is a member of, with their assigned task count."""
        if not can_view_user_projects(caller, user_id):
            raise ForbiddenError("You can only view your own projects")

        assigned_count = (
            select(func.count(Task.id))
            .where(
                Task.project_id == Project.id,
                Task.assignments.any(TaskAssignment.user_id == user_id),
            )
            .correlate(Project)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Project, assigned_count.label("assigned_task_count"))
            .where(Project.members.any(ProjectMember.user_id == user_id))
            .order_by(Project.created_at.desc(), Project.id)
        )
        return [
            UserProject(project=project, assigned_task_count=count or 0)
            for project, count in result.all()
        ]

    async def find_all_users_with_projects(self, params: PageParams) -> Page[User]:
        """Paginated users, newest first, with their project memberships loaded."""
        return await paginate(
            self.db,
            User,
            params,
            order_by=[User.created_at.desc(), User.id],
            options=[selectinload(User.project_memberships).selectinload(ProjectMember.project)],
        )
