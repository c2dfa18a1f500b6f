"""Pagination and filter construction shared by the list endpoints."""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import get_settings
from taskhub.exceptions import ValidationError
from taskhub.models.project import Project, Task, TaskAssignment, TaskStatus

T = TypeVar("T")

settings = get_settings()

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class PageParams:
    """A normalized (page, limit) pair."""

    page: int = 1
    limit: int = 10

    @classmethod
    def clamp(cls, page: int | None, limit: int | None) -> "PageParams":
        """Clamp raw values into range instead of rejecting them.

        page is at least 1; limit is between 1 and the configured maximum.
        Missing values fall back to the defaults.
        """
        page = 1 if page is None else max(1, page)
        if limit is None:
            limit = settings.default_page_size
        limit = min(settings.max_page_size, max(1, limit))
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageMeta:
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


@dataclass
class Page(Generic[T]):
    data: list[T] = field(default_factory=list)
    meta: PageMeta = field(default_factory=lambda: PageMeta(total=0, page=1, limit=10))


async def paginate(
    db: AsyncSession,
    model: type[T],
    params: PageParams,
    where: Sequence[ColumnElement[bool]] = (),
    order_by: Sequence[Any] = (),
    options: Sequence[Any] = (),
) -> Page[T]:
    """Run a count and a page query over the same filter set.

    A page past the end returns no rows but the same meta shape.
    """
    count_query = select(func.count()).select_from(model).where(*where)
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        select(model)
        .where(*where)
        .order_by(*order_by)
        .offset(params.offset)
        .limit(params.limit)
        .options(*options)
    )
    result = await db.execute(query)
    rows = list(result.scalars().unique().all())

    return Page(data=rows, meta=PageMeta(total=total, page=params.page, limit=params.limit))


def parse_task_status(value: str | None) -> TaskStatus | None:
    """Parse an optional status filter, rejecting anything outside the workflow."""
    if not value:
        return None
    try:
        return TaskStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}")


def like_pattern(term: str) -> str:
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def project_search_clause(search: str | None) -> ColumnElement[bool] | None:
    """Case-insensitive containment over name, description and code."""
    if not search:
        return None
    pattern = like_pattern(search)
    return or_(
        Project.name.ilike(pattern, escape=LIKE_ESCAPE),
        Project.description.ilike(pattern, escape=LIKE_ESCAPE),
        Project.code.ilike(pattern, escape=LIKE_ESCAPE),
    )


def task_filter_clauses(
    status: TaskStatus | None = None,
    project_id: UUID | None = None,
    assignee_id: UUID | None = None,
) -> list[ColumnElement[bool]]:
    """Independent equality/membership predicates, ANDed by the caller."""
    clauses: list[ColumnElement[bool]] = []
    if status is not None:
        clauses.append(Task.status == status.value)
    if project_id is not None:
        clauses.append(Task.project_id == project_id)
    if assignee_id is not None:
        clauses.append(Task.assignments.any(TaskAssignment.user_id == assignee_id))
    return clauses


def project_filter_clauses(
    search: str | None = None,
    client_id: UUID | None = None,
    assignee_id: UUID | None = None,
    status: TaskStatus | None = None,
) -> list[ColumnElement[bool]]:
    """Project filters for the progress view.

    assignee_id and status each require some task of the project to match;
    the two conditions are independent of each other.
    """
    clauses: list[ColumnElement[bool]] = []
    search_clause = project_search_clause(search)
    if search_clause is not None:
        clauses.append(search_clause)
    if client_id is not None:
        clauses.append(Project.client_id == client_id)
    if assignee_id is not None:
        clauses.append(
            Project.tasks.any(Task.assignments.any(TaskAssignment.user_id == assignee_id))
        )
    if status is not None:
        clauses.append(Project.tasks.any(Task.status == status.value))
    return clauses
