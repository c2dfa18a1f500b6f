"""Task endpoints."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import Field

from taskhub.api.v1.auth import CurrentUser
from taskhub.api.v1.common import (
    CamelModel,
    MessageResponse,
    PageResponse,
    Pagination,
    ProjectSummary,
    UserSummary,
)
from taskhub.db.session import DBSession
from taskhub.models.project import DEFAULT_PRIORITY, MAX_PRIORITY, MIN_PRIORITY, TaskStatus
from taskhub.services.query import parse_task_status
from taskhub.services.task import TaskService

router = APIRouter()


# Request/Response Models
class TaskCreate(CamelModel):
    """Create a task in the project named by the path."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: int = Field(DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    due_date: date | None = None
    assignee_ids: list[UUID] = Field(default_factory=list)
    parent_task_id: UUID | None = None


class TaskUpdate(CamelModel):
    """Partial task update; assigneeIds replaces the assignee set."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    priority: int | None = Field(None, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    due_date: date | None = None
    assignee_ids: list[UUID] | None = None


class TaskResponse(CamelModel):
    id: UUID
    title: str
    description: str | None = None
    status: str
    priority: int
    due_date: date | None = None
    project_id: UUID
    parent_task_id: UUID | None = None
    created_by_id: UUID | None = None
    created_by: UserSummary | None = None
    assignees: list[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskWithProjectResponse(TaskResponse):
    project: ProjectSummary


class MyTasksResponse(CamelModel):
    data: list[TaskWithProjectResponse]


@router.post(
    "/tasks/{project_id}",
    response_model=TaskWithProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    project_id: UUID,
    data: TaskCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskWithProjectResponse:
    task = await TaskService(db).create_task(current_user, project_id, **data.model_dump())
    return TaskWithProjectResponse.model_validate(task)


@router.get("/tasks/{project_id}", response_model=PageResponse[TaskResponse])
async def list_project_tasks(
    project_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
) -> PageResponse[TaskResponse]:
    page = await TaskService(db).list_project_tasks(project_id, pagination)
    return PageResponse[TaskResponse].model_validate(page)


@router.get("/tasks", response_model=PageResponse[TaskWithProjectResponse])
async def list_tasks(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
    status_filter: str | None = Query(None, alias="status"),
    project_id: UUID | None = Query(None, alias="projectId"),
    assignee_id: UUID | None = Query(None, alias="assigneeId"),
) -> PageResponse[TaskWithProjectResponse]:
    """All tasks, newest first. Filters combine with AND."""
    page = await TaskService(db).list_tasks(
        pagination,
        status=parse_task_status(status_filter),
        project_id=project_id,
        assignee_id=assignee_id,
    )
    return PageResponse[TaskWithProjectResponse].model_validate(page)


@router.patch("/tasks/{task_id}", response_model=TaskWithProjectResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> TaskWithProjectResponse:
    task = await TaskService(db).update_task(
        current_user, task_id, data.model_dump(exclude_unset=True)
    )
    return TaskWithProjectResponse.model_validate(task)


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await TaskService(db).delete_task(current_user, task_id)
    return MessageResponse(message="Task deleted successfully")


@router.get("/projects/{project_id}/my-tasks", response_model=MyTasksResponse)
async def list_my_project_tasks(
    project_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    status_filter: str | None = Query(None, alias="status"),
) -> MyTasksResponse:
    """Tasks in the project assigned to the caller, by workflow stage then due date."""
    tasks = await TaskService(db).list_my_project_tasks(
        current_user, project_id, parse_task_status(status_filter)
    )
    return MyTasksResponse(data=[TaskWithProjectResponse.model_validate(t) for t in tasks])
