"""Project endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import Field, StringConstraints, field_validator

from taskhub.api.v1.auth import CurrentUser
from taskhub.api.v1.comments import CommentResponse
from taskhub.api.v1.common import (
    CamelModel,
    ClientSummary,
    MessageResponse,
    PageMetaResponse,
    PageResponse,
    Pagination,
    ProjectSummary,
    UserSummary,
)
from taskhub.api.v1.tasks import TaskResponse
from taskhub.db.session import DBSession
from taskhub.models.project import ProjectStatus
from taskhub.services.project import ProjectService, ProjectWithProgress, UserProject
from taskhub.services.query import parse_task_status

router = APIRouter()

ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


# Request/Response Models
class ProjectCreate(CamelModel):
    """Create a new project. The caller is always added as a member."""

    name: ProjectName
    description: str | None = None
    client_id: UUID
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal | None = Field(None, ge=0, max_digits=14, decimal_places=2)
    member_ids: list[UUID] = Field(default_factory=list)


class ProjectUpdate(CamelModel):
    """Partial project update; memberIds replaces the member set."""

    name: ProjectName | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    client_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal | None = Field(None, ge=0, max_digits=14, decimal_places=2)
    member_ids: list[UUID] | None = None


class ProjectResponse(CamelModel):
    id: UUID
    name: str
    code: str
    description: str | None = None
    status: str
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal | None = None
    client_id: UUID
    client: ClientSummary | None = None
    members: list[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("members", mode="before")
    @classmethod
    def members_as_users(cls, value: Any) -> Any:
        # Membership rows carry the user; plain user data passes through
        if isinstance(value, list):
            return [getattr(item, "user", item) for item in value]
        return value


class TaskWithCommentsResponse(TaskResponse):
    comments: list[CommentResponse] = Field(default_factory=list)


class ProjectDetailResponse(ProjectResponse):
    tasks: list[TaskWithCommentsResponse] = Field(default_factory=list)


class ProgressTaskResponse(TaskResponse):
    assignee: UserSummary | None = None


class ProjectWithProgressResponse(ProjectResponse):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    progress: int
    tasks: list[ProgressTaskResponse] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: ProjectWithProgress) -> "ProjectWithProgressResponse":
        return cls.model_validate({
            **ProjectResponse.model_validate(item.project).model_dump(),
            "total_tasks": item.stats.total_tasks,
            "completed_tasks": item.stats.completed_tasks,
            "pending_tasks": item.stats.pending_tasks,
            "progress": item.stats.progress,
            "tasks": item.tasks,
        })


class UserProjectResponse(ProjectResponse):
    assigned_task_count: int

    @classmethod
    def from_item(cls, item: UserProject) -> "UserProjectResponse":
        return cls.model_validate({
            **ProjectResponse.model_validate(item.project).model_dump(),
            "assigned_task_count": item.assigned_task_count,
        })


class CountMeta(CamelModel):
    count: int


class UserProjectsResponse(CamelModel):
    data: list[UserProjectResponse]
    meta: CountMeta


class UserWithProjectsResponse(UserSummary):
    projects: list[ProjectSummary] = Field(default_factory=list)


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectResponse:
    """Create a project (admins only)."""
    project = await ProjectService(db).create_project(current_user, **data.model_dump())
    return ProjectResponse.model_validate(project)


@router.get("/projects/all", response_model=PageResponse[ProjectResponse])
async def list_projects(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
    search: str | None = Query(None, max_length=100),
) -> PageResponse[ProjectResponse]:
    page = await ProjectService(db).get_all_projects(pagination, search)
    return PageResponse[ProjectResponse].model_validate(page)


@router.get("/projects/with-progress", response_model=PageResponse[ProjectWithProgressResponse])
async def list_projects_with_progress(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
    search: str | None = Query(None, max_length=100),
    assignee_id: UUID | None = Query(None, alias="assigneeId"),
    client_id: UUID | None = Query(None, alias="clientId"),
    status_filter: str | None = Query(None, alias="status"),
) -> PageResponse[ProjectWithProgressResponse]:
    """Projects with task progress, most recently updated first."""
    page = await ProjectService(db).get_all_projects_with_progress(
        pagination,
        search=search,
        assignee_id=assignee_id,
        client_id=client_id,
        status=parse_task_status(status_filter),
    )
    return PageResponse[ProjectWithProgressResponse](
        data=[ProjectWithProgressResponse.from_item(item) for item in page.data],
        meta=PageMetaResponse.model_validate(page.meta),
    )


@router.get("/projects/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectDetailResponse:
    """Project with client, members and all tasks with their comments."""
    project = await ProjectService(db).get_project(project_id)
    return ProjectDetailResponse.model_validate(project)


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectResponse:
    """Update a project (admins only)."""
    project = await ProjectService(db).update_project(
        current_user, project_id, data.model_dump(exclude_unset=True)
    )
    return ProjectResponse.model_validate(project)


@router.delete("/projects/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    """Delete a project with its tasks and comments (admins only)."""
    await ProjectService(db).delete_project(current_user, project_id)
    return MessageResponse(message="Project deleted successfully")


@router.get("/users-with-projects", response_model=PageResponse[UserWithProjectsResponse])
async def list_users_with_projects(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
) -> PageResponse[UserWithProjectsResponse]:
    page = await ProjectService(db).find_all_users_with_projects(pagination)
    return PageResponse[UserWithProjectsResponse].model_validate(page)


@router.get("/users/{user_id}/projects", response_model=UserProjectsResponse)
async def list_user_projects(
    user_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> UserProjectsResponse:
    """Projects the user belongs to. Callers may only list their own."""
    items = await ProjectService(db).get_user_projects(current_user, user_id)
    return UserProjectsResponse(
        data=[UserProjectResponse.from_item(item) for item in items],
        meta=CountMeta(count=len(items)),
    )
