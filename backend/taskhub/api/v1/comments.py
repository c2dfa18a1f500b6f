"""Task comment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import Field

from taskhub.api.v1.auth import CurrentUser
from taskhub.api.v1.common import CamelModel, MessageResponse, UserSummary
from taskhub.db.session import DBSession
from taskhub.services.comment import CommentService

router = APIRouter()


class CommentCreate(CamelModel):
    task_id: UUID
    content: str = Field(..., min_length=1, max_length=10000)


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(CamelModel):
    id: UUID
    content: str
    task_id: UUID
    user_id: UUID
    user: UserSummary
    created_at: datetime
    updated_at: datetime


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentResponse:
    comment = await CommentService(db).create_comment(current_user, data.task_id, data.content)
    return CommentResponse.model_validate(comment)


@router.get("/tasks/{task_id}/comments", response_model=list[CommentResponse])
async def list_task_comments(
    task_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[CommentResponse]:
    """Comments on a task, newest first."""
    comments = await CommentService(db).list_comments(current_user, task_id)
    return [CommentResponse.model_validate(c) for c in comments]


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentResponse:
    comment = await CommentService(db).update_comment(current_user, comment_id, data.content)
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await CommentService(db).delete_comment(current_user, comment_id)
    return MessageResponse(message="Comment deleted successfully")
