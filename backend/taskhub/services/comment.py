"""Comment service."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.exceptions import ForbiddenError, NotFoundError, ValidationError
from taskhub.models.project import Comment, Task
from taskhub.services.permissions import (
    Principal,
    can_comment_on_task,
    can_modify_comment,
)

logger = structlog.get_logger()


class CommentService:
    """Service for comments on tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_task_or_404(self, task_id: UUID) -> Task:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id).options(selectinload(Task.project))
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def _get_comment_or_404(self, comment_id: UUID) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.task).selectinload(Task.project))
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    @staticmethod
    def _require_content(content: str | None) -> str:
        if content is None or not content.strip():
            raise ValidationError("Comment content cannot be empty")
        return content

    async def create_comment(self, user: Principal, task_id: UUID, content: str) -> Comment:
        content = self._require_content(content)
        task = await self._get_task_or_404(task_id)
        if not can_comment_on_task(user, task):
            raise ForbiddenError("You do not have permission to comment on this task")

        comment = Comment(content=content, task_id=task_id, user_id=user.id)
        self.db.add(comment)
        await self.db.commit()

        logger.info("Comment created", comment_id=str(comment.id), task_id=str(task_id))
        return await self._get_comment_or_404(comment.id)

    async def list_comments(self, user: Principal, task_id: UUID) -> list[Comment]:
        """Comments on a task, newest first."""
        task = await self._get_task_or_404(task_id)
        if not can_comment_on_task(user, task):
            raise ForbiddenError("You do not have permission to view comments on this task")

        result = await self.db.execute(
            select(Comment)
            .where(Comment.task_id == task_id)
            .order_by(Comment.created_at.desc(), Comment.id)
        )
        return list(result.scalars().all())

    async def update_comment(self, user: Principal, comment_id: UUID, content: str) -> Comment:
        content = self._require_content(content)
        comment = await self._get_comment_or_404(comment_id)
        if not can_modify_comment(user, comment):
            raise ForbiddenError("You do not have permission to update this comment")

        comment.content = content
        await self.db.commit()

        logger.info("Comment updated", comment_id=str(comment_id), updated_by=str(user.id))
        return await self._get_comment_or_404(comment_id)

    async def delete_comment(self, user: Principal, comment_id: UUID) -> None:
        comment = await self._get_comment_or_404(comment_id)
        if not can_modify_comment(user, comment):
            raise ForbiddenError("You do not have permission to delete this comment")

        await self.db.delete(comment)
        await self.db.commit()

        logger.info("Comment deleted", comment_id=str(comment_id), deleted_by=str(user.id))
