"""CommentService permissions and ordering."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from taskhub.exceptions import ForbiddenError, NotFoundError, ValidationError
from taskhub.models import Comment, Task
from taskhub.services.comment import CommentService


async def _first_comment(db, task) -> Comment:
    result = await db.execute(select(Comment).where(Comment.task_id == task.id))
    return result.scalars().first()


async def test_member_and_assignee_may_comment(db, users, tasks):
    service = CommentService(db)

    by_member = await service.create_comment(users["admin"], tasks["Survey plots"].id, "On it")
    by_assignee = await service.create_comment(users["bob"], tasks["Review maps"].id, "Maps done")

    assert by_member.user.email == "admin@example.com"
    assert by_assignee.task_id == tasks["Review maps"].id


async def test_outsider_cannot_comment(db, users, tasks):
    with pytest.raises(ForbiddenError, match="permission to comment"):
        await CommentService(db).create_comment(users["carol"], tasks["Survey plots"].id, "Hi")


async def test_assignee_cannot_comment_on_other_tasks(db, users, tasks):
    with pytest.raises(ForbiddenError):
        await CommentService(db).create_comment(users["bob"], tasks["Survey plots"].id, "Hi")


async def test_missing_task_is_not_found(db, users):
    with pytest.raises(NotFoundError):
        await CommentService(db).create_comment(users["admin"], uuid4(), "Hi")


async def test_blank_content_rejected(db, users, tasks):
    with pytest.raises(ValidationError):
        await CommentService(db).create_comment(users["admin"], tasks["Survey plots"].id, "   ")


async def test_list_newest_first(db, users, tasks):
    service = CommentService(db)
    task = tasks["Survey plots"]
    await service.create_comment(users["admin"], task.id, "Second")
    await service.create_comment(users["alice"], task.id, "Third")

    comments = await service.list_comments(users["alice"], task.id)

    assert [c.content for c in comments] == ["Third", "Second", "Plot 4 is flooded"]


async def test_outsider_cannot_list(db, users, tasks):
    with pytest.raises(ForbiddenError):
        await CommentService(db).list_comments(users["carol"], tasks["Survey plots"].id)


async def test_teammate_may_edit_anothers_comment(db, users, tasks):
    comment = await _first_comment(db, tasks["Survey plots"])

    updated = await CommentService(db).update_comment(users["admin"], comment.id, "Plot 4 drained")

    assert updated.content == "Plot 4 drained"
    assert updated.user_id == users["alice"].id


async def test_outsider_cannot_update_or_delete(db, users, tasks):
    comment = await _first_comment(db, tasks["Survey plots"])
    service = CommentService(db)

    with pytest.raises(ForbiddenError, match="update this comment"):
        await service.update_comment(users["carol"], comment.id, "x")
    with pytest.raises(ForbiddenError, match="delete this comment"):
        await service.delete_comment(users["carol"], comment.id)


async def test_delete_only_removes_the_comment(db, session_factory, users, tasks):
    task = tasks["Survey plots"]
    comment = await _first_comment(db, task)

    await CommentService(db).delete_comment(users["alice"], comment.id)

    async with session_factory() as session:
        assert await session.get(Comment, comment.id) is None
        assert await session.get(Task, task.id) is not None


async def test_missing_comment(db, users):
    with pytest.raises(NotFoundError, match="Comment not found"):
        await CommentService(db).update_comment(users["admin"], uuid4(), "x")
