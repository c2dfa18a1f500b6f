"""Authorization predicates evaluated on plain objects, without a database."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from taskhub.models.user import UserRole
from taskhub.services.permissions import (
    can_access_project_tasks,
    can_comment_on_task,
    can_manage_clients,
    can_manage_project,
    can_modify_comment,
    can_view_user_projects,
)


def make_user(role: UserRole = UserRole.USER):
    return SimpleNamespace(id=uuid4(), role=role.value)


def make_project(*members):
    return SimpleNamespace(member_ids={m.id for m in members})


def make_task(project, *assignees):
    return SimpleNamespace(project=project, assignee_ids={a.id for a in assignees})


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (UserRole.ADMIN, True),
        (UserRole.USER, False),
        (UserRole.MANAGER, False),
        (UserRole.CONSULTANT, False),
    ],
)
def test_only_admins_manage_projects_and_clients(role, expected):
    user = make_user(role)
    assert can_manage_project(user) is expected
    assert can_manage_clients(user) is expected


def test_non_admin_member_still_cannot_manage_project():
    member = make_user()
    make_project(member)
    assert can_manage_project(member) is False


def test_project_tasks_visible_to_members_only():
    member, outsider = make_user(), make_user()
    project = make_project(member)

    assert can_access_project_tasks(member, project)
    assert not can_access_project_tasks(outsider, project)


def test_admin_role_does_not_grant_task_access():
    admin = make_user(UserRole.ADMIN)
    assert not can_access_project_tasks(admin, make_project(make_user()))


def test_comment_allowed_for_member_or_assignee():
    member, assignee, outsider = make_user(), make_user(), make_user()
    task = make_task(make_project(member), assignee)

    assert can_comment_on_task(member, task)
    assert can_comment_on_task(assignee, task)
    assert not can_comment_on_task(outsider, task)


def test_any_collaborator_may_modify_a_comment():
    author, teammate, assignee, outsider = make_user(), make_user(), make_user(), make_user()
    task = make_task(make_project(author, teammate), assignee)
    comment = SimpleNamespace(user_id=author.id, task=task)

    assert can_modify_comment(author, comment)
    assert can_modify_comment(teammate, comment)
    assert can_modify_comment(assignee, comment)
    assert not can_modify_comment(outsider, comment)


def test_author_keeps_comment_rights_after_leaving_project():
    author = make_user()
    comment = SimpleNamespace(user_id=author.id, task=make_task(make_project()))
    assert can_modify_comment(author, comment)


def test_users_list_only_their_own_projects():
    user = make_user()
    assert can_view_user_projects(user, user.id)
    assert not can_view_user_projects(user, uuid4())
