"""Pytest fixtures: in-memory SQLite database, seeded rows and an HTTP client."""

import os

# The engine is built at import time from settings, so point it at SQLite first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from collections.abc import AsyncGenerator
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskhub.db.base import Base
from taskhub.db.session import get_db_session
from taskhub.main import app
from taskhub.models import (
    Client,
    Comment,
    Project,
    ProjectMember,
    Task,
    TaskAssignment,
    TaskStatus,
    User,
    UserRole,
)
from taskhub.security import create_access_token, hash_password

PASSWORD = "Secret@123"
# Hashed once; bcrypt is deliberately slow
PASSWORD_HASH = hash_password(PASSWORD)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(session_factory) -> dict[str, User]:
    """An admin, two regular users and one outsider who belongs to nothing."""
    rows = {
        "admin": User(
            email="admin@example.com",
            password_hash=PASSWORD_HASH,
            first_name="Ada",
            last_name="Admin",
            role=UserRole.ADMIN.value,
        ),
        "alice": User(
            email="alice@example.com",
            password_hash=PASSWORD_HASH,
            first_name="Alice",
            last_name="Member",
        ),
        "bob": User(
            email="bob@example.com",
            password_hash=PASSWORD_HASH,
            first_name="Bob",
            last_name="Assignee",
        ),
        "carol": User(
            email="carol@example.com",
            password_hash=PASSWORD_HASH,
            first_name="Carol",
            last_name="Outsider",
        ),
    }
    async with session_factory() as session:
        session.add_all(rows.values())
        await session.commit()
    return rows


@pytest.fixture
async def clients(session_factory) -> dict[str, Client]:
    rows = {
        "ecowood": Client(name="EcoWood Ltd", email="info@ecowood.com"),
        "forestry": Client(name="National Forestry Agency", email="contact@nfa.gov.rw"),
    }
    async with session_factory() as session:
        session.add_all(rows.values())
        await session.commit()
    return rows


@pytest.fixture
async def project(session_factory, users, clients) -> Project:
    """Forest Watch: members admin and alice; bob is assigned a task without membership.

    Tasks: "Survey plots" (TODO, alice), "Draft report" (DONE, alice),
    "Review maps" (IN_PROGRESS, bob) and "Archive photos" (TODO, nobody).
    "Survey plots" carries one comment by alice.
    """
    async with session_factory() as session:
        project = Project(
            name="Forest Watch",
            code="FW-20240101",
            description="Monitoring of protected forest plots",
            client_id=clients["forestry"].id,
        )
        project.members = [
            ProjectMember(user_id=users["admin"].id),
            ProjectMember(user_id=users["alice"].id),
        ]
        session.add(project)
        await session.flush()

        def make_task(title, task_status, assignee=None, due=None):
            task = Task(
                title=title,
                status=task_status.value,
                project_id=project.id,
                created_by_id=users["admin"].id,
                due_date=due,
            )
            if assignee is not None:
                task.assignments = [TaskAssignment(user_id=assignee.id)]
            session.add(task)
            return task

        survey = make_task("Survey plots", TaskStatus.TODO, users["alice"], date(2024, 3, 1))
        make_task("Draft report", TaskStatus.DONE, users["alice"], date(2024, 2, 1))
        make_task("Review maps", TaskStatus.IN_PROGRESS, users["bob"])
        make_task("Archive photos", TaskStatus.TODO)
        await session.flush()

        session.add(Comment(content="Plot 4 is flooded", task_id=survey.id, user_id=users["alice"].id))
        await session.commit()
    return project


@pytest.fixture
async def tasks(session_factory, project) -> dict[str, Task]:
    """The seeded Forest Watch tasks keyed by title."""
    async with session_factory() as session:
        result = await session.execute(select(Task).where(Task.project_id == project.id))
        return {task.title: task for task in result.scalars().all()}


@pytest.fixture
async def http(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with each request on its own session."""

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
