import os
from datetime import date
from decimal import Decimal

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sprintboard.models.base import Base
from sprintboard.models.enums import StoryStatus, TaskStatus, Priority, SprintStatus
from sprintboard.models.sprint import Project, Sprint
from sprintboard.models.story import Story, Task, Subtask
from sprintboard.models.user import User

# Registered on Base.metadata for create_all
from sprintboard.models import backlog, notification, activity_log, id_sequence  # noqa: F401


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class Factory:
    """Builds committed rows with short readable ids."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._counters = {}

    def _next_id(self, prefix: str) -> str:
        self._counters[prefix] = self._counters.get(prefix, 0) + 1
        return f"{prefix}{self._counters[prefix]:03d}"

    async def _save(self, entity):
        self.db.add(entity)
        await self.db.commit()
        return entity

    async def user(self, id=None, role="developer", **kwargs) -> User:
        user_id = id or self._next_id("USER")
        kwargs.setdefault("email", f"{user_id.lower()}@example.com")
        kwargs.setdefault("full_name", f"User {user_id}")
        return await self._save(User(id=user_id, role=role, **kwargs))

    async def project(self, id=None, **kwargs) -> Project:
        kwargs.setdefault("name", "Customer Portal")
        return await self._save(Project(id=id or self._next_id("PROJ"), **kwargs))

    async def sprint(self, project: Project, id=None, status=SprintStatus.ACTIVE, **kwargs) -> Sprint:
        kwargs.setdefault("name", "Sprint")
        return await self._save(Sprint(
            id=id or self._next_id("SPNT"),
            project_id=project.id,
            status=status,
            **kwargs
        ))

    async def story(self, sprint: Sprint, id=None, **kwargs) -> Story:
        kwargs.setdefault("title", "Story")
        kwargs.setdefault("status", StoryStatus.IN_PROGRESS)
        kwargs.setdefault("priority", Priority.MEDIUM)
        return await self._save(Story(
            id=id or self._next_id("STRY"),
            project_id=sprint.project_id,
            sprint_id=sprint.id,
            **kwargs
        ))

    async def task(self, story: Story, id=None, status=TaskStatus.TO_DO, due_date: date = None, **kwargs) -> Task:
        kwargs.setdefault("title", "Task")
        kwargs.setdefault("priority", Priority.MEDIUM)
        kwargs.setdefault("estimated_hours", Decimal("4.00"))
        return await self._save(Task(
            id=id or self._next_id("TASK"),
            story_id=story.id,
            status=status,
            due_date=due_date,
            **kwargs
        ))

    async def subtask(self, task: Task, id=None, is_completed=False, **kwargs) -> Subtask:
        kwargs.setdefault("title", "Subtask")
        return await self._save(Subtask(
            id=id or self._next_id("SUBT"),
            task_id=task.id,
            is_completed=is_completed,
            **kwargs
        ))


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def today():
    return date(2026, 3, 16)
