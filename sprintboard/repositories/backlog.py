"""Repositories for backlog shadow copies."""

from __future__ import annotations

from typing import List

from sqlalchemy import and_, select

from ..models.backlog import BacklogStory, BacklogSubtask, BacklogTask
from .base import SQLAlchemyRepository


class BacklogStoryRepository(SQLAlchemyRepository[BacklogStory]):
    model = BacklogStory

    async def find_by_project_id(self, project_id: str) -> List[BacklogStory]:
        stmt = (
            select(BacklogStory)
            .where(BacklogStory.project_id == project_id)
            .order_by(BacklogStory.order_index, BacklogStory.created_at)
        )
        return await self._find(stmt)

    async def exists_for_story_and_sprint(self, original_story_id: str, sprint_id: str) -> bool:
        stmt = (
            select(BacklogStory.id)
            .where(
                and_(
                    BacklogStory.original_story_id == original_story_id,
                    BacklogStory.original_sprint_id == sprint_id,
                )
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None


class BacklogTaskRepository(SQLAlchemyRepository[BacklogTask]):
    model = BacklogTask

    async def find_by_backlog_story_id(self, backlog_story_id: str) -> List[BacklogTask]:
        stmt = (
            select(BacklogTask)
            .where(BacklogTask.backlog_story_id == backlog_story_id)
            .order_by(BacklogTask.order_index, BacklogTask.task_number, BacklogTask.created_at)
        )
        return await self._find(stmt)


class BacklogSubtaskRepository(SQLAlchemyRepository[BacklogSubtask]):
    model = BacklogSubtask

    async def find_by_backlog_task_id(self, backlog_task_id: str) -> List[BacklogSubtask]:
        stmt = (
            select(BacklogSubtask)
            .where(BacklogSubtask.backlog_task_id == backlog_task_id)
            .order_by(BacklogSubtask.order_index, BacklogSubtask.created_at)
        )
        return await self._find(stmt)
