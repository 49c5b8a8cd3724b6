"""Repositories for live sprint content: sprints, stories, tasks, subtasks."""

from __future__ import annotations

from typing import List

from sqlalchemy import func, select

from ..models.sprint import Project, Sprint
from ..models.story import Story, Subtask, Task
from .base import SQLAlchemyRepository


class ProjectRepository(SQLAlchemyRepository[Project]):
    model = Project


class SprintRepository(SQLAlchemyRepository[Sprint]):
    model = Sprint

    async def find_by_project_id(self, project_id: str) -> List[Sprint]:
        stmt = (
            select(Sprint)
            .where(Sprint.project_id == project_id)
            .order_by(Sprint.start_date, Sprint.created_at)
        )
        return await self._find(stmt)


class StoryRepository(SQLAlchemyRepository[Story]):
    model = Story

    async def find_by_sprint_id(self, sprint_id: str) -> List[Story]:
        stmt = (
            select(Story)
            .where(Story.sprint_id == sprint_id)
            .order_by(Story.order_index, Story.created_at)
        )
        return await self._find(stmt)

    async def find_by_parent_id(self, parent_id: str) -> List[Story]:
        stmt = select(Story).where(Story.parent_id == parent_id).order_by(Story.created_at)
        return await self._find(stmt)


class TaskRepository(SQLAlchemyRepository[Task]):
    model = Task

    async def find_by_story_id(self, story_id: str) -> List[Task]:
        stmt = (
            select(Task)
            .where(Task.story_id == story_id)
            .order_by(Task.order_index, Task.task_number, Task.created_at)
        )
        return await self._find(stmt)

    async def find_max_task_number_by_story_id(self, story_id: str) -> int:
        stmt = select(func.max(Task.task_number)).where(Task.story_id == story_id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0


class SubtaskRepository(SQLAlchemyRepository[Subtask]):
    model = Subtask

    async def find_by_task_id(self, task_id: str) -> List[Subtask]:
        stmt = (
            select(Subtask)
            .where(Subtask.task_id == task_id)
            .order_by(Subtask.order_index, Subtask.created_at)
        )
        return await self._find(stmt)
