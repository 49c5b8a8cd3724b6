from datetime import date
from typing import List, Optional
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.exceptions import NotFoundError
from ..models.enums import TERMINAL_TASK_STATUSES
from ..models.story import Task, Subtask
from ..repositories.active import TaskRepository, SubtaskRepository
from .id_generation import IdGenerationService
from .notification_service import NotificationService
from ..utils.logging import get_logger

logger = get_logger(__name__)


class TaskService:
    """Service for task creation and lookup"""

    def __init__(
        self,
        db: AsyncSession,
        id_generator: Optional[IdGenerationService] = None,
        notification_service: Optional[NotificationService] = None
    ):
        self.db = db
        self.tasks = TaskRepository(db)
        self.id_generator = id_generator or IdGenerationService(db)
        self.notification_service = notification_service or NotificationService(db, self.id_generator)

    async def create_task(self, task: Task, commit: bool = True) -> Task:
        """Create a task, numbering it within its story.

        A task number of None, 0 or 1 is treated as "unassigned" and replaced
        with the next number in the story.
        """

        try:
            if task.id is None:
                task.id = await self.id_generator.generate_task_id()

            if task.task_number in (None, 0, 1) and task.story_id is not None:
                max_number = await self.tasks.find_max_task_number_by_story_id(task.story_id)
                task.task_number = max_number + 1

            if task.labels is None:
                task.labels = []

            await self.tasks.save(task)

            if task.assignee_id and settings.notify_on_task_assignment:
                await self._notify_assignee(task)

            if commit:
                await self.db.commit()
                await self.db.refresh(task)

            logger.debug(f"Created task {task.id} (#{task.task_number}) in story {task.story_id}")
            return task

        except Exception as e:
            logger.error(f"Failed to create task: {str(e)}")
            if commit:
                await self.db.rollback()
            raise

    async def get_task(self, task_id: str) -> Task:
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def get_tasks_by_story(self, story_id: str) -> List[Task]:
        return await self.tasks.find_by_story_id(story_id)

    async def get_overdue_tasks(self, today: Optional[date] = None) -> List[Task]:
        """Open tasks whose due date is before today"""

        today = today or date.today()
        stmt = (
            select(Task)
            .where(
                and_(
                    Task.due_date.isnot(None),
                    Task.due_date < today,
                    Task.status.notin_(TERMINAL_TASK_STATUSES)
                )
            )
            .order_by(Task.due_date)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _notify_assignee(self, task: Task) -> None:
        try:
            # Savepoint: a failed notification flush rolls back only itself, not the task
            async with self.db.begin_nested():
                await self.notification_service.create_notification(
                    user_id=task.assignee_id,
                    title="New Task Assignment",
                    message=f"You have been assigned to task: {task.title}",
                    type="task",
                    related_entity_type="task",
                    related_entity_id=task.id
                )
        except Exception as e:
            # Notification delivery never blocks task creation
            logger.warning(f"Failed to create notification for task {task.id}: {str(e)}")


class SubtaskService:
    """Service for subtask creation and lookup"""

    def __init__(self, db: AsyncSession, id_generator: Optional[IdGenerationService] = None):
        self.db = db
        self.subtasks = SubtaskRepository(db)
        self.id_generator = id_generator or IdGenerationService(db)

    async def create_subtask(self, subtask: Subtask, commit: bool = True) -> Subtask:
        try:
            if subtask.id is None:
                subtask.id = await self.id_generator.generate_subtask_id()
            if subtask.labels is None:
                subtask.labels = []

            await self.subtasks.save(subtask)

            if commit:
                await self.db.commit()
                await self.db.refresh(subtask)
            return subtask

        except Exception as e:
            logger.error(f"Failed to create subtask: {str(e)}")
            if commit:
                await self.db.rollback()
            raise

    async def get_subtasks_by_task(self, task_id: str) -> List[Subtask]:
        return await self.subtasks.find_by_task_id(task_id)
