from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.exceptions import NotFoundError
from ..models.backlog import BacklogStory, BacklogTask, BacklogSubtask
from ..models.enums import StoryStatus
from ..models.story import Story, Task, Subtask
from ..repositories.active import SprintRepository, StoryRepository, TaskRepository, SubtaskRepository
from ..repositories.backlog import BacklogStoryRepository, BacklogTaskRepository, BacklogSubtaskRepository
from .id_generation import IdGenerationService
from .lineage import resolve_lineage
from .rollover_rules import is_overdue, qualifies_for_rollover
from .task_service import TaskService, SubtaskService
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CloneFailure:
    backlog_story_id: str
    error: str


@dataclass
class BatchCloneResult:
    stories: List[Story] = field(default_factory=list)
    failures: List[CloneFailure] = field(default_factory=list)


class BacklogService:
    """Moves unfinished sprint work into the backlog and pulls it back out.

    Backlog rows are snapshots: rollover never touches the live rows it copies
    and cloning never touches the backlog rows it reads.
    """

    def __init__(
        self,
        db: AsyncSession,
        id_generator: Optional[IdGenerationService] = None,
        task_service: Optional[TaskService] = None,
        subtask_service: Optional[SubtaskService] = None
    ):
        self.db = db
        self.id_generator = id_generator or IdGenerationService(db)
        self.task_service = task_service or TaskService(db, self.id_generator)
        self.subtask_service = subtask_service or SubtaskService(db, self.id_generator)

        self.sprints = SprintRepository(db)
        self.stories = StoryRepository(db)
        self.tasks = TaskRepository(db)
        self.subtasks = SubtaskRepository(db)
        self.backlog_stories = BacklogStoryRepository(db)
        self.backlog_tasks = BacklogTaskRepository(db)
        self.backlog_subtasks = BacklogSubtaskRepository(db)

    # Sprint close

    async def move_sprint_to_backlog(
        self,
        sprint_id: str,
        today: Optional[date] = None,
        commit: bool = True
    ) -> List[BacklogStory]:
        """Copy every story with open or overdue tasks into the backlog.

        All shadow rows for the sprint are committed together; any failure
        rolls the whole call back.
        """

        today = today or date.today()
        logger.info(f"Moving sprint {sprint_id} to backlog (reference date {today})")

        try:
            if not await self.sprints.exists_by_id(sprint_id):
                raise NotFoundError("Sprint", sprint_id)

            created: List[BacklogStory] = []
            for story in await self.stories.find_by_sprint_id(sprint_id):
                tasks = await self.tasks.find_by_story_id(story.id)
                carried = [task for task in tasks if qualifies_for_rollover(task, today)]

                if not carried:
                    continue

                if settings.rollover_skip_existing_shadows and \
                        await self.backlog_stories.exists_for_story_and_sprint(story.id, sprint_id):
                    logger.info(f"Story {story.id} already has a backlog copy for sprint {sprint_id}, skipping")
                    continue

                backlog_story = await self._shadow_story(story, sprint_id)
                for task in carried:
                    backlog_task = await self._shadow_task(task, backlog_story.id, today)
                    for subtask in await self.subtasks.find_by_task_id(task.id):
                        if not subtask.is_completed:
                            await self._shadow_subtask(subtask, backlog_task.id)

                created.append(backlog_story)

            if commit:
                await self.db.commit()

            logger.info(f"Moved {len(created)} stories from sprint {sprint_id} to backlog")
            return created

        except Exception as e:
            logger.error(f"Failed to move sprint {sprint_id} to backlog: {str(e)}")
            if commit:
                await self.db.rollback()
            raise

    async def _shadow_story(self, story: Story, sprint_id: str) -> BacklogStory:
        backlog_story = BacklogStory(
            id=await self.id_generator.generate_story_id(),
            project_id=story.project_id,
            original_story_id=story.id,
            original_sprint_id=sprint_id,
            created_from_sprint_id=sprint_id,
            title=story.title,
            description=story.description,
            acceptance_criteria=list(story.acceptance_criteria or []),
            status=StoryStatus.BACKLOG,
            priority=story.priority,
            story_points=story.story_points,
            assignee_id=story.assignee_id,
            reporter_id=story.reporter_id,
            epic_id=story.epic_id,
            release_id=story.release_id,
            labels=list(story.labels or []),
            order_index=story.order_index,
            estimated_hours=story.estimated_hours,
            actual_hours=story.actual_hours
        )
        return await self.backlog_stories.save(backlog_story)

    async def _shadow_task(self, task: Task, backlog_story_id: str, today: date) -> BacklogTask:
        backlog_task = BacklogTask(
            id=await self.id_generator.generate_task_id(),
            backlog_story_id=backlog_story_id,
            original_task_id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            assignee_id=task.assignee_id,
            reporter_id=task.reporter_id,
            estimated_hours=task.estimated_hours,
            actual_hours=task.actual_hours,
            order_index=task.order_index,
            task_number=task.task_number,
            due_date=task.due_date,
            labels=list(task.labels or []),
            is_overdue=is_overdue(task, today)
        )
        return await self.backlog_tasks.save(backlog_task)

    async def _shadow_subtask(self, subtask: Subtask, backlog_task_id: str) -> BacklogSubtask:
        backlog_subtask = BacklogSubtask(
            id=await self.id_generator.generate_subtask_id(),
            backlog_task_id=backlog_task_id,
            original_subtask_id=subtask.id,
            title=subtask.title,
            description=subtask.description,
            is_completed=False,
            assignee_id=subtask.assignee_id,
            estimated_hours=subtask.estimated_hours,
            actual_hours=subtask.actual_hours,
            order_index=subtask.order_index,
            due_date=subtask.due_date,
            bug_type=subtask.bug_type,
            severity=subtask.severity,
            category=subtask.category,
            labels=list(subtask.labels or [])
        )
        return await self.backlog_subtasks.save(backlog_subtask)

    # Sprint planning

    async def clone_story_from_backlog(self, backlog_story_id: str, target_sprint_id: str) -> Story:
        """Create a fresh story, with fresh tasks and subtasks, from a backlog story.

        The story restarts (status TODO, no hours logged); its tasks and
        subtasks keep their state. Cloning the same backlog story again
        produces another independent story.
        """

        try:
            backlog_story = await self.get_backlog_story_by_id(backlog_story_id)
            lineage = resolve_lineage(backlog_story)

            story = Story(
                id=await self.id_generator.generate_story_id(),
                project_id=backlog_story.project_id,
                sprint_id=target_sprint_id,
                parent_id=lineage.parent_id,
                lineage_source=lineage.source,
                title=backlog_story.title,
                description=backlog_story.description,
                acceptance_criteria=list(backlog_story.acceptance_criteria or []),
                status=StoryStatus.TODO,
                priority=backlog_story.priority,
                story_points=backlog_story.story_points,
                assignee_id=backlog_story.assignee_id,
                reporter_id=backlog_story.reporter_id,
                epic_id=backlog_story.epic_id,
                release_id=backlog_story.release_id,
                labels=list(backlog_story.labels or []),
                order_index=backlog_story.order_index,
                estimated_hours=backlog_story.estimated_hours,
                actual_hours=Decimal("0")
            )
            await self.stories.save(story)

            for backlog_task in await self.backlog_tasks.find_by_backlog_story_id(backlog_story_id):
                task = await self.task_service.create_task(
                    Task(
                        id=await self.id_generator.generate_task_id(),
                        story_id=story.id,
                        title=backlog_task.title,
                        description=backlog_task.description,
                        status=backlog_task.status,
                        priority=backlog_task.priority,
                        assignee_id=backlog_task.assignee_id,
                        reporter_id=backlog_task.reporter_id,
                        estimated_hours=backlog_task.estimated_hours,
                        actual_hours=backlog_task.actual_hours,
                        order_index=backlog_task.order_index,
                        task_number=backlog_task.task_number,
                        due_date=backlog_task.due_date,
                        labels=list(backlog_task.labels or []),
                        is_pulled_from_backlog=True
                    ),
                    commit=False
                )

                for backlog_subtask in await self.backlog_subtasks.find_by_backlog_task_id(backlog_task.id):
                    await self.subtask_service.create_subtask(
                        Subtask(
                            id=await self.id_generator.generate_subtask_id(),
                            task_id=task.id,
                            title=backlog_subtask.title,
                            description=backlog_subtask.description,
                            is_completed=backlog_subtask.is_completed,
                            assignee_id=backlog_subtask.assignee_id,
                            estimated_hours=backlog_subtask.estimated_hours,
                            actual_hours=backlog_subtask.actual_hours,
                            order_index=backlog_subtask.order_index,
                            due_date=backlog_subtask.due_date,
                            bug_type=backlog_subtask.bug_type,
                            severity=backlog_subtask.severity,
                            category=backlog_subtask.category,
                            labels=list(backlog_subtask.labels or [])
                        ),
                        commit=False
                    )

            await self.db.commit()
            await self.db.refresh(story)

            logger.info(f"Cloned backlog story {backlog_story_id} into sprint {target_sprint_id} as {story.id}")
            return story

        except Exception as e:
            logger.error(f"Failed to clone backlog story {backlog_story_id}: {str(e)}")
            await self.db.rollback()
            raise

    async def clone_stories_from_backlog_detailed(
        self,
        backlog_story_ids: List[str],
        target_sprint_id: str
    ) -> BatchCloneResult:
        """Clone each backlog story independently, recording per-item failures."""

        result = BatchCloneResult()

        for backlog_story_id in backlog_story_ids:
            try:
                story = await self.clone_story_from_backlog(backlog_story_id, target_sprint_id)
            except Exception as e:
                logger.warning(f"Error cloning backlog story {backlog_story_id}: {str(e)}")
                result.failures.append(CloneFailure(backlog_story_id=backlog_story_id, error=str(e)))
                continue

            # Detach so a later rollback in this session cannot expire it
            self.db.expunge(story)
            result.stories.append(story)

        logger.info(
            f"Cloned {len(result.stories)} of {len(backlog_story_ids)} backlog stories "
            f"into sprint {target_sprint_id}"
        )
        return result

    async def clone_stories_from_backlog(
        self,
        backlog_story_ids: List[str],
        target_sprint_id: str
    ) -> List[Story]:
        """Best-effort batch clone; returns only the stories that were created."""

        result = await self.clone_stories_from_backlog_detailed(backlog_story_ids, target_sprint_id)
        return result.stories

    # Read accessors

    async def get_backlog_stories_by_project(self, project_id: str) -> List[BacklogStory]:
        return await self.backlog_stories.find_by_project_id(project_id)

    async def get_backlog_story_by_id(self, backlog_story_id: str) -> BacklogStory:
        backlog_story = await self.backlog_stories.find_by_id(backlog_story_id)
        if backlog_story is None:
            raise NotFoundError("Backlog story", backlog_story_id)
        return backlog_story

    async def get_backlog_tasks_by_story(self, backlog_story_id: str) -> List[BacklogTask]:
        return await self.backlog_tasks.find_by_backlog_story_id(backlog_story_id)

    async def get_backlog_subtasks_by_task(self, backlog_task_id: str) -> List[BacklogSubtask]:
        return await self.backlog_subtasks.find_by_backlog_task_id(backlog_task_id)
