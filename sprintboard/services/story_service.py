from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.enums import StoryStatus, LineageSource
from ..models.story import Story, Task
from ..repositories.active import StoryRepository
from .activity_log_service import ActivityLogService
from .id_generation import IdGenerationService
from .lineage import StoryLineage
from .rollover_rules import qualifies_for_rollover
from .task_service import TaskService
from ..utils.logging import get_logger

logger = get_logger(__name__)


class StoryService:
    """Service for story lifecycle and lineage queries"""

    def __init__(
        self,
        db: AsyncSession,
        id_generator: Optional[IdGenerationService] = None,
        task_service: Optional[TaskService] = None
    ):
        self.db = db
        self.stories = StoryRepository(db)
        self.id_generator = id_generator or IdGenerationService(db)
        self.task_service = task_service or TaskService(db, self.id_generator)
        self.activity_log_service = ActivityLogService(db, self.id_generator)

    async def create_story(self, story: Story, commit: bool = True) -> Story:
        try:
            if story.id is None:
                story.id = await self.id_generator.generate_story_id()
            if story.acceptance_criteria is None:
                story.acceptance_criteria = []
            if story.labels is None:
                story.labels = []

            await self.stories.save(story)

            if commit:
                await self.db.commit()
                await self.db.refresh(story)
            return story

        except Exception as e:
            logger.error(f"Failed to create story: {str(e)}")
            if commit:
                await self.db.rollback()
            raise

    async def get_story(self, story_id: str) -> Story:
        story = await self.stories.find_by_id(story_id)
        if story is None:
            raise NotFoundError("Story", story_id)
        return story

    async def get_stories_by_sprint(self, sprint_id: str) -> List[Story]:
        return await self.stories.find_by_sprint_id(sprint_id)

    async def create_story_from_previous_sprint(
        self,
        source_story_id: str,
        target_sprint_id: str,
        user_id: Optional[str] = None,
        today: Optional[date] = None
    ) -> Story:
        """Pull a live story straight into another sprint.

        All pulled copies point at the root story: the source's parent when it
        has one, otherwise the source itself. Only tasks that would roll over
        are copied.
        """

        source = await self.get_story(source_story_id)
        today = today or date.today()
        source_sprint_id = source.sprint_id

        logger.info(f"Pulling story {source_story_id} from sprint {source_sprint_id} into {target_sprint_id}")

        try:
            new_story = Story(
                id=await self.id_generator.generate_story_id(),
                project_id=source.project_id,
                sprint_id=target_sprint_id,
                parent_id=source.parent_id or source.id,
                lineage_source=LineageSource.PREVIOUS_SPRINT,
                title=source.title,
                description=source.description,
                acceptance_criteria=list(source.acceptance_criteria or []),
                status=StoryStatus.TODO,
                priority=source.priority,
                story_points=source.story_points,
                assignee_id=source.assignee_id,
                reporter_id=source.reporter_id,
                epic_id=source.epic_id,
                release_id=source.release_id,
                labels=list(source.labels or []),
                order_index=source.order_index,
                estimated_hours=source.estimated_hours,
                actual_hours=Decimal("0")
            )
            await self.stories.save(new_story)

            copied: List[Task] = []
            for source_task in await self.task_service.get_tasks_by_story(source.id):
                if not qualifies_for_rollover(source_task, today):
                    continue

                new_task = await self.task_service.create_task(
                    Task(
                        story_id=new_story.id,
                        title=source_task.title,
                        description=source_task.description,
                        status=source_task.status,
                        priority=source_task.priority,
                        assignee_id=source_task.assignee_id,
                        reporter_id=source_task.reporter_id,
                        estimated_hours=source_task.estimated_hours,
                        actual_hours=source_task.actual_hours,
                        order_index=source_task.order_index,
                        task_number=source_task.task_number,
                        due_date=source_task.due_date,
                        labels=list(source_task.labels or []),
                        is_pulled_from_backlog=True
                    ),
                    commit=False
                )
                copied.append(new_task)

                if user_id:
                    await self.activity_log_service.log_activity(
                        user_id=user_id,
                        entity_type="task",
                        entity_id=new_task.id,
                        action="pulled_to_sprint",
                        description=(
                            f"Task '{new_task.title}' pulled from previous sprint "
                            f"'{source_sprint_id or 'N/A'}' to sprint '{target_sprint_id}'"
                        ),
                        new_values={
                            "task_id": new_task.id,
                            "story_id": new_story.id,
                            "status": new_task.status,
                            "due_date": new_task.due_date,
                            "original_task_id": source_task.id,
                            "source_sprint_id": source_sprint_id,
                            "target_sprint_id": target_sprint_id
                        }
                    )

            if user_id:
                await self.activity_log_service.log_activity(
                    user_id=user_id,
                    entity_type="story",
                    entity_id=new_story.id,
                    action="pulled_to_sprint",
                    description=(
                        f"Story '{new_story.title}' pulled from sprint '{source_sprint_id or 'N/A'}' "
                        f"to sprint '{target_sprint_id}'. Copied {len(copied)} tasks."
                    ),
                    old_values={
                        "story_id": source.id,
                        "sprint_id": source_sprint_id,
                        "status": source.status
                    },
                    new_values={
                        "story_id": new_story.id,
                        "target_sprint_id": target_sprint_id,
                        "original_story_id": source.id,
                        "tasks_copied": len(copied)
                    }
                )

            await self.db.commit()
            await self.db.refresh(new_story)
            return new_story

        except Exception as e:
            logger.error(f"Failed to pull story {source_story_id}: {str(e)}")
            await self.db.rollback()
            raise

    async def get_story_lineage(self, story_id: str) -> StoryLineage:
        """Collect the root story and every story descended from it."""

        story = await self.get_story(story_id)

        # Walk up to the earliest identity
        root_id = story.id
        current = story
        seen = {story.id}
        while current is not None and current.parent_id and current.parent_id not in seen:
            root_id = current.parent_id
            seen.add(root_id)
            current = await self.stories.find_by_id(root_id)

        root = await self.stories.find_by_id(root_id)
        members: List[Story] = [root] if root is not None else []

        # Then walk down breadth-first
        frontier = [root_id]
        visited = {root_id}
        while frontier:
            parent_id = frontier.pop(0)
            for child in await self.stories.find_by_parent_id(parent_id):
                if child.id in visited:
                    continue
                visited.add(child.id)
                members.append(child)
                frontier.append(child.id)

        return StoryLineage(root_id=root_id, stories=members)
