from __future__ import annotations

from typing import (
    Dict,
    List,
    Optional,
)
from datetime import date, datetime, timezone
from dataclasses import dataclass, field
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_

from ..core.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidStatusTransitionError,
)
from ..models.backlog import BacklogStory
from ..models.enums import SprintStatus
from ..models.sprint import Sprint
from ..repositories.active import ProjectRepository, SprintRepository
from .backlog_service import BacklogService
from .id_generation import IdGenerationService

# Type aliases
ProjectId = str
SprintId = str

MAX_SPRINT_DAYS = 30

VALID_TRANSITIONS: Dict[SprintStatus, List[SprintStatus]] = {
    SprintStatus.PLANNING: [SprintStatus.ACTIVE, SprintStatus.CANCELLED],
    SprintStatus.ACTIVE: [SprintStatus.COMPLETED, SprintStatus.CANCELLED],
    SprintStatus.COMPLETED: [],
    SprintStatus.CANCELLED: [SprintStatus.PLANNING],
}


@dataclass
class SprintCompletion:
    sprint: Sprint
    backlog_stories: List[BacklogStory] = field(default_factory=list)
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SprintService:
    """
    Sprint lifecycle: creation, status transitions, and closing a sprint
    into the backlog.
    """

    def __init__(
        self,
        db: AsyncSession,
        id_generator: Optional[IdGenerationService] = None,
        backlog_service: Optional[BacklogService] = None
    ) -> None:
        self.db = db
        self._logger = logging.getLogger(__name__)
        self.id_generator = id_generator or IdGenerationService(db)
        self.backlog_service = backlog_service or BacklogService(db, self.id_generator)
        self.projects = ProjectRepository(db)
        self.sprints = SprintRepository(db)

    async def create_sprint(
        self,
        project_id: ProjectId,
        name: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        goal: Optional[str] = None
    ) -> Sprint:
        """Create a new sprint with validation."""

        self._logger.info("Creating sprint '%s' for project %s", name, project_id)

        try:
            if not await self.projects.exists_by_id(project_id):
                raise NotFoundError("Project", project_id)

            if start_date is not None and end_date is not None:
                self._validate_sprint_dates(start_date, end_date)
                await self._validate_no_overlapping_sprints(project_id, start_date, end_date)

            sprint = Sprint(
                id=await self.id_generator.generate_sprint_id(),
                project_id=project_id,
                name=name,
                goal=goal,
                start_date=start_date,
                end_date=end_date,
                status=SprintStatus.PLANNING
            )
            await self.sprints.save(sprint)

            await self.db.commit()
            await self.db.refresh(sprint)

            self._logger.info("Created sprint %s", sprint.id)
            return sprint

        except Exception as e:
            await self.db.rollback()
            self._logger.error("Failed to create sprint: %s", str(e))
            raise

    async def get_sprint(self, sprint_id: SprintId) -> Sprint:
        """Get sprint by ID."""

        sprint = await self.sprints.find_by_id(sprint_id)
        if sprint is None:
            raise NotFoundError("Sprint", sprint_id)
        return sprint

    async def get_project_sprints(
        self,
        project_id: ProjectId,
        status: Optional[SprintStatus] = None
    ) -> List[Sprint]:
        sprints = await self.sprints.find_by_project_id(project_id)
        if status is not None:
            sprints = [sprint for sprint in sprints if sprint.status == status]
        return sprints

    async def update_sprint_status(self, sprint_id: SprintId, status: SprintStatus) -> Sprint:
        """Update sprint status with validation."""

        sprint = await self.get_sprint(sprint_id)
        self._apply_status(sprint, status)

        await self.db.commit()
        await self.db.refresh(sprint)

        self._logger.info("Updated sprint %s status to %s", sprint_id, status.value)
        return sprint

    async def start_sprint(self, sprint_id: SprintId) -> Sprint:
        return await self.update_sprint_status(sprint_id, SprintStatus.ACTIVE)

    async def complete_sprint(self, sprint_id: SprintId, today: Optional[date] = None) -> SprintCompletion:
        """Close a sprint and roll its unfinished work into the backlog.

        The status change and the backlog copies commit together.
        """

        sprint = await self.get_sprint(sprint_id)

        try:
            self._apply_status(sprint, SprintStatus.COMPLETED)
            if sprint.end_date is None:
                sprint.end_date = today or date.today()

            backlog_stories = await self.backlog_service.move_sprint_to_backlog(
                sprint_id, today=today, commit=False
            )

            await self.db.commit()
            await self.db.refresh(sprint)

        except Exception as e:
            await self.db.rollback()
            self._logger.error("Failed to complete sprint %s: %s", sprint_id, str(e))
            raise

        self._logger.info(
            "Completed sprint %s, %d stories moved to backlog", sprint_id, len(backlog_stories)
        )
        return SprintCompletion(sprint=sprint, backlog_stories=backlog_stories)

    # Private methods

    def _apply_status(self, sprint: Sprint, status: SprintStatus) -> None:
        current_status = SprintStatus.from_value(sprint.status)

        if not self._is_valid_status_transition(current_status, status):
            raise InvalidStatusTransitionError(current_status.value, status.value)

        sprint.status = status
        if status == SprintStatus.ACTIVE and sprint.start_date is None:
            sprint.start_date = date.today()

    def _validate_sprint_dates(self, start_date: date, end_date: date) -> None:
        """Validate sprint dates."""

        if start_date >= end_date:
            raise ValidationError("Start date must be before end date")

        duration = (end_date - start_date).days
        if duration > MAX_SPRINT_DAYS:
            raise ValidationError(f"Sprint duration cannot exceed {MAX_SPRINT_DAYS} days")

    async def _validate_no_overlapping_sprints(
        self,
        project_id: ProjectId,
        start_date: date,
        end_date: date
    ) -> None:
        """Validate no overlapping sprints."""

        stmt = select(Sprint).where(
            and_(
                Sprint.project_id == project_id,
                Sprint.status.in_([SprintStatus.PLANNING, SprintStatus.ACTIVE]),
                or_(
                    and_(Sprint.start_date <= start_date, Sprint.end_date > start_date),
                    and_(Sprint.start_date < end_date, Sprint.end_date >= end_date)
                )
            )
        )

        result = await self.db.execute(stmt)
        existing = result.scalars().first()

        if existing is not None:
            raise ValidationError(f"Overlapping sprint exists: {existing.name}")

    def _is_valid_status_transition(self, current: SprintStatus, new: SprintStatus) -> bool:
        """Check valid status transitions."""

        return new in VALID_TRANSITIONS.get(current, [])
