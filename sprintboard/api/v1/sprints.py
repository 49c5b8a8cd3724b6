from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ...database import get_db
from ...core.auth import get_current_user, get_sprint_manager
from ...models.enums import SprintStatus
from ...models.user import User
from ...services.sprint_service import SprintService
from ...services.story_service import StoryService
from .schemas import SprintResponse, SprintCompletionResponse, BacklogStoryResponse, StoryResponse

router = APIRouter()


@router.get("/{sprint_id}", response_model=SprintResponse)
async def get_sprint(
    sprint_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get sprint details"""

    sprint_service = SprintService(db)
    return await sprint_service.get_sprint(sprint_id)


@router.get("/project/{project_id}", response_model=List[SprintResponse])
async def get_project_sprints(
    project_id: str,
    status: Optional[SprintStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get sprints for a project"""

    sprint_service = SprintService(db)
    return await sprint_service.get_project_sprints(project_id, status=status)


@router.get("/{sprint_id}/stories", response_model=List[StoryResponse])
async def get_sprint_stories(
    sprint_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    sprint_service = SprintService(db)
    await sprint_service.get_sprint(sprint_id)

    story_service = StoryService(db)
    return await story_service.get_stories_by_sprint(sprint_id)


@router.post("/{sprint_id}/start", response_model=SprintResponse)
async def start_sprint(
    sprint_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_sprint_manager)
):
    sprint_service = SprintService(db)
    return await sprint_service.start_sprint(sprint_id)


@router.post("/{sprint_id}/complete", response_model=SprintCompletionResponse)
async def complete_sprint(
    sprint_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_sprint_manager)
):
    """Close the sprint and move its unfinished work to the backlog"""

    sprint_service = SprintService(db)
    completion = await sprint_service.complete_sprint(sprint_id)

    return SprintCompletionResponse(
        sprint=SprintResponse.model_validate(completion.sprint),
        backlog_stories=[
            BacklogStoryResponse.model_validate(story) for story in completion.backlog_stories
        ],
        completed_at=completion.completed_at
    )
