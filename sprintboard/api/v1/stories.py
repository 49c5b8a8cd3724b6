from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...core.auth import get_current_user
from ...models.user import User
from ...services.story_service import StoryService
from .schemas import StoryResponse, StoryLineageResponse, PullToSprintRequest

router = APIRouter()


@router.get("/{story_id}", response_model=StoryResponse)
async def get_story(
    story_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    story_service = StoryService(db)
    return await story_service.get_story(story_id)


@router.get("/{story_id}/lineage", response_model=StoryLineageResponse)
async def get_story_lineage(
    story_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Every sprint attempt of a story, oldest first"""

    story_service = StoryService(db)
    lineage = await story_service.get_story_lineage(story_id)

    return StoryLineageResponse(
        root_id=lineage.root_id,
        rollover_count=lineage.rollover_count,
        stories=[StoryResponse.model_validate(story) for story in lineage.stories]
    )


@router.post(
    "/{story_id}/pull-to-sprint",
    response_model=StoryResponse,
    status_code=status.HTTP_201_CREATED
)
async def pull_story_to_sprint(
    story_id: str,
    request: PullToSprintRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Copy a story and its open tasks from a previous sprint into another sprint"""

    story_service = StoryService(db)
    return await story_service.create_story_from_previous_sprint(
        source_story_id=story_id,
        target_sprint_id=request.target_sprint_id,
        user_id=current_user.id
    )
