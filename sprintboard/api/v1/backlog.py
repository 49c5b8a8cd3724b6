from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...core.auth import get_current_user
from ...models.user import User
from ...services.backlog_service import BacklogService
from .schemas import (
    BacklogStoryResponse,
    BacklogTaskResponse,
    BacklogSubtaskResponse,
    StoryResponse,
    CloneToSprintRequest,
    CloneMultipleRequest,
    CloneMultipleResponse,
    CloneFailureResponse,
)

router = APIRouter()


@router.post(
    "/move-from-sprint/{sprint_id}",
    response_model=List[BacklogStoryResponse],
    status_code=status.HTTP_201_CREATED
)
async def move_sprint_to_backlog(
    sprint_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Copy a finished sprint's open work into the backlog"""

    backlog_service = BacklogService(db)
    return await backlog_service.move_sprint_to_backlog(sprint_id)


@router.get("/project/{project_id}", response_model=List[BacklogStoryResponse])
async def get_backlog_stories_by_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    backlog_service = BacklogService(db)
    return await backlog_service.get_backlog_stories_by_project(project_id)


@router.get("/stories/{backlog_story_id}", response_model=BacklogStoryResponse)
async def get_backlog_story(
    backlog_story_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    backlog_service = BacklogService(db)
    return await backlog_service.get_backlog_story_by_id(backlog_story_id)


@router.get("/stories/{backlog_story_id}/tasks", response_model=List[BacklogTaskResponse])
async def get_backlog_tasks_by_story(
    backlog_story_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    backlog_service = BacklogService(db)
    return await backlog_service.get_backlog_tasks_by_story(backlog_story_id)


@router.get("/tasks/{backlog_task_id}/subtasks", response_model=List[BacklogSubtaskResponse])
async def get_backlog_subtasks_by_task(
    backlog_task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    backlog_service = BacklogService(db)
    return await backlog_service.get_backlog_subtasks_by_task(backlog_task_id)


@router.post(
    "/stories/{backlog_story_id}/clone-to-sprint",
    response_model=StoryResponse,
    status_code=status.HTTP_201_CREATED
)
async def clone_story_from_backlog(
    backlog_story_id: str,
    request: CloneToSprintRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Clone a backlog story, with its tasks and subtasks, into a sprint"""

    backlog_service = BacklogService(db)
    return await backlog_service.clone_story_from_backlog(
        backlog_story_id=backlog_story_id,
        target_sprint_id=request.target_sprint_id
    )


@router.post(
    "/clone-multiple-to-sprint",
    response_model=CloneMultipleResponse,
    status_code=status.HTTP_201_CREATED
)
async def clone_stories_from_backlog(
    request: CloneMultipleRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Clone several backlog stories; failures are reported per item"""

    backlog_service = BacklogService(db)
    result = await backlog_service.clone_stories_from_backlog_detailed(
        backlog_story_ids=request.backlog_story_ids,
        target_sprint_id=request.target_sprint_id
    )

    return CloneMultipleResponse(
        target_sprint_id=request.target_sprint_id,
        stories=[StoryResponse.model_validate(story) for story in result.stories],
        failures=[
            CloneFailureResponse(backlog_story_id=f.backlog_story_id, error=f.error)
            for f in result.failures
        ]
    )
