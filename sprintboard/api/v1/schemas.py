from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ...models.enums import StoryStatus, TaskStatus, Priority, SprintStatus, LineageSource


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class StoryResponse(ORMModel):
    id: str
    project_id: str
    sprint_id: Optional[str]
    parent_id: Optional[str]
    lineage_source: Optional[LineageSource]
    title: str
    description: Optional[str]
    acceptance_criteria: List[str] = Field(default_factory=list)
    status: StoryStatus
    priority: Priority
    story_points: Optional[int]
    assignee_id: Optional[str]
    reporter_id: Optional[str]
    epic_id: Optional[str]
    release_id: Optional[str]
    labels: List[str] = Field(default_factory=list)
    order_index: Optional[int]
    estimated_hours: Optional[Decimal]
    actual_hours: Optional[Decimal]
    created_at: Optional[datetime]


class BacklogStoryResponse(ORMModel):
    id: str
    project_id: str
    original_story_id: Optional[str]
    original_sprint_id: Optional[str]
    created_from_sprint_id: Optional[str]
    title: str
    description: Optional[str]
    acceptance_criteria: List[str] = Field(default_factory=list)
    status: StoryStatus
    priority: Priority
    story_points: Optional[int]
    assignee_id: Optional[str]
    reporter_id: Optional[str]
    epic_id: Optional[str]
    release_id: Optional[str]
    labels: List[str] = Field(default_factory=list)
    order_index: Optional[int]
    estimated_hours: Optional[Decimal]
    actual_hours: Optional[Decimal]
    created_at: Optional[datetime]


class BacklogTaskResponse(ORMModel):
    id: str
    backlog_story_id: str
    original_task_id: Optional[str]
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: Priority
    assignee_id: Optional[str]
    reporter_id: Optional[str]
    estimated_hours: Optional[Decimal]
    actual_hours: Optional[Decimal]
    order_index: Optional[int]
    task_number: Optional[int]
    due_date: Optional[date]
    labels: List[str] = Field(default_factory=list)
    is_overdue: bool


class BacklogSubtaskResponse(ORMModel):
    id: str
    backlog_task_id: str
    original_subtask_id: Optional[str]
    title: str
    description: Optional[str]
    is_completed: bool
    assignee_id: Optional[str]
    estimated_hours: Optional[Decimal]
    actual_hours: Optional[Decimal]
    order_index: Optional[int]
    due_date: Optional[date]
    bug_type: Optional[str]
    severity: Optional[str]
    category: Optional[str]
    labels: List[str] = Field(default_factory=list)


class SprintResponse(ORMModel):
    id: str
    project_id: str
    name: str
    goal: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    status: SprintStatus


class CloneToSprintRequest(BaseModel):
    target_sprint_id: str = Field(min_length=1)


class CloneMultipleRequest(BaseModel):
    target_sprint_id: str = Field(min_length=1)
    backlog_story_ids: List[str] = Field(min_length=1)


class CloneFailureResponse(BaseModel):
    backlog_story_id: str
    error: str


class CloneMultipleResponse(BaseModel):
    target_sprint_id: str
    stories: List[StoryResponse]
    failures: List[CloneFailureResponse]


class SprintCompletionResponse(BaseModel):
    sprint: SprintResponse
    backlog_stories: List[BacklogStoryResponse]
    completed_at: datetime


class StoryLineageResponse(BaseModel):
    root_id: str
    rollover_count: int
    stories: List[StoryResponse]


class PullToSprintRequest(BaseModel):
    target_sprint_id: str = Field(min_length=1)
