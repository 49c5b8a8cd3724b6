from sqlalchemy import Column, String, Integer, Text, ForeignKey, Numeric, Date, Boolean
from .base import BaseModel, enum_column
from .enums import StoryStatus, TaskStatus, Priority
from .types import StringList


class BacklogStory(BaseModel):
    """Frozen copy of a story that was still open when its sprint closed.

    original_story_id / original_sprint_id / created_from_sprint_id are a
    lineage trail only; they are not ownership foreign keys.
    """
    __tablename__ = "backlog_stories"

    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    original_story_id = Column(String(64), nullable=True, index=True)
    original_sprint_id = Column(String(64), nullable=True)
    created_from_sprint_id = Column(String(64), nullable=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    acceptance_criteria = Column(StringList, default=list)
    status = enum_column(StoryStatus, nullable=False, default=StoryStatus.BACKLOG)
    priority = enum_column(Priority, nullable=False, default=Priority.MEDIUM)
    story_points = Column(Integer, nullable=True)
    assignee_id = Column(String(64), nullable=True)
    reporter_id = Column(String(64), nullable=True)
    epic_id = Column(String(64), nullable=True)
    release_id = Column(String(64), nullable=True)
    labels = Column(StringList, default=list)
    order_index = Column(Integer, default=0)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    actual_hours = Column(Numeric(8, 2), default=0)


class BacklogTask(BaseModel):
    __tablename__ = "backlog_tasks"

    backlog_story_id = Column(String(64), ForeignKey("backlog_stories.id"), nullable=False, index=True)
    original_task_id = Column(String(64), nullable=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = enum_column(TaskStatus, nullable=False, default=TaskStatus.TO_DO)
    priority = enum_column(Priority, nullable=False, default=Priority.MEDIUM)
    assignee_id = Column(String(64), nullable=True)
    reporter_id = Column(String(64), nullable=True)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    actual_hours = Column(Numeric(8, 2), default=0)
    order_index = Column(Integer, default=0)
    task_number = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)
    labels = Column(StringList, default=list)
    is_overdue = Column(Boolean, default=False)


class BacklogSubtask(BaseModel):
    __tablename__ = "backlog_subtasks"

    backlog_task_id = Column(String(64), ForeignKey("backlog_tasks.id"), nullable=False, index=True)
    original_subtask_id = Column(String(64), nullable=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False)
    assignee_id = Column(String(64), nullable=True)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    actual_hours = Column(Numeric(8, 2), default=0)
    order_index = Column(Integer, default=0)
    due_date = Column(Date, nullable=True)
    bug_type = Column(String, nullable=True)
    severity = Column(String, nullable=True)
    category = Column(String, nullable=True)
    labels = Column(StringList, default=list)
