from sqlalchemy import Column, String, Integer, Text, ForeignKey, Numeric, Date, Boolean
from .base import BaseModel, enum_column
from .enums import StoryStatus, TaskStatus, Priority, LineageSource
from .types import StringList


class Story(BaseModel):
    __tablename__ = "stories"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    acceptance_criteria = Column(StringList, default=list)
    status = enum_column(StoryStatus, nullable=False, default=StoryStatus.TODO)
    priority = enum_column(Priority, nullable=False, default=Priority.MEDIUM)
    story_points = Column(Integer, nullable=True)
    labels = Column(StringList, default=list)
    order_index = Column(Integer, default=0)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    actual_hours = Column(Numeric(8, 2), default=0)

    # Lineage: parent_id points at the earliest known identity, lineage_source says which kind
    parent_id = Column(String(64), nullable=True, index=True)
    lineage_source = enum_column(LineageSource, nullable=True)

    # People and planning references
    assignee_id = Column(String(64), nullable=True)
    reporter_id = Column(String(64), nullable=True)
    epic_id = Column(String(64), nullable=True)
    release_id = Column(String(64), nullable=True)

    # Foreign keys
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
    sprint_id = Column(String(64), ForeignKey("sprints.id"), nullable=True, index=True)


class Task(BaseModel):
    __tablename__ = "tasks"

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
    is_pulled_from_backlog = Column(Boolean, default=False)

    # Foreign keys
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, index=True)


class Subtask(BaseModel):
    __tablename__ = "subtasks"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False)
    assignee_id = Column(String(64), nullable=True)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    actual_hours = Column(Numeric(8, 2), default=0)
    order_index = Column(Integer, default=0)
    due_date = Column(Date, nullable=True)
    labels = Column(StringList, default=list)

    # Bug tracking
    bug_type = Column(String, nullable=True)
    severity = Column(String, nullable=True)
    category = Column(String, nullable=True)

    # Foreign keys
    task_id = Column(String(64), ForeignKey("tasks.id"), nullable=False, index=True)
