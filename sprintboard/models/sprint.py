from sqlalchemy import Column, String, Date, ForeignKey, Text
from .base import BaseModel, enum_column
from .enums import SprintStatus


class Project(BaseModel):
    __tablename__ = "projects"

    name = Column(String, nullable=False)
    key = Column(String(16), nullable=True)
    description = Column(Text, nullable=True)


class Sprint(BaseModel):
    __tablename__ = "sprints"

    name = Column(String, nullable=False)
    goal = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = enum_column(SprintStatus, nullable=False, default=SprintStatus.PLANNING)

    # Foreign keys
    project_id = Column(String(64), ForeignKey("projects.id"), nullable=False, index=True)
