from sqlalchemy import Column, String, Text, JSON
from .base import BaseModel


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"

    user_id = Column(String(64), nullable=True, index=True)
    entity_type = Column(String, nullable=False)  # story, task, subtask, sprint
    entity_id = Column(String(64), nullable=False, index=True)
    action = Column(String, nullable=False)  # created, pulled_to_sprint, moved_to_backlog
    description = Column(Text, nullable=True)

    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
