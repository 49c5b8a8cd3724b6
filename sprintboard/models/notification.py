from sqlalchemy import Column, String, Text, Boolean
from .base import BaseModel


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False)  # task, story, sprint, system
    is_read = Column(Boolean, default=False)

    related_entity_type = Column(String, nullable=True)
    related_entity_id = Column(String(64), nullable=True)
