from __future__ import annotations

from typing import List

from sqlalchemy import and_, desc, select

from ..models.activity_log import ActivityLog
from ..models.notification import Notification
from .base import SQLAlchemyRepository


class NotificationRepository(SQLAlchemyRepository[Notification]):
    model = Notification

    async def find_by_user_id(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(desc(Notification.created_at))
        return await self._find(stmt)


class ActivityLogRepository(SQLAlchemyRepository[ActivityLog]):
    model = ActivityLog

    async def find_by_entity(self, entity_type: str, entity_id: str) -> List[ActivityLog]:
        stmt = (
            select(ActivityLog)
            .where(
                and_(
                    ActivityLog.entity_type == entity_type,
                    ActivityLog.entity_id == entity_id,
                )
            )
            .order_by(ActivityLog.created_at)
        )
        return await self._find(stmt)
