from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.notification import Notification
from ..repositories.activity import NotificationRepository
from .id_generation import IdGenerationService
from ..utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for user notifications"""

    def __init__(self, db: AsyncSession, id_generator: Optional[IdGenerationService] = None):
        self.db = db
        self.notifications = NotificationRepository(db)
        self.id_generator = id_generator or IdGenerationService(db)

    async def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        type: str,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None
    ) -> Notification:
        """Create a notification; the caller commits."""

        notification = Notification(
            id=await self.id_generator.generate_notification_id(),
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            is_read=False,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id
        )
        await self.notifications.save(notification)

        logger.debug(f"Created notification {notification.id} for user {user_id}")
        return notification

    async def get_notifications_for_user(
        self,
        user_id: str,
        unread_only: bool = False
    ) -> List[Notification]:
        return await self.notifications.find_by_user_id(user_id, unread_only=unread_only)
