from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity_log import ActivityLog
from ..repositories.activity import ActivityLogRepository
from .id_generation import IdGenerationService


def _json_safe(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if values is None:
        return None
    safe: Dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, Enum):
            value = value.value
        safe[key] = value
    return safe


class ActivityLogService:
    """Audit trail of user-visible changes"""

    def __init__(self, db: AsyncSession, id_generator: Optional[IdGenerationService] = None):
        self.db = db
        self.activity_logs = ActivityLogRepository(db)
        self.id_generator = id_generator or IdGenerationService(db)

    async def log_activity(
        self,
        user_id: Optional[str],
        entity_type: str,
        entity_id: str,
        action: str,
        description: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None
    ) -> ActivityLog:
        entry = ActivityLog(
            id=await self.id_generator.generate_activity_log_id(),
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            description=description,
            old_values=_json_safe(old_values),
            new_values=_json_safe(new_values)
        )
        return await self.activity_logs.save(entry)

    async def get_entity_activity(self, entity_type: str, entity_id: str) -> List[ActivityLog]:
        return await self.activity_logs.find_by_entity(entity_type, entity_id)
