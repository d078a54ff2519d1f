#taskhub/services/activity_logger.py
"""
Журнал действий: запись не должна ломать основную операцию.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from taskhub.models.activity_log import ActivityLog, EntityRef

logger = logging.getLogger("TaskHub.ActivityLog")

CREATED = "CREATED"
UPDATED = "UPDATED"
SOFT_DELETED = "SOFT_DELETED"
TAG_ADDED = "TAG_ADDED"
TAG_REMOVED = "TAG_REMOVED"
MARKED_NOTIFICATIONS_READ = "MARKED_NOTIFICATIONS_READ"
REGISTERED = "REGISTERED"
LOGIN = "LOGIN"


def record(
    db: Session,
    user_id: Optional[int],
    action_type: str,
    entity: EntityRef,
    details: Optional[Any] = None,
) -> Optional[ActivityLog]:
    """
    Добавляет запись в журнал и коммитит её отдельно от основной операции.
    Ошибки логируются и глотаются, возвращается None.
    """
    entry = ActivityLog(
        user_id=user_id,
        action_type=action_type,
        entity_type=entity.type,
        entity_id=entity.id,
        details=details,
    )
    try:
        db.add(entry)
        db.commit()
        logger.info(f"Activity logged: {action_type} {entity.type.value} {entity.id} by user {user_id}")
        return entry
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to log activity {action_type} for {entity.type.value} {entity.id}: {e}", exc_info=True)
        return None
