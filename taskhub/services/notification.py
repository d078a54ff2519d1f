#taskhub/services/notification.py
"""
Создание уведомлений и их доставка через broadcaster (fire-and-forget).
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from taskhub.core.settings import settings
from taskhub.models.activity_log import EntityRef
from taskhub.models.notification import Notification
from taskhub.realtime.manager import broadcaster
from taskhub.schemas.notification import NotificationRead

logger = logging.getLogger("TaskHub.Notifications")

TASK_ASSIGNED = "task_assigned"
TASK_REASSIGNED = "task_reassigned"
TASK_COMPLETED = "task_completed"


def notify(
    db: Session,
    user_id: int,
    type: str,
    message: str,
    entity: Optional[EntityRef] = None,
) -> Optional[Notification]:
    """
    Сохраняет уведомление и рассылает событие newNotification.
    Сбой сохранения логируется и не пробрасывается; сбой рассылки не откатывает запись.
    """
    notification = Notification(
        user_id=user_id,
        type=type,
        message=message,
        entity_type=entity.type if entity else None,
        entity_id=entity.id if entity else None,
        is_read=False,
    )
    try:
        db.add(notification)
        db.commit()
        db.refresh(notification)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create notification '{type}' for user {user_id}: {e}", exc_info=True)
        return None
    logger.info(f"Notification {notification.id} ({type}) created for user {user_id}")

    try:
        payload = {"notification": NotificationRead.model_validate(notification).model_dump(mode="json")}
        if settings.TARGETED_NOTIFICATIONS:
            broadcaster.emit_to_user(user_id, "newNotification", payload)
        else:
            broadcaster.emit("newNotification", payload)
    except Exception as e:
        logger.error(f"Failed to deliver notification {notification.id}: {e}", exc_info=True)
    return notification
