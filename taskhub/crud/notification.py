#taskhub/crud/notification.py
from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from taskhub.models.notification import Notification
from taskhub.models.activity_log import EntityRef
from taskhub.core.security import Principal
from taskhub.core.exceptions import NotificationNotFound, NotificationValidationError, InternalError
from taskhub.services import activity_logger

logger = logging.getLogger("TaskHub.Notifications")

DEFAULT_LIMIT = 10

def get_my_notifications(
    db: Session,
    principal: Principal,
    is_read: Optional[bool] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> List[Notification]:
    """
    Уведомления текущего пользователя, новые первыми.
    """
    query = db.query(Notification).filter(Notification.user_id == principal.user_id)
    if is_read is not None:
        query = query.filter(Notification.is_read == is_read)
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

def mark_notifications_read(db: Session, principal: Principal, notification_ids: List[int]) -> List[int]:
    """
    Отмечает прочитанными только уведомления самого principal.
    Возвращает id обновлённых строк; если не совпало ни одной — NotificationNotFound.
    """
    if not notification_ids:
        raise NotificationValidationError("notificationIds must be a non-empty list.", field="notificationIds")
    ids = sorted(set(notification_ids))

    try:
        owned = [
            row.id for row in db.query(Notification.id)
            .filter(Notification.id.in_(ids), Notification.user_id == principal.user_id)
            .all()
        ]
        if owned:
            db.query(Notification).filter(
                Notification.id.in_(owned), Notification.user_id == principal.user_id
            ).update({"is_read": True}, synchronize_session=False)
            db.commit()
            db.expire_all()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to mark notifications {ids} read for user {principal.user_id}: {e}")
        raise InternalError("Database error while updating notifications.")
    if not owned:
        raise NotificationNotFound()

    logger.info(f"User {principal.user_id} marked notifications {owned} as read")
    activity_logger.record(
        db, principal.user_id, activity_logger.MARKED_NOTIFICATIONS_READ, EntityRef.notification(),
        {"notification_ids": sorted(owned)},
    )
    return sorted(owned)
