#taskhub/crud/activity_log.py
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any

from taskhub.models.activity_log import ActivityLog
from taskhub.models.user import User

def get_activity_logs(db: Session, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Журнал действий с фильтрами, новые записи первыми. Доступ (admin) проверяется в API.
    """
    filters = filters or {}
    query = db.query(ActivityLog, User.username).outerjoin(User, ActivityLog.user_id == User.id)

    if filters.get("user_id") is not None:
        query = query.filter(ActivityLog.user_id == filters["user_id"])
    if filters.get("action_type"):
        query = query.filter(ActivityLog.action_type == filters["action_type"])
    if filters.get("entity_type"):
        query = query.filter(ActivityLog.entity_type == filters["entity_type"])
    if filters.get("start_date") is not None:
        query = query.filter(ActivityLog.timestamp >= filters["start_date"])
    if filters.get("end_date") is not None:
        query = query.filter(ActivityLog.timestamp <= filters["end_date"])

    rows = query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).all()
    return [
        {
            "id": entry.id,
            "user_id": entry.user_id,
            "username": username,
            "action_type": entry.action_type,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "details": entry.details,
            "timestamp": entry.timestamp,
        }
        for entry, username in rows
    ]
