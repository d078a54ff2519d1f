#taskhub/api/activity_log.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from taskhub.schemas.activity_log import ActivityLogRead
from taskhub.crud.activity_log import get_activity_logs
from taskhub.dependencies import get_db, get_current_admin
from taskhub.core.security import Principal
from taskhub.models.activity_log import EntityType

router = APIRouter(prefix="/activity-logs", tags=["Activity Logs"])

@router.get("", response_model=List[ActivityLogRead])
def list_activity_logs(
    user_id: Optional[int] = Query(None),
    action_type: Optional[str] = Query(None),
    entity_type: Optional[EntityType] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin)
):
    """
    Журнал действий (только admin).
    """
    filters = {
        "user_id": user_id,
        "action_type": action_type,
        "entity_type": entity_type,
        "start_date": start_date,
        "end_date": end_date,
    }
    return get_activity_logs(db, {k: v for k, v in filters.items() if v is not None})
