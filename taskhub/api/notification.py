#taskhub/api/notification.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from taskhub.schemas.notification import NotificationRead, MarkReadRequest, MarkReadResponse
from taskhub.crud.notification import get_my_notifications, mark_notifications_read, DEFAULT_LIMIT
from taskhub.dependencies import get_db, get_current_principal
from taskhub.core.security import Principal

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("", response_model=List[NotificationRead])
def list_my_notifications(
    is_read: Optional[bool] = Query(None),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Уведомления текущего пользователя (новые первыми).
    """
    return get_my_notifications(db, principal, is_read=is_read, limit=limit, offset=offset)

@router.post("/mark-read", response_model=MarkReadResponse)
def mark_read(
    data: MarkReadRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Отметить свои уведомления прочитанными.
    """
    updated_ids = mark_notifications_read(db, principal, data.notificationIds)
    return MarkReadResponse(updated_ids=updated_ids)
