#taskhub/schemas/notification.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from taskhub.models.activity_log import EntityType

class NotificationRead(BaseModel):
    """
    NotificationRead — уведомление (response и payload newNotification).
    """
    id: int
    user_id: int
    type: str
    message: str
    entity_type: Optional[EntityType] = None
    entity_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class MarkReadRequest(BaseModel):
    notificationIds: List[int] = Field(..., description="ID уведомлений текущего пользователя")

class MarkReadResponse(BaseModel):
    updated_ids: List[int]
