#taskhub/schemas/activity_log.py
from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime

from taskhub.models.activity_log import EntityType

class ActivityLogRead(BaseModel):
    """
    ActivityLogRead — запись журнала с username автора.
    """
    id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    action_type: str
    entity_type: EntityType
    entity_id: Optional[int] = None
    details: Optional[Any] = None
    timestamp: datetime

    class Config:
        from_attributes = True
