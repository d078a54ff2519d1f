#taskhub/models/activity_log.py
import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Enum
from taskhub.models.base import Base, utcnow


class EntityType(str, enum.Enum):
    PROJECT = "PROJECT"
    TASK = "TASK"
    TAG = "TAG"
    NOTIFICATION = "NOTIFICATION"
    USER = "USER"


@dataclass(frozen=True)
class EntityRef:
    """Типизированная ссылка на сущность (вместо пары entity_type/entity_id)."""
    type: EntityType
    id: Optional[int] = None

    @classmethod
    def project(cls, id: int) -> "EntityRef":
        return cls(EntityType.PROJECT, id)

    @classmethod
    def task(cls, id: int) -> "EntityRef":
        return cls(EntityType.TASK, id)

    @classmethod
    def tag(cls, id: int) -> "EntityRef":
        return cls(EntityType.TAG, id)

    @classmethod
    def user(cls, id: int) -> "EntityRef":
        return cls(EntityType.USER, id)

    @classmethod
    def notification(cls, id: Optional[int] = None) -> "EntityRef":
        return cls(EntityType.NOTIFICATION, id)


class ActivityLog(Base):
    """
    ActivityLog — журнал действий (append-only). Никогда не изменяется и не удаляется.
    """
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True, doc="Кто выполнил действие")
    action_type = Column(String(50), nullable=False, index=True, doc="CREATED, UPDATED, SOFT_DELETED, ...")
    entity_type = Column(Enum(EntityType, native_enum=False, length=16), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True, doc="Произвольные детали (снимки old/new и т.п.)")
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return (
            f"<ActivityLog(id={self.id}, user_id={self.user_id}, action_type='{self.action_type}', "
            f"entity_type={self.entity_type}, entity_id={self.entity_id})>"
        )
