#taskhub/models/notification.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text, Enum
from taskhub.models.base import Base, utcnow
from taskhub.models.activity_log import EntityType


class Notification(Base):
    """
    Notification — уведомление пользователю. Меняется только флаг is_read.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Получатель")
    type = Column(String(50), nullable=False, doc="Тип: task_assigned, task_reassigned, task_completed")
    message = Column(Text, nullable=False, doc="Текст уведомления")
    entity_type = Column(Enum(EntityType, native_enum=False, length=16), nullable=True)
    entity_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type}', is_read={self.is_read})>"
