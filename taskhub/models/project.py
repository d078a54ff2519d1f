#taskhub/models/project.py
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Boolean
from taskhub.models.base import Base, utcnow


class Project(Base):
    """
    Project — контейнер задач. Поддерживает soft-delete, который каскадируется на задачи.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False, index=True, doc="Название проекта")
    description = Column(Text, nullable=True, doc="Описание")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Владелец проекта")
    is_deleted = Column(Boolean, default=False, nullable=False, index=True, doc="Soft-delete")
    deleted_at = Column(DateTime(timezone=True), nullable=True, doc="Дата удаления")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, doc="Дата создания")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False, doc="Дата изменения")

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', created_by={self.created_by}, is_deleted={self.is_deleted})>"
