#taskhub/models/task.py
import enum

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, ForeignKey, Boolean, Text, Enum, Index
)
from taskhub.models.base import Base, utcnow


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class TaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"
    blocked = "blocked"


class Task(Base):
    """
    Task — задача внутри проекта. Видна создателю, исполнителю и владельцу проекта.
    parent_task_id — ссылка на родительскую задачу (подзадачи).
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, doc="Название задачи")
    description = Column(Text, nullable=True, doc="Описание")
    due_date = Column(Date, nullable=True, doc="Срок")
    priority = Column(
        Enum(TaskPriority, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=TaskPriority.medium, doc="Приоритет",
    )
    status = Column(
        Enum(TaskStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=TaskStatus.pending, doc="Статус",
    )
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True, doc="Исполнитель")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Автор")
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True, doc="ID проекта")
    parent_task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True, doc="ID родительской задачи")
    is_deleted = Column(Boolean, default=False, nullable=False, doc="Soft-delete")
    deleted_at = Column(DateTime(timezone=True), nullable=True, doc="Дата удаления")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, doc="Дата создания")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False, doc="Дата изменения")

    __table_args__ = (
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_priority", "priority"),
    )

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', status={self.status}, "
            f"project_id={self.project_id}, priority={self.priority}, assigned_to={self.assigned_to})>"
        )
