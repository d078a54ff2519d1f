#taskhub/schemas/task.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime

from taskhub.models.task import TaskPriority, TaskStatus

class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Название задачи")
    description: Optional[str] = Field(None, description="Описание")
    due_date: Optional[date] = Field(None, description="Срок")
    priority: TaskPriority = Field(TaskPriority.medium, description="low, medium, high, urgent")
    status: TaskStatus = Field(TaskStatus.pending, description="pending, in-progress, completed, blocked")
    assigned_to: Optional[int] = Field(None, description="ID исполнителя")
    parent_task_id: Optional[int] = Field(None, description="ID родительской задачи")

class TaskCreate(TaskBase):
    """
    TaskCreate — создание задачи (project_id обязателен).
    """
    project_id: int = Field(..., description="ID проекта")

class TaskUpdate(BaseModel):
    """
    TaskUpdate — частичное обновление (все поля опциональны, exclude_unset).
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[int] = None
    parent_task_id: Optional[int] = None
    project_id: Optional[int] = None

class TaskTagShort(BaseModel):
    id: int
    name: str

class TaskRead(BaseModel):
    """
    TaskRead — задача с вычисляемыми полями (project_name, usernames, tags).
    """
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: TaskPriority
    status: TaskStatus
    assigned_to: Optional[int] = None
    created_by: int
    project_id: int
    parent_task_id: Optional[int] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    project_name: Optional[str] = None
    assigned_to_username: Optional[str] = None
    created_by_username: Optional[str] = None
    tags: List[TaskTagShort] = Field(default_factory=list)

    class Config:
        from_attributes = True

class TaskTagLink(BaseModel):
    """
    TaskTagLink — ответ на добавление/удаление тега у задачи.
    """
    taskId: int
    tagId: int
