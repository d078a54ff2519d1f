#taskhub/api/task.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from taskhub.schemas.task import TaskCreate, TaskRead, TaskUpdate, TaskTagLink
from taskhub.schemas.response import SuccessResponse
from taskhub.crud.task import (
    create_task,
    get_task,
    get_tasks,
    update_task,
    soft_delete_task,
    add_tag_to_task,
    remove_tag_from_task,
)
from taskhub.dependencies import get_db, get_current_principal
from taskhub.core.security import Principal
from taskhub.core.exceptions import BaseAppException, InternalError, TaskValidationError
from taskhub.models.task import TaskPriority, TaskStatus

import logging

router = APIRouter(prefix="/tasks", tags=["Tasks"])
logger = logging.getLogger("TaskHub.TasksAPI")

def parse_tag_ids(tags: Optional[str]) -> List[int]:
    """
    '1, 2,3' -> [1, 2, 3]. Нечисловые значения — ошибка валидации.
    """
    if not tags:
        return []
    try:
        return [int(part) for part in tags.split(",") if part.strip()]
    except ValueError:
        raise TaskValidationError("tags must be a comma-separated list of tag ids.", field="tags")

@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_new_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Создать задачу в проекте.
    """
    try:
        return create_task(db, principal, data.model_dump())
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in create_new_task: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred while creating the task.")

@router.get("", response_model=List[TaskRead])
def list_tasks(
    project_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    assigned_to: Optional[int] = Query(None),
    tags: Optional[str] = Query(None, description="ID тегов через запятую; задача должна иметь все"),
    due_date_start: Optional[date] = Query(None),
    due_date_end: Optional[date] = Query(None),
    order_by: str = Query("created_at"),
    order_direction: str = Query("DESC"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Список задач с фильтрами и сортировкой.
    """
    filters = {
        "project_id": project_id,
        "search": search,
        "priority": priority,
        "status": status,
        "assigned_to": assigned_to,
        "tags": parse_tag_ids(tags),
        "due_date_start": due_date_start,
        "due_date_end": due_date_end,
    }
    filters = {k: v for k, v in filters.items() if v is not None}
    return get_tasks(db, principal, filters=filters, order_by=order_by, order_direction=order_direction)

@router.get("/{task_id}", response_model=TaskRead)
def get_one_task(
    task_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return get_task(db, principal, task_id)

@router.put("/{task_id}", response_model=TaskRead)
def update_one_task(
    task_id: int,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Обновить задачу (частично).
    """
    try:
        return update_task(db, principal, task_id, data.model_dump(exclude_unset=True))
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Failed to update task {task_id}: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred during task update.")

@router.delete("/{task_id}", response_model=SuccessResponse)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Удалить задачу (soft-delete).
    """
    try:
        soft_delete_task(db, principal, task_id)
        return SuccessResponse(result={"id": task_id}, detail="Task deleted")
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Failed to soft-delete task {task_id}: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred during task deletion.")

@router.post("/{task_id}/tags/{tag_id}", response_model=TaskTagLink)
def add_tag(
    task_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Привязать тег к задаче.
    """
    return add_tag_to_task(db, principal, task_id, tag_id)

@router.delete("/{task_id}/tags/{tag_id}", response_model=TaskTagLink)
def remove_tag(
    task_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Отвязать тег от задачи.
    """
    return remove_tag_from_task(db, principal, task_id, tag_id)
