#taskhub/crud/task.py
from sqlalchemy.orm import Session, aliased
from sqlalchemy.exc import IntegrityError
from sqlalchemy import case, distinct, func, or_, select
from datetime import date
from enum import Enum
from typing import Optional, List, Dict, Any, Iterable
import logging

from taskhub.models.task import Task, TaskPriority, TaskStatus
from taskhub.models.project import Project
from taskhub.models.tag import Tag
from taskhub.models.task_tag import TaskTag
from taskhub.models.user import User
from taskhub.models.base import utcnow
from taskhub.models.activity_log import EntityRef
from taskhub.core.security import Principal
from taskhub.core.permissions import task_clause
from taskhub.core.exceptions import (
    TaskNotFound,
    TagNotFound,
    TaskTagNotFound,
    DuplicateTaskTag,
    TaskValidationError,
    InternalError,
)
from taskhub.realtime.manager import broadcaster
from taskhub.schemas.task import TaskRead
from taskhub.services import activity_logger
from taskhub.services import notification as notification_service

logger = logging.getLogger("TaskHub.Tasks")

MAX_PARENT_DEPTH = 100

SORTABLE_COLUMNS = ("created_at", "due_date", "priority", "title", "status")

PRIORITY_RANK = case(
    (Task.priority == TaskPriority.low, 0),
    (Task.priority == TaskPriority.medium, 1),
    (Task.priority == TaskPriority.high, 2),
    (Task.priority == TaskPriority.urgent, 3),
    else_=4,
)

UPDATABLE_FIELDS = (
    "title", "description", "due_date", "priority", "status",
    "assigned_to", "project_id", "parent_task_id",
)

# ==== Выборка с вычисляемыми полями ====

def _base_query(db: Session):
    assignee = aliased(User)
    creator = aliased(User)
    return (
        db.query(Task, Project.name, assignee.username, creator.username)
        .join(Project, Task.project_id == Project.id)
        .outerjoin(assignee, Task.assigned_to == assignee.id)
        .join(creator, Task.created_by == creator.id)
    )

def _tags_for(db: Session, task_ids: Iterable[int]) -> Dict[int, List[Dict[str, Any]]]:
    """
    Теги задач одним запросом; удалённые теги не попадают в выдачу.
    """
    ids = list(task_ids)
    result: Dict[int, List[Dict[str, Any]]] = {task_id: [] for task_id in ids}
    if not ids:
        return result
    rows = (
        db.query(TaskTag.task_id, Tag.id, Tag.name)
        .join(Tag, Tag.id == TaskTag.tag_id)
        .filter(TaskTag.task_id.in_(ids), Tag.is_deleted == False)
        .order_by(Tag.name.asc(), Tag.id.asc())
        .all()
    )
    for task_id, tag_id, tag_name in rows:
        result[task_id].append({"id": tag_id, "name": tag_name})
    return result

def _to_dict(task: Task, project_name, assigned_to_username, created_by_username, tags) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "due_date": task.due_date,
        "priority": task.priority,
        "status": task.status,
        "assigned_to": task.assigned_to,
        "created_by": task.created_by,
        "project_id": task.project_id,
        "parent_task_id": task.parent_task_id,
        "is_deleted": task.is_deleted,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
        "project_name": project_name,
        "assigned_to_username": assigned_to_username,
        "created_by_username": created_by_username,
        "tags": tags,
    }

def _assemble(db: Session, rows) -> List[Dict[str, Any]]:
    tags = _tags_for(db, [row[0].id for row in rows])
    return [_to_dict(*row, tags[row[0].id]) for row in rows]

def _fetch(db: Session, task_id: int) -> Dict[str, Any]:
    row = _base_query(db).filter(Task.id == task_id).first()
    return _assemble(db, [row])[0]

def _event_payload(task: Dict[str, Any]) -> Dict[str, Any]:
    return {"task": TaskRead.model_validate(task).model_dump(mode="json")}

def _escape_like(text: str) -> str:
    # % и _ в поиске ищутся буквально
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value

# ==== Проверки ссылок ====

def _validate_project(db: Session, project_id: int) -> None:
    exists = db.query(Project.id).filter(Project.id == project_id, Project.is_deleted == False).first()
    if not exists:
        raise TaskValidationError("Project does not exist or has been deleted.", field="project_id")

def _validate_assignee(db: Session, user_id: int) -> None:
    if not db.query(User.id).filter(User.id == user_id).first():
        raise TaskValidationError("Assigned user does not exist.", field="assigned_to")

def _validate_parent(db: Session, parent_task_id: int, task_id: Optional[int] = None) -> None:
    """
    Родитель должен быть неудалённой задачей. Для существующей задачи
    проверяется, что новый родитель не является её потомком (цикл).
    """
    if task_id is not None and parent_task_id == task_id:
        raise TaskValidationError("A task cannot be its own parent.", field="parent_task_id")
    exists = db.query(Task.id).filter(Task.id == parent_task_id, Task.is_deleted == False).first()
    if not exists:
        raise TaskValidationError("Parent task does not exist or has been deleted.", field="parent_task_id")
    if task_id is None:
        return
    current = parent_task_id
    for _ in range(MAX_PARENT_DEPTH):
        current = db.query(Task.parent_task_id).filter(Task.id == current).scalar()
        if current is None:
            return
        if current == task_id:
            raise TaskValidationError("Parent assignment would create a cycle.", field="parent_task_id")
    raise TaskValidationError("Task hierarchy is too deep.", field="parent_task_id")

# ==== CRUD ====

def create_task(db: Session, principal: Principal, data: dict) -> Dict[str, Any]:
    """
    Создаёт задачу. Если исполнитель не совпадает с автором — уведомление task_assigned.
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise TaskValidationError("Task title is required.", field="title")
    project_id = data.get("project_id")
    if project_id is None:
        raise TaskValidationError("Project is required.", field="project_id")
    _validate_project(db, project_id)
    assigned_to = data.get("assigned_to")
    if assigned_to is not None:
        _validate_assignee(db, assigned_to)
    if data.get("parent_task_id") is not None:
        _validate_parent(db, data["parent_task_id"])

    task = Task(
        title=title,
        description=data.get("description"),
        due_date=data.get("due_date"),
        priority=data.get("priority") or TaskPriority.medium,
        status=data.get("status") or TaskStatus.pending,
        assigned_to=assigned_to,
        created_by=principal.user_id,
        project_id=project_id,
        parent_task_id=data.get("parent_task_id"),
        is_deleted=False,
    )
    db.add(task)
    try:
        db.commit()
        db.refresh(task)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create task '{title}': {e}")
        raise InternalError("Database error while creating task.")
    logger.info(f"Created task '{task.title}' (ID: {task.id}) in project {project_id}")

    activity_logger.record(
        db, principal.user_id, activity_logger.CREATED, EntityRef.task(task.id),
        {"title": task.title, "project_id": project_id},
    )
    if assigned_to is not None and assigned_to != principal.user_id:
        notification_service.notify(
            db, assigned_to, notification_service.TASK_ASSIGNED,
            f'Task "{task.title}" assigned to you!', EntityRef.task(task.id),
        )
    result = _fetch(db, task.id)
    broadcaster.emit("taskCreated", _event_payload(result))
    return result

def get_tasks(
    db: Session,
    principal: Principal,
    filters: Optional[Dict[str, Any]] = None,
    order_by: str = "created_at",
    order_direction: str = "DESC",
) -> List[Dict[str, Any]]:
    """
    Задачи, видимые principal, с фильтрами (AND) и сортировкой по белому списку колонок.
    Фильтр tags требует наличия у задачи ВСЕХ указанных тегов.
    """
    filters = filters or {}
    query = _base_query(db).filter(
        task_clause(principal),
        Task.is_deleted == False,
        Project.is_deleted == False,
    )

    if filters.get("project_id") is not None:
        query = query.filter(Task.project_id == filters["project_id"])
    if filters.get("search"):
        search = f"%{_escape_like(filters['search'])}%"
        query = query.filter(or_(
            Task.title.ilike(search, escape="\\"),
            Task.description.ilike(search, escape="\\"),
        ))
    if filters.get("priority") is not None:
        query = query.filter(Task.priority == filters["priority"])
    if filters.get("status") is not None:
        query = query.filter(Task.status == filters["status"])
    if filters.get("assigned_to") is not None:
        query = query.filter(Task.assigned_to == filters["assigned_to"])
    if filters.get("tags"):
        tag_ids = set(filters["tags"])
        tagged = (
            select(TaskTag.task_id)
            .join(Tag, Tag.id == TaskTag.tag_id)
            .where(TaskTag.tag_id.in_(tag_ids), Tag.is_deleted == False)
            .group_by(TaskTag.task_id)
            .having(func.count(distinct(TaskTag.tag_id)) == len(tag_ids))
        )
        query = query.filter(Task.id.in_(tagged))
    if filters.get("due_date_start") is not None:
        query = query.filter(Task.due_date >= filters["due_date_start"])
    if filters.get("due_date_end") is not None:
        query = query.filter(Task.due_date <= filters["due_date_end"])

    # Сортировка: неизвестная колонка -> created_at, направление только ASC/DESC
    column_name = order_by if order_by in SORTABLE_COLUMNS else "created_at"
    column = PRIORITY_RANK if column_name == "priority" else getattr(Task, column_name)
    ascending = (order_direction or "").upper() == "ASC"
    if ascending:
        query = query.order_by(column.asc(), Task.id.asc())
    else:
        query = query.order_by(column.desc(), Task.id.desc())

    return _assemble(db, query.all())

def get_task(db: Session, principal: Principal, task_id: int) -> Dict[str, Any]:
    """
    Получить задачу по ID в той же форме, что и список.
    """
    row = (
        _base_query(db)
        .filter(
            Task.id == task_id,
            task_clause(principal),
            Task.is_deleted == False,
            Project.is_deleted == False,
        )
        .first()
    )
    if not row:
        raise TaskNotFound()
    return _assemble(db, [row])[0]

def update_task(db: Session, principal: Principal, task_id: int, data: dict) -> Dict[str, Any]:
    """
    Частичное обновление задачи. None-значения не меняют поле.
    Снимок old/new пишется в журнал; уведомления о переназначении и завершении.
    """
    before = get_task(db, principal, task_id)

    values: Dict[str, Any] = {k: data[k] for k in UPDATABLE_FIELDS if data.get(k) is not None}
    if "title" in values:
        values["title"] = values["title"].strip()
        if not values["title"]:
            raise TaskValidationError("Task title cannot be empty.", field="title")
    if "project_id" in values and values["project_id"] != before["project_id"]:
        _validate_project(db, values["project_id"])
    if "assigned_to" in values:
        _validate_assignee(db, values["assigned_to"])
    if "parent_task_id" in values:
        _validate_parent(db, values["parent_task_id"], task_id)

    try:
        updated = (
            db.query(Task)
            .filter(Task.id == task_id, Task.is_deleted == False, task_clause(principal))
            .update({**values, "updated_at": utcnow()}, synchronize_session=False)
        )
        if updated:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update task {task_id}: {e}")
        raise InternalError("Database error while updating task.")
    if not updated:
        raise TaskNotFound()

    after = _fetch(db, task_id)
    changes = {
        k: (before[k], after[k])
        for k in values
        if before[k] != after[k]
    }
    if changes:
        logger.info(f"Updated task {task_id} fields: {list(changes)}")
    else:
        logger.info(f"Update called but no changes for task {task_id}")

    activity_logger.record(
        db, principal.user_id, activity_logger.UPDATED, EntityRef.task(task_id),
        {
            "old": {k: _jsonable(before[k]) for k in values},
            "new": {k: _jsonable(after[k]) for k in values},
        },
    )
    if "assigned_to" in values and values["assigned_to"] != before["assigned_to"]:
        notification_service.notify(
            db, values["assigned_to"], notification_service.TASK_REASSIGNED,
            f'Task "{after["title"]}" has been reassigned to you!', EntityRef.task(task_id),
        )
    if values.get("status") == TaskStatus.completed and before["status"] != TaskStatus.completed:
        notification_service.notify(
            db, principal.user_id, notification_service.TASK_COMPLETED,
            f'You marked "{after["title"]}" as completed.', EntityRef.task(task_id),
        )
    broadcaster.emit("taskUpdated", _event_payload(after))
    return after

def soft_delete_task(db: Session, principal: Principal, task_id: int) -> None:
    """
    Помечает задачу как удалённую (soft-delete). Связи с тегами не трогаются.
    """
    now = utcnow()
    try:
        updated = (
            db.query(Task)
            .filter(Task.id == task_id, Task.is_deleted == False, task_clause(principal))
            .update({"is_deleted": True, "deleted_at": now, "updated_at": now}, synchronize_session=False)
        )
        if updated:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to soft-delete task {task_id}: {e}")
        raise InternalError("Database error while deleting task.")
    if not updated:
        raise TaskNotFound()

    logger.info(f"Soft-deleted task {task_id}")
    activity_logger.record(db, principal.user_id, activity_logger.SOFT_DELETED, EntityRef.task(task_id))
    broadcaster.emit("taskDeleted", {"id": task_id})

# ==== Теги задачи ====

def _ensure_task_writable(db: Session, principal: Principal, task_id: int) -> None:
    exists = (
        db.query(Task.id)
        .filter(Task.id == task_id, Task.is_deleted == False, task_clause(principal))
        .first()
    )
    if not exists:
        raise TaskNotFound("Task not found, already deleted, or you do not have permission to modify it.")

def add_tag_to_task(db: Session, principal: Principal, task_id: int, tag_id: int) -> Dict[str, int]:
    """
    Привязывает неудалённый тег к задаче. Повторная привязка — CONFLICT.
    """
    _ensure_task_writable(db, principal, task_id)
    if not db.query(Tag.id).filter(Tag.id == tag_id, Tag.is_deleted == False).first():
        raise TagNotFound("Tag not found or already deleted.")
    if db.query(TaskTag).filter(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id).first():
        raise DuplicateTaskTag()

    db.add(TaskTag(task_id=task_id, tag_id=tag_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateTaskTag()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to add tag {tag_id} to task {task_id}: {e}")
        raise InternalError("Database error while adding tag to task.")

    logger.info(f"Tag {tag_id} added to task {task_id}")
    activity_logger.record(db, principal.user_id, activity_logger.TAG_ADDED, EntityRef.task(task_id), {"tag_id": tag_id})
    link = {"taskId": task_id, "tagId": tag_id}
    broadcaster.emit("taskTagAdded", link)
    return link

def remove_tag_from_task(db: Session, principal: Principal, task_id: int, tag_id: int) -> Dict[str, int]:
    """
    Отвязывает тег от задачи. Отсутствующая связь — NOT_FOUND_OR_FORBIDDEN.
    """
    _ensure_task_writable(db, principal, task_id)
    try:
        removed = (
            db.query(TaskTag)
            .filter(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
            .delete(synchronize_session=False)
        )
        if removed:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to remove tag {tag_id} from task {task_id}: {e}")
        raise InternalError("Database error while removing tag from task.")
    if not removed:
        raise TaskTagNotFound()

    logger.info(f"Tag {tag_id} removed from task {task_id}")
    activity_logger.record(db, principal.user_id, activity_logger.TAG_REMOVED, EntityRef.task(task_id), {"tag_id": tag_id})
    link = {"taskId": task_id, "tagId": tag_id}
    broadcaster.emit("taskTagRemoved", link)
    return link
