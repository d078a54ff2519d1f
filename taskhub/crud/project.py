#taskhub/crud/project.py
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any
import logging

from taskhub.models.project import Project
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.models.base import utcnow
from taskhub.models.activity_log import EntityRef
from taskhub.core.security import Principal
from taskhub.core.permissions import project_clause
from taskhub.core.exceptions import ProjectNotFound, ProjectValidationError, InternalError
from taskhub.realtime.manager import broadcaster
from taskhub.schemas.project import ProjectRead
from taskhub.services import activity_logger

logger = logging.getLogger("TaskHub.Projects")

def _to_dict(project: Project, created_by_username: Optional[str]) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "created_by": project.created_by,
        "created_by_username": created_by_username,
        "is_deleted": project.is_deleted,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }

def _event_payload(project: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": ProjectRead.model_validate(project).model_dump(mode="json")}

def _base_query(db: Session):
    return db.query(Project, User.username).join(User, Project.created_by == User.id)

def _fetch(db: Session, project_id: int) -> Optional[Dict[str, Any]]:
    row = _base_query(db).filter(Project.id == project_id).first()
    return _to_dict(*row) if row else None

def create_project(db: Session, principal: Principal, data: dict) -> Dict[str, Any]:
    """
    Создаёт проект от имени principal, пишет журнал и рассылает projectCreated.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ProjectValidationError("Project name is required.", field="name")

    project = Project(
        name=name,
        description=data.get("description"),
        created_by=principal.user_id,
        is_deleted=False,
    )
    db.add(project)
    try:
        db.commit()
        db.refresh(project)
    except Exception as e:
        db.rollback()
        logger.error(f"Exception during save of project '{name}': {e}")
        raise InternalError("Database error while creating project.")
    logger.info(f"Created project '{project.name}' (ID: {project.id}) by user {principal.user_id}")

    result = _to_dict(project, principal.username)
    activity_logger.record(db, principal.user_id, activity_logger.CREATED, EntityRef.project(project.id), {"name": project.name})
    broadcaster.emit("projectCreated", _event_payload(result))
    return result

def get_all_projects(db: Session, principal: Principal, show_archived: bool = False) -> List[Dict[str, Any]]:
    """
    Проекты, видимые principal: свои (или все для admin). Удалённые — только admin с show_archived.
    """
    query = _base_query(db).filter(project_clause(principal))
    if not (show_archived and principal.is_admin):
        query = query.filter(Project.is_deleted == False)
    rows = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    return [_to_dict(p, username) for p, username in rows]

def get_project(db: Session, principal: Principal, project_id: int, show_archived: bool = False) -> Dict[str, Any]:
    """
    Получить проект по ID. Нет доступа, удалён или не существует — ProjectNotFound.
    """
    query = _base_query(db).filter(Project.id == project_id, project_clause(principal))
    if not (show_archived and principal.is_admin):
        query = query.filter(Project.is_deleted == False)
    row = query.first()
    if not row:
        raise ProjectNotFound()
    return _to_dict(*row)

def update_project(db: Session, principal: Principal, project_id: int, data: dict) -> Dict[str, Any]:
    """
    Частичное обновление (name/description). Проверка доступа и запись — один условный UPDATE.
    """
    before = get_project(db, principal, project_id)

    values: Dict[str, Any] = {}
    if data.get("name") is not None:
        name = data["name"].strip()
        if not name:
            raise ProjectValidationError("Project name cannot be empty.", field="name")
        values["name"] = name
    if data.get("description") is not None:
        values["description"] = data["description"]
    values["updated_at"] = utcnow()

    try:
        updated = (
            db.query(Project)
            .filter(Project.id == project_id, Project.is_deleted == False, project_clause(principal))
            .update(values, synchronize_session=False)
        )
        if updated:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update project {project_id}: {e}")
        raise InternalError("Database error while updating project.")
    if not updated:
        raise ProjectNotFound()

    after = _fetch(db, project_id)
    changed = [k for k in ("name", "description") if k in values]
    logger.info(f"Updated project {project_id} fields: {changed}")
    activity_logger.record(
        db, principal.user_id, activity_logger.UPDATED, EntityRef.project(project_id),
        {
            "old": {k: before[k] for k in ("name", "description")},
            "new": {k: after[k] for k in ("name", "description")},
        },
    )
    broadcaster.emit("projectUpdated", _event_payload(after))
    return after

def soft_delete_project(db: Session, principal: Principal, project_id: int) -> int:
    """
    Помечает проект и все его задачи удалёнными в одной транзакции.
    Возвращает число задач, затронутых каскадом.
    """
    now = utcnow()
    try:
        updated = (
            db.query(Project)
            .filter(Project.id == project_id, Project.is_deleted == False, project_clause(principal))
            .update({"is_deleted": True, "deleted_at": now, "updated_at": now}, synchronize_session=False)
        )
        cascaded = 0
        if updated:
            cascaded = (
                db.query(Task)
                .filter(Task.project_id == project_id, Task.is_deleted == False)
                .update({"is_deleted": True, "deleted_at": now, "updated_at": now}, synchronize_session=False)
            )
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to soft-delete project {project_id}: {e}")
        raise InternalError("Database error while deleting project.")
    if not updated:
        raise ProjectNotFound()

    logger.info(f"Soft-deleted project {project_id} and {cascaded} task(s)")
    activity_logger.record(
        db, principal.user_id, activity_logger.SOFT_DELETED, EntityRef.project(project_id),
        {"cascaded_tasks": cascaded},
    )
    broadcaster.emit("projectDeleted", {"id": project_id})
    return cascaded
