#taskhub/api/project.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from taskhub.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from taskhub.schemas.response import SuccessResponse
from taskhub.crud.project import (
    create_project,
    get_project,
    get_all_projects,
    update_project,
    soft_delete_project,
)
from taskhub.dependencies import get_db, get_current_principal
from taskhub.core.security import Principal
from taskhub.core.exceptions import BaseAppException, InternalError

import logging

router = APIRouter(prefix="/projects", tags=["Projects"])
logger = logging.getLogger("TaskHub.ProjectsAPI")

@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_new_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Создать новый проект (владелец — текущий пользователь).
    """
    try:
        return create_project(db, principal, data.model_dump())
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in create_new_project: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred while creating the project.")

@router.get("", response_model=List[ProjectRead])
def list_projects(
    show_archived: bool = Query(False, description="Только для admin: включить удалённые"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Получить список видимых проектов.
    """
    return get_all_projects(db, principal, show_archived=show_archived)

@router.get("/{project_id}", response_model=ProjectRead)
def get_one_project(
    project_id: int,
    show_archived: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Получить проект по ID.
    """
    return get_project(db, principal, project_id, show_archived=show_archived)

@router.put("/{project_id}", response_model=ProjectRead)
def update_one_project(
    project_id: int,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Обновить проект (частично).
    """
    try:
        return update_project(db, principal, project_id, data.model_dump(exclude_unset=True))
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Failed to update project {project_id}: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred during project update.")

@router.delete("/{project_id}", response_model=SuccessResponse)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Удалить проект (soft-delete) вместе с задачами.
    """
    try:
        soft_delete_project(db, principal, project_id)
        return SuccessResponse(result={"id": project_id}, detail="Project deleted")
    except BaseAppException:
        raise
    except Exception as e:
        logger.error(f"Failed to soft-delete project {project_id}: {e}", exc_info=True)
        raise InternalError("An unexpected error occurred during project deletion.")
