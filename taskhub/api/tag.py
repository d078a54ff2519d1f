#taskhub/api/tag.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from taskhub.schemas.tag import TagCreate, TagRead, TagUpdate
from taskhub.schemas.response import SuccessResponse
from taskhub.crud.tag import create_tag, get_all_tags, get_tag, update_tag, soft_delete_tag
from taskhub.dependencies import get_db, get_current_principal
from taskhub.core.security import Principal

router = APIRouter(prefix="/tags", tags=["Tags"])

@router.post("", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_new_tag(
    data: TagCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return create_tag(db, principal, data.model_dump())

@router.get("", response_model=List[TagRead])
def list_tags(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Все неудалённые теги (общий справочник).
    """
    return get_all_tags(db)

@router.get("/{tag_id}", response_model=TagRead)
def get_one_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return get_tag(db, tag_id)

@router.put("/{tag_id}", response_model=TagRead)
def update_one_tag(
    tag_id: int,
    data: TagUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Переименовать тег (только создатель).
    """
    return update_tag(db, principal, tag_id, data.model_dump(exclude_unset=True))

@router.delete("/{tag_id}", response_model=SuccessResponse)
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    soft_delete_tag(db, principal, tag_id)
    return SuccessResponse(result={"id": tag_id}, detail="Tag deleted")
