#taskhub/crud/tag.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional, List, Dict, Any
import logging

from taskhub.models.tag import Tag
from taskhub.models.user import User
from taskhub.models.base import utcnow
from taskhub.models.activity_log import EntityRef
from taskhub.core.security import Principal
from taskhub.core.permissions import tag_write_clause
from taskhub.core.exceptions import TagNotFound, TagValidationError, DuplicateTagName, InternalError
from taskhub.realtime.manager import broadcaster
from taskhub.schemas.tag import TagRead
from taskhub.services import activity_logger

logger = logging.getLogger("TaskHub.Tags")

MAX_TAG_NAME_LENGTH = 50

def _to_dict(tag: Tag, created_by_username: Optional[str]) -> Dict[str, Any]:
    return {
        "id": tag.id,
        "name": tag.name,
        "created_by": tag.created_by,
        "created_by_username": created_by_username,
        "is_deleted": tag.is_deleted,
        "created_at": tag.created_at,
        "updated_at": tag.updated_at,
    }

def _event_payload(tag: Dict[str, Any]) -> Dict[str, Any]:
    return {"tag": TagRead.model_validate(tag).model_dump(mode="json")}

def _base_query(db: Session):
    return db.query(Tag, User.username).join(User, Tag.created_by == User.id)

def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise TagValidationError("Tag name is required.", field="name")
    if len(name) > MAX_TAG_NAME_LENGTH:
        raise TagValidationError(f"Tag name must be at most {MAX_TAG_NAME_LENGTH} characters.", field="name")
    return name

def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    """
    Имя уникально без учёта регистра среди неудалённых тегов.
    """
    query = db.query(Tag.id).filter(func.lower(Tag.name) == name.lower(), Tag.is_deleted == False)
    if exclude_id is not None:
        query = query.filter(Tag.id != exclude_id)
    if query.first():
        raise DuplicateTagName(f"Tag with name '{name}' already exists.")

def create_tag(db: Session, principal: Principal, data: dict) -> Dict[str, Any]:
    name = _clean_name(data.get("name"))
    _ensure_unique_name(db, name)

    tag = Tag(name=name, created_by=principal.user_id, is_deleted=False)
    db.add(tag)
    try:
        db.commit()
        db.refresh(tag)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create tag '{name}': {e}")
        raise InternalError("Database error while creating tag.")
    logger.info(f"Created tag '{tag.name}' (ID: {tag.id})")

    result = _to_dict(tag, principal.username)
    activity_logger.record(db, principal.user_id, activity_logger.CREATED, EntityRef.tag(tag.id), {"name": tag.name})
    broadcaster.emit("tagCreated", _event_payload(result))
    return result

def get_all_tags(db: Session) -> List[Dict[str, Any]]:
    """
    Все неудалённые теги (общий справочник) по имени.
    """
    rows = _base_query(db).filter(Tag.is_deleted == False).order_by(Tag.name.asc(), Tag.id.asc()).all()
    return [_to_dict(t, username) for t, username in rows]

def get_tag(db: Session, tag_id: int) -> Dict[str, Any]:
    row = _base_query(db).filter(Tag.id == tag_id, Tag.is_deleted == False).first()
    if not row:
        raise TagNotFound()
    return _to_dict(*row)

def update_tag(db: Session, principal: Principal, tag_id: int, data: dict) -> Dict[str, Any]:
    """
    Переименование тега. Только создатель, admin не имеет приоритета.
    """
    before = get_tag(db, tag_id)
    if before["created_by"] != principal.user_id:
        raise TagNotFound()

    values: Dict[str, Any] = {"updated_at": utcnow()}
    if data.get("name") is not None:
        name = _clean_name(data["name"])
        _ensure_unique_name(db, name, exclude_id=tag_id)
        values["name"] = name

    try:
        updated = (
            db.query(Tag)
            .filter(Tag.id == tag_id, Tag.is_deleted == False, tag_write_clause(principal))
            .update(values, synchronize_session=False)
        )
        if updated:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update tag {tag_id}: {e}")
        raise InternalError("Database error while updating tag.")
    if not updated:
        raise TagNotFound()

    after = get_tag(db, tag_id)
    logger.info(f"Updated tag {tag_id}: '{before['name']}' -> '{after['name']}'")
    activity_logger.record(
        db, principal.user_id, activity_logger.UPDATED, EntityRef.tag(tag_id),
        {"old": {"name": before["name"]}, "new": {"name": after["name"]}},
    )
    broadcaster.emit("tagUpdated", _event_payload(after))
    return after

def soft_delete_tag(db: Session, principal: Principal, tag_id: int) -> None:
    """
    Soft-delete тега. Связи task_tags остаются и отфильтровываются при чтении.
    """
    now = utcnow()
    try:
        updated = (
            db.query(Tag)
            .filter(Tag.id == tag_id, Tag.is_deleted == False, tag_write_clause(principal))
            .update({"is_deleted": True, "deleted_at": now, "updated_at": now}, synchronize_session=False)
        )
        if updated:
            db.commit()
            db.expire_all()
        else:
            db.rollback()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to soft-delete tag {tag_id}: {e}")
        raise InternalError("Database error while deleting tag.")
    if not updated:
        raise TagNotFound()

    logger.info(f"Soft-deleted tag {tag_id}")
    activity_logger.record(db, principal.user_id, activity_logger.SOFT_DELETED, EntityRef.tag(tag_id))
    broadcaster.emit("tagDeleted", {"id": tag_id})
