#taskhub/crud/user.py
from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from typing import Optional, List
import logging

from taskhub.models.user import User, UserRole
from taskhub.core.security import hash_password, verify_password
from taskhub.core.exceptions import DuplicateUser, UserValidationError, InternalError

logger = logging.getLogger("TaskHub.Auth")

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()

def create_user(db: Session, data: dict) -> User:
    """
    Создаёт пользователя с хешированным паролем. Дубликат username/email — CONFLICT.
    """
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not username:
        raise UserValidationError("Username is required.", field="username")
    if not email:
        raise UserValidationError("Email is required.", field="email")
    if not password:
        raise UserValidationError("Password is required.", field="password")

    existing = db.query(User).filter(
        or_(User.username == username, func.lower(User.email) == email.lower())
    ).first()
    if existing:
        raise DuplicateUser()

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=data.get("role", UserRole.member),
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Created user '{user.username}' (ID: {user.id}, role: {user.role.value})")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create user '{username}': {e}")
        raise InternalError("Database error while creating user.")

def authenticate_user(db: Session, login: str, password: str) -> Optional[User]:
    """
    Ищет пользователя по username или email и проверяет пароль.
    """
    user = get_user_by_username(db, login) or get_user_by_email(db, login)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

def get_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.username.asc()).all()
