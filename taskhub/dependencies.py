# taskhub/dependencies.py

from typing import Generator
from fastapi import Depends
from sqlalchemy.orm import Session
from taskhub.core.exceptions import AuthError, AdminRequired
from taskhub.core.security import Principal, oauth2_scheme, principal_from_token
from taskhub.database import SessionLocal

def get_db() -> Generator[Session, None, None]:
    """
    Создает и возвращает сессию базы данных, гарантирует закрытие после использования.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """
    Декодирует JWT-токен в Principal (user_id + role). База не читается.
    """
    principal = principal_from_token(token)
    if principal is None:
        raise AuthError("Could not validate credentials")
    return principal

def get_current_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """
    Пропускает только администраторов (ролевой гейт маршрута, 403).
    """
    if not principal.is_admin:
        raise AdminRequired()
    return principal
