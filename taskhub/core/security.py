#taskhub/core/security.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from taskhub.core.settings import settings
from taskhub.models.user import UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# FastAPI OAuth2 scheme (используется в Depends)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class Principal:
    """
    Principal — аутентифицированная личность (user_id + role), под которой выполняется операция.
    Собирается из JWT без обращения к базе.
    """
    user_id: int
    role: UserRole
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> tuple[str, datetime]:
    """
    Генерирует access token (JWT) и возвращает (token, expire_time)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt, expire


def create_token_for_user(user, expires_delta: Optional[timedelta] = None) -> tuple[str, datetime]:
    """
    Access token с claims sub/user_id/role для ORM-пользователя.
    """
    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    return create_access_token(
        data={"sub": user.username, "user_id": user.id, "role": role},
        expires_delta=expires_delta,
    )


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Декодирует и валидирует access token.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        if payload.get("type") != "access":
            return None
        return payload
    except JWTError:
        return None


def principal_from_token(token: Optional[str]) -> Optional[Principal]:
    """
    Возвращает Principal по токену или None, если токен невалиден или неполон.
    """
    if not token:
        return None
    payload = verify_access_token(token)
    if payload is None:
        return None
    user_id = payload.get("user_id")
    role = payload.get("role")
    if not isinstance(user_id, int) or role not in {r.value for r in UserRole}:
        return None
    return Principal(user_id=user_id, role=UserRole(role), username=payload.get("sub"))
