#taskhub/schemas/user.py
from pydantic import BaseModel, Field, EmailStr, constr
from datetime import datetime

from taskhub.models.user import UserRole

class UserCreate(BaseModel):
    """
    UserCreate — регистрация пользователя (роль всегда member).
    """
    username: constr(strip_whitespace=True, min_length=3, max_length=50) = Field(..., description="Уникальный username")
    email: EmailStr = Field(..., description="Email пользователя")
    password: constr(min_length=6, max_length=128) = Field(..., description="Пароль пользователя")

class UserRead(BaseModel):
    """
    UserRead — схема для выдачи пользователя (response).
    """
    id: int
    username: str
    email: EmailStr
    role: UserRole
    created_at: datetime

    class Config:
        from_attributes = True

class UserShort(BaseModel):
    """
    UserShort — id/username/email для выбора исполнителя.
    """
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True
