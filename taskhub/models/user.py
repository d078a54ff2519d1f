#taskhub/models/user.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum
from taskhub.models.base import Base, utcnow


class UserRole(str, enum.Enum):
    member = "member"
    admin = "admin"


class User(Base):
    """
    User — аккаунт пользователя. Роль: member или admin. Пользователи не удаляются.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True, doc="Уникальный username")
    email = Column(String(255), unique=True, nullable=False, index=True, doc="Email")
    password_hash = Column(String(128), nullable=False, doc="Хэш пароля (никогда не хранить сырой пароль!)")
    role = Column(Enum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.member, doc="Роль")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, doc="Дата создания")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False, doc="Дата обновления")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}', role={self.role})>"
