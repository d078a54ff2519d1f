#taskhub/models/base.py
"""
Базовый класс для всех ORM-моделей проекта.

Использовать как Base при описании моделей:
    from taskhub.models.base import Base
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Текущее время в UTC (default для колонок created_at/updated_at)."""
    return datetime.now(timezone.utc)
