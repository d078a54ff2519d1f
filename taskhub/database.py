# taskhub/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from taskhub.core.settings import settings

# SQLite нужен check_same_thread=False: sync-эндпоинты работают в пуле потоков
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# Создаем движок подключения к БД
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# Фабрика сессий: одна сессия на запрос (см. dependencies.get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
