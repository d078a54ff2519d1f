import os
from typing import Callable, Generator

# Переменные окружения выставляются ДО импорта settings и приложения
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "testsecretkey"
os.environ["TARGETED_NOTIFICATIONS"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

import taskhub.models  # noqa: F401  (все модели в Base.metadata)
from taskhub.models.base import Base
from taskhub.models.user import User, UserRole
from taskhub.main import app
from taskhub.dependencies import get_db
from taskhub.core import security
from taskhub.core.security import Principal

TEST_PASSWORD = "testpassword"
# bcrypt медленный: хеш считается один раз на сессию
TEST_PASSWORD_HASH = security.hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database per test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """
    Database session for a single test function.
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient with `get_db` overridden to use the test session.
    The context manager keeps one event loop for HTTP and WebSocket calls.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """
    Factory creating users directly in the database.
    """
    def _make_user(username: str, role: UserRole = UserRole.member) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture(scope="function")
def user_a(make_user) -> User:
    return make_user("alice")


@pytest.fixture(scope="function")
def user_b(make_user) -> User:
    return make_user("bob")


@pytest.fixture(scope="function")
def user_c(make_user) -> User:
    return make_user("carol")


@pytest.fixture(scope="function")
def admin_user(make_user) -> User:
    return make_user("root", role=UserRole.admin)


@pytest.fixture(scope="function")
def as_principal() -> Callable[[User], Principal]:
    """
    Converts a User row into the Principal the API would decode from its token.
    """
    def _as_principal(user: User) -> Principal:
        return Principal(user_id=user.id, role=user.role, username=user.username)
    return _as_principal


@pytest.fixture(scope="function")
def token_headers() -> Callable[[User], dict]:
    """
    Returns bearer headers for the given user.
    """
    def _token_headers(user: User) -> dict:
        token, _ = security.create_token_for_user(user)
        return {"Authorization": f"Bearer {token}"}
    return _token_headers


@pytest.fixture(scope="function")
def user_a_token_headers(user_a: User, token_headers) -> dict:
    return token_headers(user_a)


@pytest.fixture(scope="function")
def user_b_token_headers(user_b: User, token_headers) -> dict:
    return token_headers(user_b)


@pytest.fixture(scope="function")
def admin_token_headers(admin_user: User, token_headers) -> dict:
    return token_headers(admin_user)
