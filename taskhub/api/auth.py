#taskhub/api/auth.py
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from taskhub.schemas.auth import Token, RegisterResponse
from taskhub.schemas.user import UserCreate, UserRead
from taskhub.crud.user import authenticate_user, create_user, get_user
from taskhub.core.security import Principal, create_token_for_user
from taskhub.core.settings import settings
from taskhub.core.exceptions import AuthError
from taskhub.dependencies import get_db, get_current_principal
from taskhub.models.activity_log import EntityRef
from taskhub.services import activity_logger
import logging

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("TaskHub.Auth")

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserCreate,
    db: Session = Depends(get_db),
):
    """
    Регистрация (роль member) + сразу выдаётся access token.
    """
    user = create_user(db, data.model_dump())
    token, _ = create_token_for_user(user)
    activity_logger.record(db, user.id, activity_logger.REGISTERED, EntityRef.user(user.id), {"username": user.username})
    return RegisterResponse(
        user=UserRead.model_validate(user),
        access_token=token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

@router.post("/login", response_model=Token, status_code=status.HTTP_200_OK)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Логин по username/email + password.
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        logger.info(f"Failed login attempt for '{form_data.username}'")
        raise AuthError("Incorrect username or password")

    token, _ = create_token_for_user(user)
    activity_logger.record(db, user.id, activity_logger.LOGIN, EntityRef.user(user.id))
    logger.info(f"User {user.id} logged in")
    return Token(
        access_token=token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

@router.get("/me", response_model=UserRead)
def get_me(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Получить данные текущего пользователя.
    """
    user = get_user(db, principal.user_id)
    if user is None:
        raise AuthError("User not found")
    return user
