#taskhub/api/user.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from taskhub.schemas.user import UserShort
from taskhub.crud.user import get_users
from taskhub.dependencies import get_db, get_current_principal
from taskhub.core.security import Principal

router = APIRouter(prefix="/users", tags=["Users"])

@router.get("", response_model=List[UserShort])
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    List users (id, username, email) for assignee pickers.
    """
    return get_users(db)
