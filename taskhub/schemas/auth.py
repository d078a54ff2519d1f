#taskhub/schemas/auth.py
from pydantic import BaseModel, Field

from taskhub.schemas.user import UserRead

class Token(BaseModel):
    """
    Token — access-токен для авторизации.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Тип токена (обычно bearer)")
    expires_in: int = Field(..., description="Время жизни токена (секунды)")

class RegisterResponse(Token):
    """
    RegisterResponse — созданный пользователь + токен.
    """
    user: UserRead
