#taskhub/schemas/response.py
from pydantic import BaseModel, Field
from typing import Any, Optional

class ErrorDetail(BaseModel):
    """
    ErrorDetail — детальное описание ошибки (код, сообщение, детали).
    """
    code: str = Field(..., description="Код ошибки (VALIDATION, NOT_FOUND_OR_FORBIDDEN, ...)")
    message: str = Field(..., description="Сообщение об ошибке")
    details: Optional[Any] = Field(None, description="Дополнительные детали (ошибки по полям)")

class ErrorResponse(BaseModel):
    """
    ErrorResponse — стандартная структура для ошибки.
    """
    error: ErrorDetail

class SuccessResponse(BaseModel):
    """
    SuccessResponse — универсальный ответ с результатом выполнения операции.
    """
    result: Any = Field(..., description="Результат запроса (обычно id)")
    detail: Optional[str] = Field(None, description="Дополнительная информация")
