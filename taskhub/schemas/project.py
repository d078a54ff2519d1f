#taskhub/schemas/project.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class ProjectCreate(BaseModel):
    """
    ProjectCreate — схема для создания проекта. created_by выставляется на сервере.
    """
    name: str = Field(..., min_length=1, max_length=128, description="Название проекта")
    description: Optional[str] = Field(None, description="Описание")

class ProjectUpdate(BaseModel):
    """
    ProjectUpdate — частичное обновление: не переданные поля не меняются.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = None

class ProjectRead(BaseModel):
    """
    ProjectRead — полный вывод проекта (response и payload событий).
    """
    id: int
    name: str
    description: Optional[str] = None
    created_by: int
    created_by_username: Optional[str] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
