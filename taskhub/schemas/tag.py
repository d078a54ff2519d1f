#taskhub/schemas/tag.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

class TagCreate(BaseModel):
    name: str = Field(..., max_length=50, description="Имя тега (уникально без учёта регистра)")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Tag name cannot be empty.")
        return v

class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Tag name cannot be empty.")
        return v

class TagRead(BaseModel):
    id: int
    name: str
    created_by: int
    created_by_username: Optional[str] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
