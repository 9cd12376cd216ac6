from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from stockroom.schemas._types import as_utc


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_medicine: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category name cannot be empty")
        return v.strip()


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_medicine: Optional[bool] = None


class Category(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_medicine: bool = False
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
