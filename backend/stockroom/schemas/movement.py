from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas._types import as_utc


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"


class StockMovementCreate(BaseModel):
    product_id: str
    type: MovementType
    quantity: int = Field(gt=0)
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None


class StockMovement(BaseModel):
    id: str
    product_id: str
    type: MovementType
    quantity: int = Field(gt=0)
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    created_by: Optional[str] = None
    # Joined, read-only
    product_name: Optional[str] = None
    product_sku: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
