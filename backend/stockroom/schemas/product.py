from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas._types import as_utc


class StockLevel(str, Enum):
    OUT = "out"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProductCreate(BaseModel):
    name: str
    sku: str
    description: Optional[str] = None
    category_id: str
    supplier_id: Optional[str] = None
    current_stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    unit_price: float = Field(0, ge=0)
    unit: Optional[str] = None
    barcode: Optional[str] = None
    location: Optional[str] = None
    expiry_date: Optional[date] = None

    @field_validator("name", "sku")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None
    current_stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = None
    barcode: Optional[str] = None
    location: Optional[str] = None
    expiry_date: Optional[date] = None


class Product(BaseModel):
    id: str
    name: str
    sku: str
    description: Optional[str] = None
    category_id: str
    supplier_id: Optional[str] = None
    current_stock: int = Field(ge=0)
    min_stock: int = 0
    max_stock: Optional[int] = None
    unit_price: float = Field(ge=0)
    unit: Optional[str] = None
    barcode: Optional[str] = None
    location: Optional[str] = None
    expiry_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Joined, read-only
    category_name: Optional[str] = None
    supplier_name: Optional[str] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class StockFilter(BaseModel):
    """All predicates optional; set ones are ANDed."""
    search_term: Optional[str] = None
    category: Optional[str] = None
    supplier: Optional[str] = None
    stock_level: Optional[StockLevel] = None
