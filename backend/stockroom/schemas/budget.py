from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas._types import as_utc


class BudgetStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"

    @property
    def resulting_status(self) -> BudgetStatus:
        return BudgetStatus.APPROVED if self is Decision.APPROVE else BudgetStatus.REJECTED


class MaterialItem(BaseModel):
    item: str
    quantity: str = ""


class AccountCode(BaseModel):
    code: str
    name: str

    class Config:
        from_attributes = True


class BudgetRequestCreate(BaseModel):
    """
    Form payload. Required fields are checked by BudgetService so a missing
    requester/account/amount is reported before anything is written.
    """
    requester: str = ""
    request_date: Optional[date] = None
    account_code: str = ""
    amount: Optional[float] = None
    note: str = ""
    material_list: List[MaterialItem] = Field(default_factory=list)


class BudgetRequestUpdate(BaseModel):
    requester: Optional[str] = None
    request_date: Optional[date] = None
    account_code: Optional[str] = None
    amount: Optional[float] = None
    note: Optional[str] = None
    material_list: Optional[List[MaterialItem]] = None


class BudgetRequest(BaseModel):
    id: str
    request_no: str
    requester: str
    request_date: date
    account_code: str
    account_name: Optional[str] = None
    amount: float = Field(ge=0)
    note: Optional[str] = None
    material_list: List[MaterialItem] = Field(default_factory=list)
    status: BudgetStatus = BudgetStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class Approval(BaseModel):
    id: str
    request_id: str
    approver_name: str
    decision: BudgetStatus
    remark: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def normalize_timestamps(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
