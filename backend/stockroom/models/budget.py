"""
Budget requests and their approvals.

Status flow: PENDING -> APPROVED | REJECTED, exactly once. The decision is
made through the emailed approve/reject links and recorded as one Approval
row per request (unique request_id).
"""
from sqlalchemy import Column, String, Numeric, DateTime, Date, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from stockroom.db.base import Base
from stockroom.models._columns import new_id, utcnow


class AccountCode(Base):
    __tablename__ = "account_codes"

    code = Column(String(32), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class BudgetRequest(Base):
    __tablename__ = "budget_requests"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_budget_requests_amount_non_negative"),
        CheckConstraint("status IN ('PENDING', 'APPROVED', 'REJECTED')", name="ck_budget_requests_status"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    request_no = Column(String(32), nullable=False, unique=True)
    requester = Column(String(255), nullable=False)
    request_date = Column(Date, nullable=False)
    account_code = Column(String(32), ForeignKey("account_codes.code"), nullable=False)
    account_name = Column(String(255), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    note = Column(Text, nullable=True)
    material_list = Column(JSON, nullable=False, default=list)  # [{"item": ..., "quantity": ...}]
    status = Column(String(16), nullable=False, default="PENDING")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Approval(Base):
    __tablename__ = "approvals"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("budget_requests.id", ondelete="CASCADE"), nullable=False, unique=True)
    approver_name = Column(String(255), nullable=False)
    decision = Column(String(16), nullable=False)  # APPROVED | REJECTED
    remark = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    request = relationship("BudgetRequest", backref="approvals")
