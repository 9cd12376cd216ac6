from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from stockroom.db.base import Base
from stockroom.models._columns import new_id, utcnow


class Movement(Base):
    """Stock in/out transaction. Immutable once written."""
    __tablename__ = "movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        CheckConstraint("type IN ('in', 'out')", name="ck_movements_type"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(8), nullable=False)  # in | out
    quantity = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    created_by = Column(String(255), nullable=True)

    product = relationship("Product", backref="movements")
