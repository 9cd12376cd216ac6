from sqlalchemy import Column, String, Integer, Numeric, DateTime, Date, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from stockroom.db.base import Base
from stockroom.models._columns import new_id, utcnow


class Product(Base):
    """
    Stocked product.

    current_stock is never negative: movements clamp at zero when they are
    inserted (see SqlTableGateway for the movements table).
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    # No cascade: supplier references are advisory
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)
    current_stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    unit = Column(String(32), nullable=True)
    barcode = Column(String(128), nullable=True, index=True)
    location = Column(String(128), nullable=True)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", backref="products")
    supplier = relationship("Supplier", backref="products")
