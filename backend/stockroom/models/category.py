from sqlalchemy import Column, String, Boolean, DateTime, Text

from stockroom.db.base import Base
from stockroom.models._columns import new_id, utcnow


class Category(Base):
    """
    Product category.

    A category cannot be deleted while products reference it; the guard runs
    in the store before the delete is issued, the foreign key backs it up.
    """
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_medicine = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
