from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from stockaudit.db.base import BaseModel

class Category(BaseModel):
    __tablename__ = 'audit_categories'

    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    priority = Column(Integer, nullable=False, default=3)  # 1 (first) .. 5
    color = Column(String(7), nullable=False, default="#3B82F6")
    is_active = Column(Boolean, default=True)
    last_counted_at = Column(DateTime(timezone=True))
