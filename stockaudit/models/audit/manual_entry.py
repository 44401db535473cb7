from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockaudit.db.base import BaseModel

class ManualEntry(BaseModel):
    __tablename__ = 'manual_entries'

    count_id = Column(Integer, ForeignKey('audit_counts.id', ondelete='CASCADE'), nullable=False, index=True)
    code = Column(String(50), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    observed_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    count = relationship("AuditCount", back_populates="entries")
