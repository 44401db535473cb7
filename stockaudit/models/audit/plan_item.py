from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from stockaudit.db.base import BaseModel

class PlanItem(BaseModel):
    __tablename__ = 'plan_items'
    __table_args__ = (
        UniqueConstraint('count_id', 'code', name='uq_plan_items_count_code'),
    )

    count_id = Column(Integer, ForeignKey('audit_counts.id', ondelete='CASCADE'), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    display_name = Column(String(255), nullable=False, default="")
    expected_quantity = Column(Integer, nullable=False, default=0)

    # Relationships
    count = relationship("AuditCount", back_populates="plan_items")
