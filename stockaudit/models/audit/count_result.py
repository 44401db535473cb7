from sqlalchemy import Column, Integer, String, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from stockaudit.db.base import BaseModel
from stockaudit.models.shared.enums import ResultStatus

class CountResult(BaseModel):
    __tablename__ = 'count_results'

    count_id = Column(Integer, ForeignKey('audit_counts.id', ondelete='CASCADE'), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    status = Column(SQLEnum(ResultStatus), nullable=False)
    observed_quantity = Column(Integer, nullable=False, default=0)
    expected_quantity = Column(Integer, nullable=False, default=0)
    display_name = Column(String(255), nullable=False, default="")

    # Relationships
    count = relationship("AuditCount", back_populates="results")
