from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from stockaudit.db.base import BaseModel
from stockaudit.models.shared.enums import CountStatus

class AuditCount(BaseModel):
    __tablename__ = 'audit_counts'

    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String(150), nullable=False)
    store_name = Column(String(150))
    status = Column(SQLEnum(CountStatus), nullable=False, default=CountStatus.OPEN)
    finalized_at = Column(DateTime(timezone=True))

    # Relationships
    plan_items = relationship("PlanItem", back_populates="count", cascade="all, delete-orphan")
    entries = relationship("ManualEntry", back_populates="count", cascade="all, delete-orphan")
    results = relationship("CountResult", back_populates="count", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<AuditCount {self.id} {self.name}>"
