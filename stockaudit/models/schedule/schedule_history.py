from sqlalchemy import Column, Integer, String, DateTime, Text, Date, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockaudit.models.base import Base
from stockaudit.models.shared.enums import ScheduleAction

class ScheduleHistory(Base):
    """Append-only trail of schedule item transitions."""
    __tablename__ = 'schedule_history'

    id = Column(Integer, primary_key=True, index=True)
    schedule_item_id = Column(Integer, ForeignKey('schedule_items.id', ondelete='CASCADE'), nullable=False, index=True)
    action = Column(SQLEnum(ScheduleAction), nullable=False)
    old_date = Column(Date)
    new_date = Column(Date)
    reason = Column(Text)
    actor_id = Column(Integer, nullable=False)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    schedule_item = relationship("ScheduleItem", back_populates="history")

    def __repr__(self):
        return f"<ScheduleHistory {self.action} on item {self.schedule_item_id}>"
