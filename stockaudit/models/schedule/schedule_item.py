from sqlalchemy import Column, Integer, DateTime, Text, Date, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from stockaudit.db.base import BaseModel
from stockaudit.models.shared.enums import ScheduleStatus

class ScheduleItem(BaseModel):
    __tablename__ = 'schedule_items'

    config_id = Column(Integer, ForeignKey('schedule_configs.id', ondelete='CASCADE'), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey('audit_categories.id'), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 1=Mon .. 7=Sun
    status = Column(SQLEnum(ScheduleStatus), nullable=False, default=ScheduleStatus.PENDING)
    linked_count_id = Column(Integer, ForeignKey('audit_counts.id', ondelete='SET NULL'))
    notes = Column(Text)
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    config = relationship("ScheduleConfig", back_populates="items")
    category = relationship("Category")
    history = relationship("ScheduleHistory", back_populates="schedule_item", cascade="all, delete-orphan")
