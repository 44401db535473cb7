from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Date, JSON
from sqlalchemy.orm import relationship
from stockaudit.db.base import BaseModel

class ScheduleConfig(BaseModel):
    __tablename__ = 'schedule_configs'

    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    sectors_per_week = Column(Integer, nullable=False, default=4)
    start_date = Column(Date, nullable=False)
    total_weeks = Column(Integer, nullable=False, default=4)
    work_days = Column(JSON, nullable=False, default=lambda: [1, 2, 3, 4, 5])  # ISO weekdays, Monday=1
    is_active = Column(Boolean, default=True)
    generated_at = Column(DateTime(timezone=True))

    # Relationships
    items = relationship("ScheduleItem", back_populates="config", cascade="all, delete-orphan")
