from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from stockaudit.models.shared.enums import ScheduleAction, ScheduleStatus
from stockaudit.schemas.schedule.category import CategoryRef

class ScheduleItemDraft(BaseModel):
    """One generated (date, category) assignment, not yet persisted."""
    category_id: int
    scheduled_date: date
    week_number: int
    day_of_week: int
    status: ScheduleStatus = ScheduleStatus.PENDING

class ScheduleItem(ScheduleItemDraft):
    id: int
    config_id: int
    linked_count_id: Optional[int] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    category: Optional[CategoryRef] = None

    class Config:
        from_attributes = True

class ScheduleStatusUpdate(BaseModel):
    status: ScheduleStatus
    notes: Optional[str] = None
    linked_count_id: Optional[int] = None

class ScheduleReschedule(BaseModel):
    new_date: date
    reason: Optional[str] = None

class ScheduleHistory(BaseModel):
    id: int
    schedule_item_id: int
    action: ScheduleAction
    old_date: Optional[date] = None
    new_date: Optional[date] = None
    reason: Optional[str] = None
    actor_id: int
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True

class ScheduleHistoryCreate(BaseModel):
    schedule_item_id: int
    action: ScheduleAction
    old_date: Optional[date] = None
    new_date: Optional[date] = None
    reason: Optional[str] = None
    actor_id: int
