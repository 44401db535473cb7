from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import date, datetime
from stockaudit.core.config import settings

class ScheduleCadence(BaseModel):
    """How many sectors per week, over how many weeks, on which ISO weekdays."""
    sectors_per_week: int = 4
    start_date: date
    total_weeks: int = 4
    work_days: List[int] = [1, 2, 3, 4, 5]

    @validator('sectors_per_week')
    def clamp_sectors_per_week(cls, v):
        return max(1, min(settings.MAX_SECTORS_PER_WEEK, v))

    @validator('total_weeks')
    def clamp_total_weeks(cls, v):
        return max(1, min(settings.MAX_TOTAL_WEEKS, v))

    @validator('work_days')
    def validate_work_days(cls, v):
        for day in v:
            if day < 1 or day > 7:
                raise ValueError('Work days must be between 1 (Monday) and 7 (Sunday)')
        return sorted(set(v))

class ScheduleConfigCreate(ScheduleCadence):
    name: str
    description: Optional[str] = None
    is_active: bool = True

    @validator('name')
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError('Name is required')
        if len(v) > 100:
            raise ValueError('Name must be at most 100 characters')
        return v

class ScheduleConfigUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

class ScheduleConfig(ScheduleCadence):
    id: int
    owner_id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ScheduleGenerationResult(BaseModel):
    config: ScheduleConfig
    items_created: int
