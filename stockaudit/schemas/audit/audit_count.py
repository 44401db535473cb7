from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime
from stockaudit.models.shared.enums import CountStatus

class AuditCountBase(BaseModel):
    name: str
    store_name: Optional[str] = None

class AuditCountCreate(AuditCountBase):
    @validator('name')
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError('Count name is required')
        if len(v) > 150:
            raise ValueError('Count name must be at most 150 characters')
        return v

    @validator('store_name')
    def validate_store_name(cls, v):
        if v is None:
            return v
        return v.strip() or None

class AuditCount(AuditCountBase):
    id: int
    owner_id: int
    status: CountStatus
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CountTotals(BaseModel):
    """Code/unit totals for the plan sheet versus what was keyed in."""
    plan_codes: int = 0
    plan_units: int = 0
    entry_codes: int = 0
    entry_units: int = 0

class CountSummary(CountTotals):
    count_id: int
    regular: int = 0
    excess: int = 0
    shortage: int = 0
    # planned codes with 0 < observed != expected; left out of the results
    unclassified: int = 0

class RecentCountTotals(BaseModel):
    count_id: int
    name: str
    created_at: Optional[datetime] = None
    regular: int = 0
    excess: int = 0
    shortage: int = 0
