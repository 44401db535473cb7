from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime
from stockaudit.core.config import settings
from stockaudit.schemas.audit.plan_item import clean_code

def check_quantity(v: int) -> int:
    if v < 1:
        raise ValueError('Quantity must be at least 1')
    if v > settings.MAX_ENTRY_QUANTITY:
        raise ValueError(f'Quantity must be at most {settings.MAX_ENTRY_QUANTITY}')
    return v

class ManualEntryBase(BaseModel):
    code: str
    quantity: int = 1

class ManualEntryCreate(ManualEntryBase):
    @validator('code')
    def validate_code(cls, v):
        return clean_code(v)

    @validator('quantity')
    def validate_quantity(cls, v):
        return check_quantity(v)

class ManualEntryUpdate(BaseModel):
    code: Optional[str] = None
    quantity: Optional[int] = None

    @validator('code')
    def validate_code(cls, v):
        return clean_code(v) if v is not None else v

    @validator('quantity')
    def validate_quantity(cls, v):
        return check_quantity(v) if v is not None else v

class ManualEntry(ManualEntryBase):
    id: int
    count_id: int
    observed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
