from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
from stockaudit.core.config import settings

def clean_code(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError('Product code cannot be empty')
    if len(v) > settings.MAX_CODE_LENGTH:
        raise ValueError(f'Product code must be at most {settings.MAX_CODE_LENGTH} characters')
    return v

class PlanItemBase(BaseModel):
    code: str
    display_name: str = ""
    expected_quantity: int = Field(0, ge=0)

class PlanItemCreate(PlanItemBase):
    @validator('code')
    def validate_code(cls, v):
        return clean_code(v)

    @validator('display_name', pre=True)
    def validate_display_name(cls, v):
        return str(v or "").strip()

class PlanItem(PlanItemBase):
    id: int
    count_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PlanReplaceResponse(BaseModel):
    count_id: int
    items_saved: int
