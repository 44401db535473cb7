import re
from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime
from stockaudit.core.config import settings

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

def clamp_priority(v: Optional[int]) -> int:
    if v is None:
        return settings.DEFAULT_CATEGORY_PRIORITY
    return max(1, min(5, v))

def check_color(v: str) -> str:
    v = (v or "").strip()
    if not HEX_COLOR.match(v):
        raise ValueError('Color must be a hex value like #3B82F6')
    return v.upper()

def check_name(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError('Category name is required')
    if len(v) > 100:
        raise ValueError('Category name must be at most 100 characters')
    return v

class CategoryBase(BaseModel):
    name: str
    description: Optional[str] = None
    priority: int = settings.DEFAULT_CATEGORY_PRIORITY
    color: str = settings.DEFAULT_CATEGORY_COLOR

class CategoryCreate(CategoryBase):
    @validator('name')
    def validate_name(cls, v):
        return check_name(v)

    @validator('priority')
    def validate_priority(cls, v):
        return clamp_priority(v)

    @validator('color')
    def validate_color(cls, v):
        return check_color(v)

    @validator('description')
    def validate_description(cls, v):
        return (v.strip() or None) if v is not None else v

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None

    @validator('name')
    def validate_name(cls, v):
        return check_name(v) if v is not None else v

    @validator('priority')
    def validate_priority(cls, v):
        return clamp_priority(v) if v is not None else v

    @validator('color')
    def validate_color(cls, v):
        return check_color(v) if v is not None else v

class Category(CategoryBase):
    id: int
    owner_id: int
    is_active: Optional[bool] = None
    last_counted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Shallow reference embedded in schedule items
class CategoryRef(BaseModel):
    id: int
    name: str
    color: str

    class Config:
        from_attributes = True
