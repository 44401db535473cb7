import random
from typing import Optional
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from stockaudit.core.database import get_async_session
from stockaudit.core.exceptions import InvalidIdentifierError
from stockaudit.core.locks import KeyedLockRegistry
from stockaudit.services.audit.count_service import CountService
from stockaudit.services.schedule.category_service import CategoryService
from stockaudit.services.schedule.schedule_config_service import ScheduleConfigService
from stockaudit.services.schedule.schedule_item_service import ScheduleItemService


HDR_USER_ID = "X-User-Id"

async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias=HDR_USER_ID)
) -> int:
    """Acting user id, resolved upstream by the auth gateway"""
    if x_user_id is None or not x_user_id.strip():
        raise InvalidIdentifierError(f"Missing {HDR_USER_ID} header")
    try:
        user_id = int(x_user_id.strip())
    except ValueError:
        raise InvalidIdentifierError(f"Malformed {HDR_USER_ID} header")
    if user_id <= 0:
        raise InvalidIdentifierError(f"Malformed {HDR_USER_ID} header")
    return user_id

def get_lock_registry(request: Request) -> KeyedLockRegistry:
    return request.app.state.locks

def get_schedule_rng(request: Request) -> Optional[random.Random]:
    return getattr(request.app.state, "schedule_rng", None)

def get_count_service(
    db: AsyncSession = Depends(get_async_session),
    locks: KeyedLockRegistry = Depends(get_lock_registry)
) -> CountService:
    return CountService(db, locks)

def get_category_service(db: AsyncSession = Depends(get_async_session)) -> CategoryService:
    return CategoryService(db)

def get_schedule_config_service(
    db: AsyncSession = Depends(get_async_session),
    locks: KeyedLockRegistry = Depends(get_lock_registry),
    rng: Optional[random.Random] = Depends(get_schedule_rng)
) -> ScheduleConfigService:
    return ScheduleConfigService(db, locks, rng)

def get_schedule_item_service(db: AsyncSession = Depends(get_async_session)) -> ScheduleItemService:
    return ScheduleItemService(db)
