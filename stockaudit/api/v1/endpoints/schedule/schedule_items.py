from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
from stockaudit.api.dependencies import get_current_user_id, get_schedule_item_service
from stockaudit.core.exceptions import ValidationError
from stockaudit.models.shared.enums import ScheduleStatus
from stockaudit.schemas.schedule.schedule_item import (
    ScheduleHistory, ScheduleItem, ScheduleReschedule, ScheduleStatusUpdate
)
from stockaudit.services.schedule.schedule_item_service import ScheduleItemService

router = APIRouter()

@router.get("/", response_model=List[ScheduleItem])
async def get_schedule_items(
    config_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    item_status: Optional[ScheduleStatus] = Query(None, alias="status"),
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Scheduled counts in calendar order"""
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")
    return await service.get_schedule_items(
        current_user_id,
        config_id=config_id,
        date_from=date_from,
        date_to=date_to,
        status=item_status
    )

@router.get("/{item_id}", response_model=ScheduleItem)
async def get_schedule_item(
    item_id: int,
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_schedule_item(item_id, current_user_id)

@router.post("/{item_id}/status", response_model=ScheduleItem)
async def set_item_status(
    item_id: int,
    data: ScheduleStatusUpdate,
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Mark an item completed or skipped, or reopen it"""
    try:
        return await service.set_status(item_id, data, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.post("/{item_id}/reschedule", response_model=ScheduleItem)
async def reschedule_item(
    item_id: int,
    data: ScheduleReschedule,
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    try:
        return await service.reschedule(item_id, data, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/{item_id}/history", response_model=List[ScheduleHistory])
async def get_item_history(
    item_id: int,
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Append-only change log of an item, newest first"""
    return await service.get_history(item_id, current_user_id)

@router.delete("/{item_id}")
async def delete_schedule_item(
    item_id: int,
    service: ScheduleItemService = Depends(get_schedule_item_service),
    current_user_id: int = Depends(get_current_user_id)
):
    await service.delete_schedule_item(item_id, current_user_id)
    return {"message": "Schedule item deleted successfully"}
