from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List
from stockaudit.api.dependencies import get_current_user_id, get_schedule_config_service
from stockaudit.core.exceptions import ValidationError
from stockaudit.schemas.schedule.schedule_config import (
    ScheduleConfig, ScheduleConfigCreate, ScheduleConfigUpdate, ScheduleGenerationResult
)
from stockaudit.services.schedule.schedule_config_service import ScheduleConfigService

router = APIRouter()

@router.post("/", response_model=ScheduleGenerationResult, status_code=status.HTTP_201_CREATED)
async def create_config(
    config_data: ScheduleConfigCreate,
    generate: bool = Query(False, description="Generate the calendar right away"),
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Create a schedule configuration, optionally generating its items"""
    try:
        if generate:
            config, items_created = await service.create_and_generate(config_data, current_user_id)
        else:
            config = await service.create_config(config_data, current_user_id)
            items_created = 0
        return ScheduleGenerationResult(
            config=ScheduleConfig.model_validate(config),
            items_created=items_created
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/", response_model=List[ScheduleConfig])
async def get_configs(
    include_inactive: bool = Query(True),
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_configs(current_user_id, include_inactive)

@router.get("/{config_id}", response_model=ScheduleConfig)
async def get_config(
    config_id: int,
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_config(config_id, current_user_id)

@router.put("/{config_id}", response_model=ScheduleConfig)
async def update_config(
    config_id: int,
    config_data: ScheduleConfigUpdate,
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Rename or re-describe a configuration; cadence changes need a new config"""
    return await service.update_config(config_id, config_data, current_user_id)

@router.post("/{config_id}/generate", response_model=ScheduleGenerationResult)
async def generate_schedule(
    config_id: int,
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Regenerate the calendar, replacing existing items and their history"""
    try:
        items_created = await service.generate(config_id, current_user_id)
        config = await service.get_config(config_id, current_user_id)
        return ScheduleGenerationResult(
            config=ScheduleConfig.model_validate(config),
            items_created=items_created
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.post("/{config_id}/deactivate", response_model=ScheduleConfig)
async def deactivate_config(
    config_id: int,
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.deactivate_config(config_id, current_user_id)

@router.delete("/{config_id}")
async def delete_config(
    config_id: int,
    service: ScheduleConfigService = Depends(get_schedule_config_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Delete a configuration with all its items and history"""
    await service.delete_config(config_id, current_user_id)
    return {"message": "Schedule configuration deleted successfully"}
