from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from typing import List, Optional
from stockaudit.api.dependencies import get_count_service, get_current_user_id
from stockaudit.core.config import settings
from stockaudit.core.exceptions import ValidationError
from stockaudit.models.shared.enums import ExportFormat, ResultStatus
from stockaudit.schemas.audit.audit_count import AuditCount, AuditCountCreate, CountSummary, RecentCountTotals
from stockaudit.schemas.audit.count_result import CountResult
from stockaudit.schemas.audit.manual_entry import ManualEntry, ManualEntryCreate, ManualEntryUpdate
from stockaudit.schemas.audit.plan_item import PlanItem, PlanItemCreate, PlanReplaceResponse
from stockaudit.schemas.common.pagination import PaginatedResponse
from stockaudit.services.audit.count_service import CountService
from stockaudit.utils.data_exporter import DataExportService

router = APIRouter()

@router.post("/", response_model=AuditCount, status_code=status.HTTP_201_CREATED)
async def create_count(
    count_data: AuditCountCreate,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Open a new audit count session"""
    return await service.create_count(count_data, current_user_id)

@router.get("/", response_model=PaginatedResponse[AuditCount])
async def get_counts(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_counts(current_user_id, page_index, page_size, search)

@router.get("/recent-totals", response_model=List[RecentCountTotals])
async def get_recent_totals(
    limit: int = Query(settings.RECENT_TOTALS_LIMIT, ge=1, le=50),
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Per-status result totals of the most recent counts"""
    return await service.get_recent_totals(current_user_id, limit)

@router.patch("/entries/{entry_id}", response_model=ManualEntry)
async def update_entry(
    entry_id: int,
    changes: ManualEntryUpdate,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    try:
        return await service.update_entry(entry_id, changes, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.delete("/entries/{entry_id}")
async def delete_entry(
    entry_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    try:
        await service.delete_entry(entry_id, current_user_id)
        return {"message": "Entry deleted successfully"}
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/{count_id}", response_model=AuditCount)
async def get_count(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_count(count_id, current_user_id)

@router.delete("/{count_id}")
async def delete_count(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Delete a count with its plan, entries and results"""
    await service.delete_count(count_id, current_user_id)
    return {"message": "Audit count deleted successfully"}

@router.get("/{count_id}/summary", response_model=CountSummary)
async def get_count_summary(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_count_summary(count_id, current_user_id)

# Plan

@router.get("/{count_id}/plan", response_model=List[PlanItem])
async def get_plan(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_plan_items(count_id, current_user_id)

@router.put("/{count_id}/plan", response_model=PlanReplaceResponse)
async def replace_plan(
    count_id: int,
    items: List[PlanItemCreate],
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Replace the whole plan sheet of a count"""
    try:
        saved = await service.replace_plan(count_id, items, current_user_id)
        return PlanReplaceResponse(count_id=count_id, items_saved=saved)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.post("/{count_id}/plan/upload", response_model=PlanReplaceResponse)
async def upload_plan(
    count_id: int,
    file: UploadFile = File(...),
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Replace the plan from an xlsx/csv sheet: code, name, balance columns"""
    try:
        content = await file.read()
        saved = await service.import_plan_file(count_id, file.filename or "", content, current_user_id)
        return PlanReplaceResponse(count_id=count_id, items_saved=saved)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

# Entries

@router.get("/{count_id}/entries", response_model=List[ManualEntry])
async def list_entries(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.list_entries(count_id, current_user_id)

@router.post("/{count_id}/entries", response_model=ManualEntry, status_code=status.HTTP_201_CREATED)
async def add_entry(
    count_id: int,
    entry_data: ManualEntryCreate,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    try:
        return await service.add_entry(count_id, entry_data, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

# Results

@router.post("/{count_id}/finalize", response_model=List[CountResult])
async def finalize_count(
    count_id: int,
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Reconcile plan against entries and replace the stored results"""
    try:
        return await service.finalize_count(count_id, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/{count_id}/results", response_model=List[CountResult])
async def get_results(
    count_id: int,
    result_status: Optional[ResultStatus] = Query(None, alias="status"),
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    return await service.get_results(count_id, current_user_id, result_status)

@router.get("/{count_id}/results/export")
async def export_results(
    count_id: int,
    fmt: ExportFormat = Query(ExportFormat.XLSX),
    service: CountService = Depends(get_count_service),
    current_user_id: int = Depends(get_current_user_id)
):
    count = await service.get_count(count_id, current_user_id)
    results = await service.get_results(count_id, current_user_id)
    return DataExportService().export_results(results, count.name, fmt)
