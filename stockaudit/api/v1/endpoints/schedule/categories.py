from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
from stockaudit.api.dependencies import get_category_service, get_current_user_id
from stockaudit.schemas.common.pagination import PaginatedResponse
from stockaudit.services.schedule.category_service import CategoryService
from stockaudit.schemas.schedule.category import Category, CategoryCreate, CategoryUpdate
from stockaudit.core.exceptions import NotFoundError, ValidationError

router = APIRouter()

@router.post("/", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Create a new audit category (sector)"""
    try:
        return await service.create_category(category_data, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/", response_model=PaginatedResponse[Category])
async def get_categories(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    service: CategoryService = Depends(get_category_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Get categories in schedule order with optional search"""
    return await service.get_categories(
        current_user_id,
        page_index=page_index,
        page_size=page_size,
        search=search,
        include_inactive=include_inactive
    )

@router.get("/{category_id}", response_model=Category)
async def get_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    current_user_id: int = Depends(get_current_user_id)
):
    category = await service.get_category_by_id(category_id, current_user_id)
    if not category:
        raise NotFoundError("Category not found")
    return category

@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
    current_user_id: int = Depends(get_current_user_id)
):
    try:
        return await service.update_category(category_id, category_data, current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """Deactivate category (soft delete)"""
    await service.delete_category(category_id, current_user_id)
    return {"message": "Category deleted successfully"}
