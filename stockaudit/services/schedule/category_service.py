from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func, or_

from stockaudit.core.exceptions import NotFoundError, ValidationError
from stockaudit.core.logging import log_user_action
from stockaudit.models.schedule.category import Category
from stockaudit.schemas.schedule.category import CategoryCreate, CategoryUpdate

class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _name_taken(self, name: str, owner_id: int, exclude_id: Optional[int] = None) -> bool:
        query = select(Category.id).where(and_(
            Category.owner_id == owner_id,
            func.lower(Category.name) == name.lower(),
            Category.is_active == True,
        ))
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_category(self, category_data: CategoryCreate, current_user_id: int) -> Category:
        if await self._name_taken(category_data.name, current_user_id):
            raise ValidationError("Category name already exists")

        category = Category(
            **category_data.model_dump(),
            owner_id=current_user_id,
            is_active=True,
            created_by=current_user_id,
        )

        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        log_user_action(current_user_id, "create", "category", category.id)
        return category

    async def get_category_by_id(self, category_id: int, current_user_id: int) -> Optional[Category]:
        result = await self.db.execute(
            select(Category).where(and_(
                Category.id == category_id,
                Category.owner_id == current_user_id,
                Category.is_deleted == False,
            ))
        )
        return result.scalar_one_or_none()

    async def get_categories(self,
                             current_user_id: int,
                             page_index: int = 1,
                             page_size: int = 100,
                             search: Optional[str] = None,
                             include_inactive: bool = False) -> Dict[str, Any]:
        """Get categories with pagination"""
        query = select(Category).where(and_(
            Category.owner_id == current_user_id,
            Category.is_deleted == False,
        ))
        if not include_inactive:
            query = query.where(Category.is_active == True)

        if search:
            query = query.where(
                or_(
                    Category.name.ilike(f"%{search}%"),
                    Category.description.ilike(f"%{search}%")
                )
            )

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        skip = (page_index - 1) * page_size
        query = query.order_by(Category.priority, Category.name).offset(skip).limit(page_size)
        result = await self.db.execute(query)
        categories = result.scalars().all()

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": categories
        }

    async def get_active_categories(self, current_user_id: int) -> List[Category]:
        """Active categories in schedule order: priority first, then name"""
        result = await self.db.execute(
            select(Category)
            .where(and_(
                Category.owner_id == current_user_id,
                Category.is_active == True,
                Category.is_deleted == False,
            ))
            .order_by(Category.priority, Category.name, Category.id)
        )
        return result.scalars().all()

    async def update_category(self, category_id: int, category_data: CategoryUpdate, current_user_id: int) -> Category:
        category = await self.get_category_by_id(category_id, current_user_id)
        if not category:
            raise NotFoundError("Category not found")

        update_data = category_data.model_dump(exclude_unset=True)

        # Check for duplicate name if name is being changed or category revived
        new_name = update_data.get("name") or category.name
        becomes_active = update_data.get("is_active", category.is_active)
        if becomes_active and (new_name != category.name or not category.is_active):
            if await self._name_taken(new_name, current_user_id, exclude_id=category.id):
                raise ValidationError("Category name already exists")

        for field, value in update_data.items():
            if value is None and field in ("name", "priority", "color", "is_active"):
                continue
            setattr(category, field, value)

        category.updated_by = current_user_id
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: int, current_user_id: int) -> bool:
        category = await self.get_category_by_id(category_id, current_user_id)
        if not category or not category.is_active:
            raise NotFoundError("Category not found")

        # Soft delete: generated schedules keep pointing at it
        category.is_active = False
        category.updated_by = current_user_id
        await self.db.commit()
        log_user_action(current_user_id, "deactivate", "category", category_id)
        return True
