import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, delete, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from stockaudit.core.exceptions import NotFoundError, ValidationError
from stockaudit.core.logging import log_user_action
from stockaudit.models.audit.audit_count import AuditCount
from stockaudit.models.schedule.category import Category
from stockaudit.models.schedule.schedule_config import ScheduleConfig
from stockaudit.models.schedule.schedule_history import ScheduleHistory
from stockaudit.models.schedule.schedule_item import ScheduleItem
from stockaudit.models.shared.enums import ScheduleStatus
from stockaudit.schemas.schedule.schedule_item import ScheduleHistoryCreate, ScheduleReschedule, ScheduleStatusUpdate
from stockaudit.services.schedule import schedule_lifecycle

logger = logging.getLogger(__name__)


class ScheduleItemService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _owned_items(self, current_user_id: int):
        return (
            select(ScheduleItem)
            .join(ScheduleConfig, ScheduleConfig.id == ScheduleItem.config_id)
            .options(selectinload(ScheduleItem.category))
            .where(ScheduleConfig.owner_id == current_user_id)
        )

    async def get_schedule_item(self, item_id: int, current_user_id: int) -> ScheduleItem:
        result = await self.db.execute(
            self._owned_items(current_user_id).where(ScheduleItem.id == item_id)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Schedule item not found")
        return item

    async def get_schedule_items(
        self,
        current_user_id: int,
        config_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[ScheduleStatus] = None
    ) -> List[ScheduleItem]:
        """Items of one config, or of every config the user owns, in calendar order"""
        query = self._owned_items(current_user_id)

        conditions = []
        if config_id:
            conditions.append(ScheduleItem.config_id == config_id)
        if date_from:
            conditions.append(ScheduleItem.scheduled_date >= date_from)
        if date_to:
            conditions.append(ScheduleItem.scheduled_date <= date_to)
        if status:
            conditions.append(ScheduleItem.status == status)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(
            query.order_by(ScheduleItem.scheduled_date, ScheduleItem.week_number, ScheduleItem.id)
        )
        return result.scalars().all()

    async def _append_history(self, record: ScheduleHistoryCreate) -> ScheduleHistory:
        history = ScheduleHistory(**record.model_dump())
        self.db.add(history)
        return history

    async def _commit_transition(self, item: ScheduleItem, record: ScheduleHistoryCreate) -> ScheduleItem:
        try:
            await self._append_history(record)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Failed to record transition of schedule item {item.id}")
            raise
        log_user_action(record.actor_id, record.action.value, "schedule_item", item.id, status=ScheduleStatus(item.status).value)
        return await self.get_schedule_item(item.id, record.actor_id)

    async def set_status(self, item_id: int, data: ScheduleStatusUpdate, current_user_id: int) -> ScheduleItem:
        item = await self.get_schedule_item(item_id, current_user_id)

        if data.linked_count_id is not None:
            linked = await self.db.execute(
                select(AuditCount.id).where(and_(
                    AuditCount.id == data.linked_count_id,
                    AuditCount.owner_id == current_user_id,
                    AuditCount.is_deleted == False,
                ))
            )
            if linked.scalar_one_or_none() is None:
                raise ValidationError("Linked audit count not found")

        now = datetime.now(timezone.utc)
        record = schedule_lifecycle.apply_status(
            item,
            data.status,
            actor_id=current_user_id,
            notes=data.notes,
            linked_count_id=data.linked_count_id,
            now=now,
        )
        item.updated_by = current_user_id

        if data.status == ScheduleStatus.COMPLETED:
            category = await self.db.get(Category, item.category_id)
            if category:
                category.last_counted_at = now

        return await self._commit_transition(item, record)

    async def reschedule(self, item_id: int, data: ScheduleReschedule, current_user_id: int) -> ScheduleItem:
        item = await self.get_schedule_item(item_id, current_user_id)
        record = schedule_lifecycle.apply_reschedule(
            item,
            data.new_date,
            actor_id=current_user_id,
            reason=data.reason,
        )
        item.updated_by = current_user_id
        return await self._commit_transition(item, record)

    async def get_history(self, item_id: int, current_user_id: int) -> List[ScheduleHistory]:
        await self.get_schedule_item(item_id, current_user_id)
        result = await self.db.execute(
            select(ScheduleHistory)
            .where(ScheduleHistory.schedule_item_id == item_id)
            .order_by(desc(ScheduleHistory.timestamp), desc(ScheduleHistory.id))
        )
        return result.scalars().all()

    async def delete_schedule_item(self, item_id: int, current_user_id: int) -> bool:
        item = await self.get_schedule_item(item_id, current_user_id)
        try:
            await self.db.execute(delete(ScheduleHistory).where(ScheduleHistory.schedule_item_id == item.id))
            await self.db.execute(delete(ScheduleItem).where(ScheduleItem.id == item.id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        log_user_action(current_user_id, "delete", "schedule_item", item_id)
        return True
