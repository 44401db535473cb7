import logging
import random
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, desc, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from stockaudit.core.config import settings
from stockaudit.core.exceptions import NotFoundError, ValidationError
from stockaudit.core.locks import KeyedLockRegistry
from stockaudit.core.logging import log_user_action
from stockaudit.models.schedule.schedule_config import ScheduleConfig
from stockaudit.models.schedule.schedule_history import ScheduleHistory
from stockaudit.models.schedule.schedule_item import ScheduleItem
from stockaudit.models.shared.enums import ScheduleAction
from stockaudit.schemas.schedule.schedule_config import (
    ScheduleCadence, ScheduleConfigCreate, ScheduleConfigUpdate
)
from stockaudit.services.schedule.category_service import CategoryService
from stockaudit.services.schedule.schedule_generator import generate_schedule

logger = logging.getLogger(__name__)


def validate_cadence(categories: Sequence, cadence: ScheduleCadence):
    """Checks the generator itself leaves to its caller."""
    if not categories:
        raise ValidationError(
            "No active categories found. Create at least one category before generating a schedule"
        )
    if len(categories) < cadence.sectors_per_week:
        raise ValidationError(
            f"Need at least {cadence.sectors_per_week} active categories to generate this cadence "
            f"(found {len(categories)})"
        )
    if not cadence.work_days:
        raise ValidationError("Select at least one work day")
    if cadence.sectors_per_week > len(cadence.work_days):
        raise ValidationError(
            f"Sectors per week ({cadence.sectors_per_week}) exceeds the "
            f"{len(cadence.work_days)} selected work day(s)"
        )


class ScheduleConfigService:
    def __init__(
        self,
        db: AsyncSession,
        locks: Optional[KeyedLockRegistry] = None,
        rng: Optional[random.Random] = None
    ):
        self.db = db
        self.locks = locks if locks is not None else KeyedLockRegistry()
        self.rng = rng

    @staticmethod
    def _lock_key(config_id: int) -> str:
        return f"config:{config_id}"

    def _new_rng(self) -> random.Random:
        if self.rng is not None:
            return self.rng
        return random.Random(settings.SCHEDULE_SHUFFLE_SEED)

    async def get_config(self, config_id: int, current_user_id: int) -> ScheduleConfig:
        result = await self.db.execute(
            select(ScheduleConfig).where(and_(
                ScheduleConfig.id == config_id,
                ScheduleConfig.owner_id == current_user_id,
            ))
        )
        config = result.scalar_one_or_none()
        if not config:
            raise NotFoundError("Schedule configuration not found")
        return config

    async def get_configs(self, current_user_id: int, include_inactive: bool = True) -> List[ScheduleConfig]:
        query = select(ScheduleConfig).where(ScheduleConfig.owner_id == current_user_id)
        if not include_inactive:
            query = query.where(ScheduleConfig.is_active == True)
        result = await self.db.execute(
            query.order_by(desc(ScheduleConfig.is_active), desc(ScheduleConfig.created_at), desc(ScheduleConfig.id))
        )
        return result.scalars().all()

    def _check_work_days(self, config_data: ScheduleConfigCreate):
        if not config_data.work_days:
            raise ValidationError("Select at least one work day")
        if config_data.sectors_per_week > len(config_data.work_days):
            raise ValidationError(
                f"Sectors per week ({config_data.sectors_per_week}) exceeds the "
                f"{len(config_data.work_days)} selected work day(s)"
            )

    async def _stage_config(self, config_data: ScheduleConfigCreate, current_user_id: int) -> ScheduleConfig:
        if config_data.is_active:
            await self.db.execute(
                update(ScheduleConfig)
                .where(and_(ScheduleConfig.owner_id == current_user_id, ScheduleConfig.is_active == True))
                .values(is_active=False, updated_by=current_user_id)
            )

        config = ScheduleConfig(
            **config_data.model_dump(),
            owner_id=current_user_id,
            created_by=current_user_id,
        )
        self.db.add(config)
        await self.db.flush()
        return config

    async def _stage_items(self, config: ScheduleConfig, drafts, current_user_id: int):
        """Replace the items of ``config`` with ``drafts``; the caller commits"""
        await self._delete_items(config.id)

        items = [
            ScheduleItem(config_id=config.id, created_by=current_user_id, **draft.model_dump())
            for draft in drafts
        ]
        self.db.add_all(items)
        await self.db.flush()

        self.db.add_all([
            ScheduleHistory(
                schedule_item_id=item.id,
                action=ScheduleAction.CREATED,
                new_date=item.scheduled_date,
                actor_id=current_user_id,
            )
            for item in items
        ])

        config.generated_at = datetime.now(timezone.utc)
        config.updated_by = current_user_id

    async def create_config(self, config_data: ScheduleConfigCreate, current_user_id: int) -> ScheduleConfig:
        """Create a cadence; an active one deactivates the user's other configs"""
        self._check_work_days(config_data)

        try:
            config = await self._stage_config(config_data, current_user_id)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        await self.db.refresh(config)
        log_user_action(current_user_id, "create", "schedule_config", config.id)
        return config

    async def create_and_generate(
        self,
        config_data: ScheduleConfigCreate,
        current_user_id: int
    ) -> Tuple[ScheduleConfig, int]:
        """Create a cadence and its calendar in one transaction.

        Validation runs before anything is written, so a rejected cadence
        leaves the user's existing configs exactly as they were.
        """
        self._check_work_days(config_data)
        categories = await CategoryService(self.db).get_active_categories(current_user_id)
        validate_cadence(categories, config_data)

        drafts = generate_schedule(categories, config_data, rng=self._new_rng())

        try:
            config = await self._stage_config(config_data, current_user_id)
            await self._stage_items(config, drafts, current_user_id)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Failed to create schedule config {config_data.name!r}")
            raise

        await self.db.refresh(config)
        log_user_action(current_user_id, "create", "schedule_config", config.id)
        log_user_action(current_user_id, "generate", "schedule_config", config.id, items=len(drafts))
        return config, len(drafts)

    async def update_config(self, config_id: int, config_data: ScheduleConfigUpdate, current_user_id: int) -> ScheduleConfig:
        config = await self.get_config(config_id, current_user_id)

        for field, value in config_data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(config, field, value)

        config.updated_by = current_user_id
        await self.db.commit()
        await self.db.refresh(config)
        return config

    async def deactivate_config(self, config_id: int, current_user_id: int) -> ScheduleConfig:
        config = await self.get_config(config_id, current_user_id)
        config.is_active = False
        config.updated_by = current_user_id
        await self.db.commit()
        await self.db.refresh(config)
        log_user_action(current_user_id, "deactivate", "schedule_config", config_id)
        return config

    async def _delete_items(self, config_id: int):
        item_ids = select(ScheduleItem.id).where(ScheduleItem.config_id == config_id)
        await self.db.execute(delete(ScheduleHistory).where(ScheduleHistory.schedule_item_id.in_(item_ids)))
        await self.db.execute(delete(ScheduleItem).where(ScheduleItem.config_id == config_id))

    async def delete_config(self, config_id: int, current_user_id: int) -> bool:
        """Hard delete of a config with all its items and their history"""
        config = await self.get_config(config_id, current_user_id)
        async with self.locks.hold(self._lock_key(config_id)):
            try:
                await self._delete_items(config.id)
                await self.db.delete(config)
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                raise
        log_user_action(current_user_id, "delete", "schedule_config", config_id)
        return True

    async def generate(self, config_id: int, current_user_id: int) -> int:
        """(Re)generate the calendar of a config, replacing any previous items"""
        async with self.locks.hold(self._lock_key(config_id)):
            config = await self.get_config(config_id, current_user_id)
            categories = await CategoryService(self.db).get_active_categories(current_user_id)

            cadence = ScheduleCadence(
                sectors_per_week=config.sectors_per_week,
                start_date=config.start_date,
                total_weeks=config.total_weeks,
                work_days=list(config.work_days or []),
            )
            validate_cadence(categories, cadence)

            drafts = generate_schedule(categories, cadence, rng=self._new_rng())

            try:
                await self._stage_items(config, drafts, current_user_id)
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception(f"Failed to generate schedule for config {config_id}")
                raise

        await self.db.refresh(config)

        logger.info(
            f"Generated {len(drafts)} schedule items for config {config_id} "
            f"({cadence.total_weeks} weeks, {len(categories)} categories)"
        )
        log_user_action(current_user_id, "generate", "schedule_config", config_id, items=len(drafts))
        return len(drafts)
