import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, desc, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from stockaudit.core.config import settings
from stockaudit.core.exceptions import DuplicateCodeError, NotFoundError, ValidationError
from stockaudit.core.locks import KeyedLockRegistry
from stockaudit.core.logging import log_user_action
from stockaudit.models.audit.audit_count import AuditCount
from stockaudit.models.audit.count_result import CountResult
from stockaudit.models.audit.manual_entry import ManualEntry
from stockaudit.models.audit.plan_item import PlanItem
from stockaudit.models.schedule.schedule_item import ScheduleItem
from stockaudit.models.shared.enums import CountStatus, ResultStatus
from stockaudit.schemas.audit.audit_count import AuditCountCreate, CountSummary, RecentCountTotals
from stockaudit.schemas.audit.manual_entry import ManualEntryCreate, ManualEntryUpdate
from stockaudit.schemas.audit.plan_item import PlanItemCreate
from stockaudit.services.audit import reconciliation_engine
from stockaudit.services.audit.plan_parser import find_duplicate_codes, parse_plan_file

logger = logging.getLogger(__name__)


class CountService:
    """Audit counts with their plan sheet, manual entries and reconciled results.

    Every write to a count's plan, entries or results holds the ``count:<id>``
    lock so finalization always reads a plan/entry snapshot nobody is changing.
    """

    def __init__(self, db: AsyncSession, locks: Optional[KeyedLockRegistry] = None):
        self.db = db
        self.locks = locks if locks is not None else KeyedLockRegistry()

    @staticmethod
    def _lock_key(count_id: int) -> str:
        return f"count:{count_id}"

    # region Counts

    async def create_count(self, count_data: AuditCountCreate, current_user_id: int) -> AuditCount:
        count = AuditCount(
            owner_id=current_user_id,
            name=count_data.name,
            store_name=count_data.store_name,
            status=CountStatus.OPEN,
            created_by=current_user_id,
        )
        self.db.add(count)
        await self.db.commit()
        await self.db.refresh(count)
        log_user_action(current_user_id, "create", "audit_count", count.id)
        return count

    async def get_count(self, count_id: int, current_user_id: int) -> AuditCount:
        result = await self.db.execute(
            select(AuditCount).where(and_(
                AuditCount.id == count_id,
                AuditCount.owner_id == current_user_id,
                AuditCount.is_deleted == False,
            ))
        )
        count = result.scalar_one_or_none()
        if not count:
            raise NotFoundError("Audit count not found")
        return count

    async def get_counts(
        self,
        current_user_id: int,
        page_index: int = 1,
        page_size: int = 10,
        search: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get the user's counts, newest first, with pagination"""
        query = select(AuditCount).where(and_(
            AuditCount.owner_id == current_user_id,
            AuditCount.is_deleted == False,
        ))
        if search:
            query = query.where(AuditCount.name.ilike(f"%{search}%"))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        skip = (page_index - 1) * page_size
        query = query.order_by(desc(AuditCount.created_at), desc(AuditCount.id)).offset(skip).limit(page_size)
        counts = (await self.db.execute(query)).scalars().all()

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": counts
        }

    async def delete_count(self, count_id: int, current_user_id: int) -> bool:
        count = await self.get_count(count_id, current_user_id)
        async with self.locks.hold(self._lock_key(count_id)):
            try:
                await self.db.execute(delete(CountResult).where(CountResult.count_id == count.id))
                await self.db.execute(delete(ManualEntry).where(ManualEntry.count_id == count.id))
                await self.db.execute(delete(PlanItem).where(PlanItem.count_id == count.id))
                await self.db.execute(
                    update(ScheduleItem)
                    .where(ScheduleItem.linked_count_id == count.id)
                    .values(linked_count_id=None)
                )
                await self.db.delete(count)
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                raise
        log_user_action(current_user_id, "delete", "audit_count", count_id)
        return True

    # endregion

    # region Plan

    async def get_plan_items(self, count_id: int, current_user_id: int) -> List[PlanItem]:
        await self.get_count(count_id, current_user_id)
        result = await self.db.execute(
            select(PlanItem).where(PlanItem.count_id == count_id).order_by(PlanItem.id)
        )
        return result.scalars().all()

    async def replace_plan(self, count_id: int, items: List[PlanItemCreate], current_user_id: int) -> int:
        """Swap the whole plan sheet of a count. The old plan survives any failure."""
        if not items:
            raise ValidationError("Plan cannot be empty")

        duplicates = find_duplicate_codes(items)
        if duplicates:
            raise DuplicateCodeError(duplicates)

        count = await self.get_count(count_id, current_user_id)
        async with self.locks.hold(self._lock_key(count_id)):
            try:
                await self.db.execute(delete(PlanItem).where(PlanItem.count_id == count.id))
                self.db.add_all([
                    PlanItem(
                        count_id=count.id,
                        code=item.code,
                        display_name=item.display_name,
                        expected_quantity=item.expected_quantity,
                        created_by=current_user_id,
                    )
                    for item in items
                ])
                count.updated_by = current_user_id
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception(f"Failed to replace plan of count {count_id}")
                raise

        logger.info(f"Plan of count {count_id} replaced with {len(items)} items")
        log_user_action(current_user_id, "replace_plan", "audit_count", count_id, items=len(items))
        return len(items)

    async def import_plan_file(self, count_id: int, filename: str, content: bytes, current_user_id: int) -> int:
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(
                f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
            )
        # fail on unknown counts before parsing
        await self.get_count(count_id, current_user_id)
        items = parse_plan_file(filename, content)
        return await self.replace_plan(count_id, items, current_user_id)

    # endregion

    # region Manual entries

    async def list_entries(self, count_id: int, current_user_id: int) -> List[ManualEntry]:
        """Entries of a count, most recent first"""
        await self.get_count(count_id, current_user_id)
        result = await self.db.execute(
            select(ManualEntry)
            .where(ManualEntry.count_id == count_id)
            .order_by(desc(ManualEntry.observed_at), desc(ManualEntry.id))
        )
        return result.scalars().all()

    async def add_entry(self, count_id: int, entry_data: ManualEntryCreate, current_user_id: int) -> ManualEntry:
        count = await self.get_count(count_id, current_user_id)
        async with self.locks.hold(self._lock_key(count_id)):
            entry = ManualEntry(
                count_id=count.id,
                code=entry_data.code,
                quantity=entry_data.quantity,
                created_by=current_user_id,
            )
            self.db.add(entry)
            await self.db.commit()
            await self.db.refresh(entry)
        return entry

    async def _get_owned_entry(self, entry_id: int, current_user_id: int) -> ManualEntry:
        result = await self.db.execute(
            select(ManualEntry)
            .join(AuditCount, AuditCount.id == ManualEntry.count_id)
            .where(and_(
                ManualEntry.id == entry_id,
                AuditCount.owner_id == current_user_id,
                AuditCount.is_deleted == False,
            ))
        )
        entry = result.scalar_one_or_none()
        if not entry:
            raise NotFoundError("Manual entry not found")
        return entry

    async def update_entry(self, entry_id: int, changes: ManualEntryUpdate, current_user_id: int) -> ManualEntry:
        entry = await self._get_owned_entry(entry_id, current_user_id)
        update_data = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("Nothing to update")

        async with self.locks.hold(self._lock_key(entry.count_id)):
            for field, value in update_data.items():
                setattr(entry, field, value)
            entry.updated_by = current_user_id
            await self.db.commit()
            await self.db.refresh(entry)
        return entry

    async def delete_entry(self, entry_id: int, current_user_id: int) -> bool:
        entry = await self._get_owned_entry(entry_id, current_user_id)
        async with self.locks.hold(self._lock_key(entry.count_id)):
            await self.db.delete(entry)
            await self.db.commit()
        return True

    # endregion

    # region Reconciliation

    async def _load_snapshot(self, count_id: int):
        plan = (await self.db.execute(
            select(PlanItem).where(PlanItem.count_id == count_id).order_by(PlanItem.id)
        )).scalars().all()
        entries = (await self.db.execute(
            select(ManualEntry).where(ManualEntry.count_id == count_id).order_by(ManualEntry.id)
        )).scalars().all()
        return plan, entries

    async def finalize_count(self, count_id: int, current_user_id: int) -> List[CountResult]:
        """Reconcile plan against entries and replace the stored results of the count."""
        count = await self.get_count(count_id, current_user_id)

        async with self.locks.hold(self._lock_key(count_id)):
            try:
                plan, entries = await self._load_snapshot(count.id)
                rows = reconciliation_engine.reconcile(plan, entries)

                await self.db.execute(delete(CountResult).where(CountResult.count_id == count.id))
                results = [
                    CountResult(
                        count_id=count.id,
                        code=row.code,
                        status=row.status,
                        observed_quantity=row.observed_quantity,
                        expected_quantity=row.expected_quantity,
                        display_name=row.display_name,
                        created_by=current_user_id,
                    )
                    for row in rows
                ]
                self.db.add_all(results)

                count.status = CountStatus.FINALIZED
                count.finalized_at = datetime.now(timezone.utc)
                count.updated_by = current_user_id
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception(f"Failed to finalize count {count_id}")
                raise

        unclassified = reconciliation_engine.unclassified_codes(plan, entries)
        if unclassified:
            logger.info(
                f"Count {count_id}: {len(unclassified)} partially matched codes left out of results"
            )
        log_user_action(current_user_id, "finalize", "audit_count", count_id, unclassified=len(unclassified))
        return await self._fetch_results(count_id)

    async def get_results(self, count_id: int, current_user_id: int, status: Optional[ResultStatus] = None) -> List[CountResult]:
        await self.get_count(count_id, current_user_id)
        return await self._fetch_results(count_id, status)

    async def _fetch_results(self, count_id: int, status: Optional[ResultStatus] = None) -> List[CountResult]:
        query = select(CountResult).where(CountResult.count_id == count_id)
        if status:
            query = query.where(CountResult.status == status)
        result = await self.db.execute(query.order_by(CountResult.status, CountResult.code))
        return result.scalars().all()

    async def get_count_summary(self, count_id: int, current_user_id: int) -> CountSummary:
        """Live totals and classification from the current plan and entries (nothing is stored)."""
        await self.get_count(count_id, current_user_id)
        plan, entries = await self._load_snapshot(count_id)

        totals = reconciliation_engine.count_totals(plan, entries)
        by_status = reconciliation_engine.summarize(reconciliation_engine.reconcile(plan, entries))
        return CountSummary(
            count_id=count_id,
            **totals.model_dump(),
            regular=by_status[ResultStatus.REGULAR],
            excess=by_status[ResultStatus.EXCESS],
            shortage=by_status[ResultStatus.SHORTAGE],
            unclassified=len(reconciliation_engine.unclassified_codes(plan, entries)),
        )

    async def get_recent_totals(self, current_user_id: int, limit: int = settings.RECENT_TOTALS_LIMIT) -> List[RecentCountTotals]:
        """Stored result totals of the user's most recent counts"""
        counts = (await self.db.execute(
            select(AuditCount)
            .where(and_(AuditCount.owner_id == current_user_id, AuditCount.is_deleted == False))
            .order_by(desc(AuditCount.created_at), desc(AuditCount.id))
            .limit(limit)
        )).scalars().all()
        if not counts:
            return []

        grouped = await self.db.execute(
            select(CountResult.count_id, CountResult.status, func.count(CountResult.id))
            .where(CountResult.count_id.in_([c.id for c in counts]))
            .group_by(CountResult.count_id, CountResult.status)
        )
        per_count: Dict[int, Dict[ResultStatus, int]] = {}
        for count_id, status, total in grouped.all():
            per_count.setdefault(count_id, {})[ResultStatus(status)] = total

        out = []
        for c in counts:
            totals = per_count.get(c.id, {})
            out.append(RecentCountTotals(
                count_id=c.id,
                name=c.name,
                created_at=c.created_at,
                regular=totals.get(ResultStatus.REGULAR, 0),
                excess=totals.get(ResultStatus.EXCESS, 0),
                shortage=totals.get(ResultStatus.SHORTAGE, 0),
            ))
        return out

    # endregion
