"""
Cyclic audit schedule generation.

Categories are picked round-robin with one index carried across the whole
run, so over ``total_weeks * sectors_per_week`` picks no two categories differ
by more than one assignment. Each week's picks are spread over the configured
work days by a shuffled day order.
"""
import random
from datetime import date, timedelta
from typing import List, Optional, Sequence

from stockaudit.core.exceptions import ValidationError
from stockaudit.models.shared.enums import ScheduleStatus
from stockaudit.schemas.schedule.schedule_config import ScheduleCadence
from stockaudit.schemas.schedule.schedule_item import ScheduleItemDraft


def week_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())


def iso_day_of_week(day: date) -> int:
    """1=Monday .. 7=Sunday"""
    return day.isoweekday()


def date_for(start_date: date, week_number: int, day_of_week: int) -> date:
    """Calendar date of ``day_of_week`` in the ``week_number``-th week (1-based) counted from start_date's week."""
    return week_monday(start_date) + timedelta(weeks=week_number - 1, days=day_of_week - 1)


def generate_schedule(
    categories: Sequence,
    cadence: ScheduleCadence,
    rng: Optional[random.Random] = None
) -> List[ScheduleItemDraft]:
    """Assign categories to calendar dates week by week.

    ``categories`` is the ordered list of active categories (anything with an
    ``id``). The caller is expected to have checked there are at least
    ``sectors_per_week`` of them; with fewer, categories repeat within a week.
    ``rng`` drives the work-day shuffle; pass a seeded ``random.Random`` for
    reproducible output.
    """
    if not categories:
        raise ValidationError("No active categories available to generate a schedule")
    if not cadence.work_days:
        raise ValidationError("Select at least one work day")

    rng = rng or random.Random()
    work_days = sorted(set(cadence.work_days))
    drafts: List[ScheduleItemDraft] = []

    index = 0  # shared across weeks
    for week_number in range(1, cadence.total_weeks + 1):
        picked = []
        for _ in range(cadence.sectors_per_week):
            picked.append(categories[index % len(categories)])
            index += 1

        days = list(work_days)
        rng.shuffle(days)

        for position, category in enumerate(picked):
            day_of_week = days[position % len(days)]
            drafts.append(ScheduleItemDraft(
                category_id=category.id,
                scheduled_date=date_for(cadence.start_date, week_number, day_of_week),
                week_number=week_number,
                day_of_week=day_of_week,
                status=ScheduleStatus.PENDING,
            ))

    return drafts
