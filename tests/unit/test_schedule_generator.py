import random
from collections import Counter
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from stockaudit.core.exceptions import ValidationError
from stockaudit.models.shared.enums import ScheduleStatus
from stockaudit.schemas.schedule.schedule_config import ScheduleCadence
from stockaudit.services.schedule.schedule_generator import date_for, generate_schedule, week_monday


def categories(n):
    return [SimpleNamespace(id=i + 1, name=f"Sector {i + 1}") for i in range(n)]


class TestDateMath:
    def test_week_monday(self):
        # 2025-03-13 is a Thursday
        assert week_monday(date(2025, 3, 13)) == date(2025, 3, 10)
        assert week_monday(date(2025, 3, 10)) == date(2025, 3, 10)
        assert week_monday(date(2025, 3, 16)) == date(2025, 3, 10)

    def test_date_for(self):
        start = date(2025, 3, 13)
        assert date_for(start, 1, 1) == date(2025, 3, 10)
        assert date_for(start, 1, 5) == date(2025, 3, 14)
        assert date_for(start, 2, 3) == date(2025, 3, 19)
        assert date_for(start, 3, 7) == date(2025, 3, 30)


class TestGenerateSchedule:
    def test_three_categories_two_per_week_three_weeks(self):
        cadence = ScheduleCadence(sectors_per_week=2, start_date=date(2025, 3, 10), total_weeks=3, work_days=[1, 3, 5])

        drafts = generate_schedule(categories(3), cadence, rng=random.Random(0))

        assert len(drafts) == 6
        assert [d.category_id for d in drafts] == [1, 2, 3, 1, 2, 3]
        assert Counter(d.category_id for d in drafts) == {1: 2, 2: 2, 3: 2}

    def test_index_is_shared_across_weeks(self):
        cadence = ScheduleCadence(sectors_per_week=2, start_date=date(2025, 3, 10), total_weeks=2, work_days=[1, 2])

        drafts = generate_schedule(categories(5), cadence, rng=random.Random(0))

        week_two = [d.category_id for d in drafts if d.week_number == 2]
        assert week_two == [3, 4]

    @pytest.mark.parametrize("n_categories,per_week,weeks", [(3, 2, 3), (4, 3, 5), (7, 2, 4), (5, 5, 1), (2, 1, 7)])
    def test_assignments_differ_by_at_most_one(self, n_categories, per_week, weeks):
        cadence = ScheduleCadence(
            sectors_per_week=per_week,
            start_date=date(2025, 1, 1),
            total_weeks=weeks,
            work_days=[1, 2, 3, 4, 5],
        )

        drafts = generate_schedule(categories(n_categories), cadence, rng=random.Random(42))

        assert len(drafts) == per_week * weeks
        counts = Counter(d.category_id for d in drafts)
        per_category = [counts.get(c.id, 0) for c in categories(n_categories)]
        assert max(per_category) - min(per_category) <= 1

    def test_days_are_work_days_inside_the_window(self):
        start = date(2025, 3, 12)
        cadence = ScheduleCadence(sectors_per_week=3, start_date=start, total_weeks=4, work_days=[2, 4, 6])

        drafts = generate_schedule(categories(4), cadence, rng=random.Random(7))

        window_start = week_monday(start)
        window_end = window_start + timedelta(weeks=4)
        for draft in drafts:
            assert draft.day_of_week in {2, 4, 6}
            assert draft.scheduled_date.isoweekday() == draft.day_of_week
            assert window_start <= draft.scheduled_date < window_end
            assert week_monday(draft.scheduled_date) == window_start + timedelta(weeks=draft.week_number - 1)
            assert draft.status == ScheduleStatus.PENDING

    def test_one_pick_per_day_when_days_suffice(self):
        cadence = ScheduleCadence(sectors_per_week=3, start_date=date(2025, 3, 10), total_weeks=2, work_days=[1, 2, 3, 4, 5])

        drafts = generate_schedule(categories(6), cadence, rng=random.Random(3))

        for week in (1, 2):
            days = [d.day_of_week for d in drafts if d.week_number == week]
            assert len(days) == len(set(days))

    def test_seeded_rng_is_reproducible(self):
        cadence = ScheduleCadence(sectors_per_week=2, start_date=date(2025, 3, 10), total_weeks=6, work_days=[1, 2, 3, 4, 5])

        first = generate_schedule(categories(4), cadence, rng=random.Random(99))
        second = generate_schedule(categories(4), cadence, rng=random.Random(99))

        assert first == second

    def test_no_categories_is_rejected(self):
        cadence = ScheduleCadence(sectors_per_week=1, start_date=date(2025, 3, 10), total_weeks=1, work_days=[1])
        with pytest.raises(ValidationError):
            generate_schedule([], cadence)

    def test_no_work_days_is_rejected(self):
        cadence = ScheduleCadence(sectors_per_week=1, start_date=date(2025, 3, 10), total_weeks=1, work_days=[])
        with pytest.raises(ValidationError):
            generate_schedule(categories(2), cadence)


class TestCadence:
    def test_limits_are_clamped(self):
        cadence = ScheduleCadence(sectors_per_week=40, start_date=date(2025, 3, 10), total_weeks=0, work_days=[5, 1, 5])
        assert cadence.sectors_per_week == 10
        assert cadence.total_weeks == 1
        assert cadence.work_days == [1, 5]

    def test_out_of_range_work_day_is_rejected(self):
        with pytest.raises(ValueError):
            ScheduleCadence(sectors_per_week=1, start_date=date(2025, 3, 10), total_weeks=1, work_days=[0, 8])
