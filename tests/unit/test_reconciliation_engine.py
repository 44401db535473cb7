from types import SimpleNamespace

from stockaudit.models.shared.enums import ResultStatus
from stockaudit.schemas.audit.manual_entry import ManualEntryCreate
from stockaudit.schemas.audit.plan_item import PlanItemCreate
from stockaudit.services.audit import reconciliation_engine as engine


def plan_item(code, name, expected):
    return PlanItemCreate(code=code, display_name=name, expected_quantity=expected)


def entry(code, quantity=1):
    return ManualEntryCreate(code=code, quantity=quantity)


def by_code(rows):
    return {row.code: row for row in rows}


class TestReconcile:
    def test_regular_shortage_and_excess(self):
        plan = [plan_item("A001", "Shampoo", 5), plan_item("B002", "Soap", 4)]
        entries = [entry("A001", 5), entry("C003", 2)]

        rows = by_code(engine.reconcile(plan, entries))

        assert set(rows) == {"A001", "B002", "C003"}
        assert rows["A001"].status == ResultStatus.REGULAR
        assert (rows["A001"].observed_quantity, rows["A001"].expected_quantity) == (5, 5)
        assert rows["A001"].display_name == "Shampoo"

        assert rows["B002"].status == ResultStatus.SHORTAGE
        assert (rows["B002"].observed_quantity, rows["B002"].expected_quantity) == (0, 4)
        assert rows["B002"].display_name == "Soap"

        assert rows["C003"].status == ResultStatus.EXCESS
        assert (rows["C003"].observed_quantity, rows["C003"].expected_quantity) == (2, 0)
        assert rows["C003"].display_name == ""

    def test_zero_expected_and_nothing_observed_is_regular(self):
        plan = [plan_item("A001", "Shampoo", 5), plan_item("B002", "Soap", 0)]
        entries = [entry("A001", 5), entry("C003", 2)]

        rows = by_code(engine.reconcile(plan, entries))

        assert rows["B002"].status == ResultStatus.REGULAR
        assert (rows["B002"].observed_quantity, rows["B002"].expected_quantity) == (0, 0)

    def test_partial_mismatch_is_dropped(self):
        plan = [plan_item("A001", "X", 5)]
        entries = [entry("A001", 3)]

        assert engine.reconcile(plan, entries) == []
        assert engine.unclassified_codes(plan, entries) == ["A001"]

    def test_over_count_of_planned_code_is_dropped(self):
        plan = [plan_item("A001", "X", 2)]
        entries = [entry("A001", 7)]

        assert engine.reconcile(plan, entries) == []
        assert engine.unclassified_codes(plan, entries) == ["A001"]

    def test_entries_are_summed_before_classification(self):
        plan = [plan_item("A001", "X", 3)]
        split = engine.reconcile(plan, [entry("A001"), entry("A001"), entry("A001")])
        single = engine.reconcile(plan, [entry("A001", 3)])

        assert split == single
        assert split[0].status == ResultStatus.REGULAR
        assert split[0].observed_quantity == 3

    def test_missing_quantity_counts_as_one(self):
        entries = [SimpleNamespace(code="A001", quantity=None), SimpleNamespace(code="A001", quantity=2)]
        assert engine.aggregate_entries(entries) == {"A001": 3}

    def test_empty_entries_yield_shortage_for_every_planned_code(self):
        plan = [plan_item("A001", "X", 5), plan_item("B002", "Y", 1)]
        rows = engine.reconcile(plan, [])

        assert [row.code for row in rows] == ["A001", "B002"]
        assert all(row.status == ResultStatus.SHORTAGE for row in rows)

    def test_empty_plan_yields_only_excess(self):
        rows = engine.reconcile([], [entry("Z9", 4), entry("Y8")])

        assert [row.code for row in rows] == ["Z9", "Y8"]
        assert all(row.status == ResultStatus.EXCESS for row in rows)

    def test_empty_inputs(self):
        assert engine.reconcile([], []) == []

    def test_rerun_is_idempotent(self):
        plan = [plan_item("A001", "X", 2), plan_item("B002", "Y", 1)]
        entries = [entry("A001", 2), entry("Q1", 1)]

        assert engine.reconcile(plan, entries) == engine.reconcile(plan, entries)

    def test_output_order_plan_then_first_seen_excess(self):
        plan = [plan_item("B", "", 0), plan_item("A", "", 1)]
        entries = [entry("Z"), entry("A"), entry("Y"), entry("Z")]

        rows = engine.reconcile(plan, entries)

        assert [row.code for row in rows] == ["B", "A", "Z", "Y"]

    def test_repeated_plan_code_keeps_last_row(self):
        plan = [plan_item("A001", "Old", 1), plan_item("A001", "New", 2)]
        rows = engine.reconcile(plan, [entry("A001", 2)])

        assert len(rows) == 1
        assert rows[0].display_name == "New"
        assert rows[0].status == ResultStatus.REGULAR


class TestSummaries:
    def test_summarize_counts_every_status(self):
        plan = [plan_item("A", "", 1), plan_item("B", "", 2), plan_item("C", "", 3)]
        entries = [entry("A"), entry("C", 1), entry("X"), entry("Y")]

        totals = engine.summarize(engine.reconcile(plan, entries))

        assert totals == {
            ResultStatus.REGULAR: 1,
            ResultStatus.EXCESS: 2,
            ResultStatus.SHORTAGE: 1,
        }

    def test_count_totals(self):
        plan = [plan_item("A", "", 4), plan_item("B", "", 6)]
        entries = [entry("A", 2), entry("A", 1), entry("X", 5)]

        totals = engine.count_totals(plan, entries)

        assert totals.plan_codes == 2
        assert totals.plan_units == 10
        assert totals.entry_codes == 2
        assert totals.entry_units == 8
