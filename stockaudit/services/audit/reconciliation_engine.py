"""
Count reconciliation.

Merges the planned inventory of one audit count with the manually keyed
entries into classified result rows:

- ``regular``: observed total equals the expected quantity
- ``shortage``: planned code with nothing observed
- ``excess``: observed code that is not in the plan

A planned code whose observed total is non-zero but differs from the expected
quantity produces no row at all. Reports that need to show those codes use
``unclassified_codes``.

Everything here is pure; persistence belongs to ``CountService``.
"""
from collections import OrderedDict
from typing import Dict, Iterable, List, Sequence, Tuple

from stockaudit.models.shared.enums import ResultStatus
from stockaudit.schemas.audit.audit_count import CountTotals
from stockaudit.schemas.audit.count_result import ReconciliationRow


def aggregate_entries(entries: Iterable) -> "OrderedDict[str, int]":
    """Sum entry quantities per code, keeping first-seen order."""
    observed: "OrderedDict[str, int]" = OrderedDict()
    for entry in entries:
        quantity = entry.quantity if entry.quantity is not None else 1
        observed[entry.code] = observed.get(entry.code, 0) + quantity
    return observed


def index_plan(plan: Iterable) -> "OrderedDict[str, Tuple[str, int]]":
    """code -> (display name, expected quantity). A repeated code keeps the last row."""
    expected: "OrderedDict[str, Tuple[str, int]]" = OrderedDict()
    for item in plan:
        expected[item.code] = (item.display_name or "", item.expected_quantity)
    return expected


def reconcile(plan: Sequence, entries: Sequence) -> List[ReconciliationRow]:
    """Classify every planned or observed code.

    ``plan`` items expose ``code``, ``display_name`` and ``expected_quantity``;
    ``entries`` expose ``code`` and ``quantity``. ORM rows and schemas both work.
    Planned codes come first in plan order, then excess codes in the order
    they were first keyed in.
    """
    observed = aggregate_entries(entries)
    expected = index_plan(plan)

    rows: List[ReconciliationRow] = []

    for code, (display_name, expected_quantity) in expected.items():
        observed_quantity = observed.get(code, 0)
        if observed_quantity == expected_quantity:
            rows.append(ReconciliationRow(
                code=code,
                status=ResultStatus.REGULAR,
                observed_quantity=observed_quantity,
                expected_quantity=expected_quantity,
                display_name=display_name,
            ))
        elif observed_quantity == 0:
            rows.append(ReconciliationRow(
                code=code,
                status=ResultStatus.SHORTAGE,
                observed_quantity=0,
                expected_quantity=expected_quantity,
                display_name=display_name,
            ))
        # partial mismatch: no row

    for code, observed_quantity in observed.items():
        if code not in expected:
            rows.append(ReconciliationRow(
                code=code,
                status=ResultStatus.EXCESS,
                observed_quantity=observed_quantity,
                expected_quantity=0,
                display_name="",
            ))

    return rows


def unclassified_codes(plan: Sequence, entries: Sequence) -> List[str]:
    """Planned codes with 0 < observed != expected, i.e. the ones ``reconcile`` drops."""
    observed = aggregate_entries(entries)
    return [
        code
        for code, (_, expected_quantity) in index_plan(plan).items()
        if observed.get(code, 0) not in (0, expected_quantity)
    ]


def summarize(rows: Iterable) -> Dict[ResultStatus, int]:
    totals = {status: 0 for status in ResultStatus}
    for row in rows:
        totals[ResultStatus(row.status)] += 1
    return totals


def count_totals(plan: Sequence, entries: Sequence) -> CountTotals:
    return CountTotals(
        plan_codes=len(plan),
        plan_units=sum(item.expected_quantity or 0 for item in plan),
        entry_codes=len({entry.code for entry in entries}),
        entry_units=sum(entry.quantity or 1 for entry in entries),
    )
