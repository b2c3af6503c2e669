"""
paging.py — ordering, category-priority pagination and reason statistics.

A page is laid out for a fixed-height board where every distinct 涨停原因
costs a two-line group header and every stock one line, so a page holds rows
while 2 × groups + rows stays within the constraint.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Hashable, Mapping, Sequence, TypeVar, Union

from limitup_pager.columns import CONSECUTIVE_LIMIT_DAYS, FINAL_LIMIT_TIME, LIMIT_REASON, CanonicalRow
from limitup_pager.config import DEFAULT_MAX_CONSTRAINT

SENTINEL_GROUP = "其他概念"

Row = Union[CanonicalRow, Mapping[str, Any]]
R = TypeVar("R", CanonicalRow, Mapping[str, Any])


@dataclass(frozen=True)
class CategoryStat:
    category: Any
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"category": self.category, "count": self.count}


def field_value(row: Row, column: str) -> Any:
    return row.get(column, "")


def coerce_days(value: Any) -> float:
    """Numeric view of 连续涨停天数(天); blank, non-numeric and NaN count as 0."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return 0.0 if math.isnan(number) else number


def sort_key(row: Row) -> tuple[float, str]:
    return (-coerce_days(field_value(row, CONSECUTIVE_LIMIT_DAYS)), str(field_value(row, FINAL_LIMIT_TIME)))


def sort_rows(rows: Sequence[R]) -> list[R]:
    """Most consecutive limit-up days first, then earliest final limit time; stable."""
    return sorted(rows, key=sort_key)


def group_order(rows: Sequence[Row], grouping_field: str = LIMIT_REASON) -> list[Hashable]:
    counts = Counter(field_value(row, grouping_field) for row in rows)
    ordered = sorted((group for group in counts if group != SENTINEL_GROUP), key=lambda group: -counts[group])
    if SENTINEL_GROUP in counts:
        ordered.append(SENTINEL_GROUP)
    return ordered


def reorder_by_group_priority(rows: Sequence[R], grouping_field: str = LIMIT_REASON) -> list[R]:
    buckets: dict[Hashable, list[R]] = {}
    for row in rows:
        buckets.setdefault(field_value(row, grouping_field), []).append(row)
    reordered: list[R] = []
    for group in group_order(rows, grouping_field):
        reordered.extend(buckets[group])
    return reordered


def paginate(
    rows: Sequence[R],
    grouping_field: str = LIMIT_REASON,
    max_constraint: int = DEFAULT_MAX_CONSTRAINT,
) -> list[list[R]]:
    """
    Split rows into pages, largest reason groups first and 其他概念 last.

    Pages are filled greedily: a row is left for the next page when taking it
    would push 2 × distinct groups + rows past `max_constraint`. A row that
    breaks the budget on its own gets a page to itself.
    """
    ordered = reorder_by_group_priority(rows, grouping_field)
    pages: list[list[R]] = []
    start = 0
    total = len(ordered)
    while start < total:
        end = start
        groups: set[Hashable] = set()
        while end < total:
            group = field_value(ordered[end], grouping_field)
            category_count = len(groups) + (group not in groups)
            if 2 * category_count + (end - start + 1) > max_constraint:
                break
            groups.add(group)
            end += 1
        if end == start:
            end = start + 1
        pages.append(ordered[start:end])
        start = end
    return pages


def category_stats(rows: Sequence[Row], column: str = LIMIT_REASON) -> list[CategoryStat]:
    counts = Counter(field_value(row, column) for row in rows)
    return [CategoryStat(category, count) for category, count in sorted(counts.items(), key=lambda item: -item[1])]
