"""
columns.py — header cleanup, required-column lookup and row canonicalisation.

Limit-up exports rename their columns between vendors and releases: the same
field shows up as "涨停原因", " 涨停原因 ", "涨停原因2024.03.15" or
"今日涨停原因". This module finds the four fields the pager needs and turns
loose spreadsheet rows into CanonicalRow records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, NamedTuple, Sequence, Union

from limitup_pager.errors import MissingColumnError

CellValue = Union[str, int, float]
RawRow = Dict[str, CellValue]

FINAL_LIMIT_TIME = "最终涨停时间"
CONSECUTIVE_LIMIT_DAYS = "连续涨停天数(天)"
LIMIT_REASON = "涨停原因"
LIMIT_REASON_CATEGORY = "涨停原因类别"
CANONICAL_COLUMNS = (FINAL_LIMIT_TIME, CONSECUTIVE_LIMIT_DAYS, LIMIT_REASON, LIMIT_REASON_CATEGORY)

DISCLOSURE_MARKER = "涨停原因揭秘"
DATE_SUFFIX_RE = re.compile(r"\d{4}\.\d{2}\.\d{2}$")


class ResolvedColumns(NamedTuple):
    final_limit_time: str
    consecutive_limit_days: str
    limit_reason: str
    limit_reason_category: str


@dataclass
class CanonicalRow:
    final_limit_time: CellValue
    consecutive_limit_days: CellValue
    limit_reason: CellValue
    limit_reason_category: CellValue
    extras: dict[str, CellValue] = field(default_factory=dict)

    def get(self, column: str, default: Any = "") -> Any:
        attr = FIELD_ATTRS.get(column)
        if attr is not None:
            return getattr(self, attr)
        return self.extras.get(column, default)

    def as_dict(self) -> RawRow:
        out: RawRow = dict(self.extras)
        out[FINAL_LIMIT_TIME] = self.final_limit_time
        out[CONSECUTIVE_LIMIT_DAYS] = self.consecutive_limit_days
        out[LIMIT_REASON] = self.limit_reason
        out[LIMIT_REASON_CATEGORY] = self.limit_reason_category
        return out


FIELD_ATTRS = {
    FINAL_LIMIT_TIME: "final_limit_time",
    CONSECUTIVE_LIMIT_DAYS: "consecutive_limit_days",
    LIMIT_REASON: "limit_reason",
    LIMIT_REASON_CATEGORY: "limit_reason_category",
}


def strip_date_suffix(header: Any) -> str:
    return DATE_SUFFIX_RE.sub("", str(header))


def normalize_headers(rows: Sequence[RawRow]) -> list[RawRow]:
    """
    Drop a trailing YYYY.MM.DD stamp from every header.

    The mapping is built from the first row and applied to all rows. When two
    headers collapse onto the same name, the later column's value wins and
    the key keeps the position of the first one.
    """
    if not rows:
        return list(rows)

    renames = {col: strip_date_suffix(col) for col in rows[0]}
    cleaned: list[RawRow] = []
    for row in rows:
        new_row: RawRow = {}
        for key, value in row.items():
            new_row[renames.get(key, key)] = value
        cleaned.append(new_row)
    return cleaned


def resolve_column(rows: Sequence[Mapping[str, Any]], target: str) -> str | None:
    """Find `target` among the first row's headers: exact, then trimmed, then substring."""
    if not rows:
        return None
    columns = list(rows[0].keys())

    if target in columns:
        return target
    for col in columns:
        if col.strip() == target:
            return col
    for col in columns:
        if target in col:
            return col
    return None


def resolve_required_columns(rows: Sequence[Mapping[str, Any]]) -> ResolvedColumns:
    found = {target: resolve_column(rows, target) for target in CANONICAL_COLUMNS}
    missing = [target for target, col in found.items() if col is None]
    if missing:
        raise MissingColumnError(missing)
    return ResolvedColumns(*(found[target] for target in CANONICAL_COLUMNS))


def is_disclosure_column(column: str) -> bool:
    return DISCLOSURE_MARKER in column


def normalize_rows(rows: Sequence[RawRow], columns: ResolvedColumns) -> list[CanonicalRow]:
    """
    Rename the resolved columns to their canonical names.

    Values are read from the untouched source row, so a resolved column whose
    name already equals a canonical name round-trips unchanged. Disclosure
    columns ("涨停原因揭秘…") are dropped wherever they appear.
    """
    source_columns = set(columns)
    out: list[CanonicalRow] = []
    for row in rows:
        extras = {
            key: value
            for key, value in row.items()
            if key not in source_columns and key not in FIELD_ATTRS and not is_disclosure_column(key)
        }
        out.append(
            CanonicalRow(
                final_limit_time=row.get(columns.final_limit_time, ""),
                consecutive_limit_days=row.get(columns.consecutive_limit_days, ""),
                limit_reason=row.get(columns.limit_reason, ""),
                limit_reason_category=row.get(columns.limit_reason_category, ""),
                extras=extras,
            )
        )
    return out


def column_names(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    return list(rows[0].keys()) if rows else []
