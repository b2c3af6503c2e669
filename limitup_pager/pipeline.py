from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from limitup_pager.category import CellDiagnostic, trim_category_cells
from limitup_pager.columns import (
    LIMIT_REASON,
    CanonicalRow,
    RawRow,
    ResolvedColumns,
    column_names,
    normalize_headers,
    normalize_rows,
    resolve_required_columns,
)
from limitup_pager.config import DEFAULT_CATEGORY_WIDTH, DEFAULT_MAX_CONSTRAINT
from limitup_pager.contracts import build_contract
from limitup_pager.paging import CategoryStat, category_stats, paginate, sort_rows

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    original_columns: list[str]
    cleaned_columns: list[str]
    columns: ResolvedColumns
    record_count: int
    rows: list[CanonicalRow]
    pages: list[list[CanonicalRow]]
    category_stats: list[CategoryStat]
    max_constraint: int
    diagnostics: list[CellDiagnostic] = field(default_factory=list)

    def page_dicts(self) -> list[list[RawRow]]:
        return [[row.as_dict() for row in page] for page in self.pages]

    def to_payload(self, preview_rows: int | None = None) -> dict[str, Any]:
        """JSON shape served by /api/upload; `preview_rows` caps each page's data."""
        contract = build_contract("limitup_pager.upload_preview")
        pages = []
        for number, page in enumerate(self.pages, start=1):
            shown = page if preview_rows is None else page[:preview_rows]
            pages.append(
                {
                    "pageNumber": number,
                    "recordCount": len(page),
                    "data": [row.as_dict() for row in shown],
                }
            )
        return {
            "contract": contract,
            "originalColumns": list(self.original_columns),
            "cleanedColumns": list(self.cleaned_columns),
            "finalLimitTimeCol": self.columns.final_limit_time,
            "continuousLimitDaysCol": self.columns.consecutive_limit_days,
            "limitReasonCol": self.columns.limit_reason,
            "limitReasonCategoryCol": self.columns.limit_reason_category,
            "recordCount": self.record_count,
            "pages": pages,
            "categoryStats": [stat.as_dict() for stat in self.category_stats],
            "maxConstraint": self.max_constraint,
            "diagnostics": [item.as_dict() for item in self.diagnostics],
        }


def process_dataset(
    rows: Sequence[RawRow],
    max_constraint: int = DEFAULT_MAX_CONSTRAINT,
    *,
    category_width: int = DEFAULT_CATEGORY_WIDTH,
) -> ProcessResult:
    """
    Run the whole pipeline on rows read from the first sheet.

    Raises MissingColumnError before any row is touched when one of the four
    required columns cannot be found. Cell-level trimming failures never
    raise; they come back in `diagnostics`.
    """
    original_columns = column_names(rows)
    cleaned = normalize_headers(rows)
    cleaned_columns = column_names(cleaned)
    columns = resolve_required_columns(cleaned)
    logger.debug("Resolved columns: %s", columns._asdict())

    canonical = normalize_rows(cleaned, columns)
    trimmed, diagnostics = trim_category_cells(canonical, max_width=category_width)
    ordered = sort_rows(trimmed)
    pages = paginate(ordered, LIMIT_REASON, max_constraint)
    stats = category_stats(ordered, LIMIT_REASON)

    logger.info(
        "Processed %d rows into %d pages (maxConstraint=%d, %d reasons, %d cell errors)",
        len(rows),
        len(pages),
        max_constraint,
        len(stats),
        len(diagnostics),
    )
    return ProcessResult(
        original_columns=original_columns,
        cleaned_columns=cleaned_columns,
        columns=columns,
        record_count=len(rows),
        rows=ordered,
        pages=pages,
        category_stats=stats,
        max_constraint=max_constraint,
        diagnostics=diagnostics,
    )
