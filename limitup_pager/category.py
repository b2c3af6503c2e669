"""
category.py — display-width trimming for the 涨停原因类别 column.

Category texts are "+"-joined concept lists ("算力+数据中心+液冷服务器+...")
that have to fit a fixed display budget in the exported pages. Width is
measured the way a monospace terminal renders it: CJK ideographs take two
columns, everything else one.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from limitup_pager.columns import LIMIT_REASON_CATEGORY, CanonicalRow
from limitup_pager.config import DEFAULT_CATEGORY_WIDTH
from limitup_pager.errors import CellProcessingError

logger = logging.getLogger(__name__)

WHITESPACE_RUN_RE = re.compile(r"\s+")
CJK_START = "\u4e00"
CJK_END = "\u9fff"
SEPARATOR = "+"


@dataclass
class CellOutcome:
    value: str
    error: CellProcessingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CellDiagnostic:
    row_index: int
    column: str
    error: str

    def as_dict(self) -> dict[str, Any]:
        return {"rowIndex": self.row_index, "column": self.column, "error": self.error}


def char_width(ch: str) -> int:
    return 2 if CJK_START <= ch <= CJK_END else 1


def display_width(text: Any) -> int:
    if text is None:
        return 0
    return sum(char_width(ch) for ch in str(text))


def normalize_reason_category(value: Any) -> str:
    if value is None:
        return ""
    return WHITESPACE_RUN_RE.sub(" ", str(value).strip())


def _strip_trailing_separators(text: str) -> str:
    """
    Strip trailing "+" together with the spaces between them, not "+" alone.

    "a +" becomes "a" rather than "a ", which keeps trimming a fixed point:
    a trailing space would otherwise be stripped by the next normalisation.
    """
    return text.rstrip(SEPARATOR + " ")


def trim_reason_category(value: Any, max_width: int = DEFAULT_CATEGORY_WIDTH) -> str:
    """
    Normalise `value` and cut it down to `max_width` display columns.

    Text that already fits only loses trailing "+" signs. Longer text is cut
    to the longest fitting prefix; when that prefix still holds a "+" before
    its last character, the cut moves back to the last "+" so no concept is
    left half-written. Returns "" when not even one character fits.
    """
    text = normalize_reason_category(value)
    if display_width(text) <= max_width:
        return _strip_trailing_separators(text)

    fitting = 0
    width = 0
    for ch in text:
        width += char_width(ch)
        if width > max_width:
            break
        fitting += 1
    if fitting == 0:
        return ""

    truncated = text[:fitting]
    last_sep = truncated.rfind(SEPARATOR)
    if last_sep != -1 and last_sep < len(truncated) - 1:
        truncated = truncated[:last_sep]
    return _strip_trailing_separators(truncated)


def try_trim_cell(
    row_index: int,
    value: Any,
    *,
    max_width: int = DEFAULT_CATEGORY_WIDTH,
    trimmer: Callable[..., str] = trim_reason_category,
) -> CellOutcome:
    try:
        return CellOutcome(trimmer(value, max_width))
    except Exception as exc:
        return CellOutcome("", CellProcessingError(row_index, LIMIT_REASON_CATEGORY, exc))


def trim_category_cells(
    rows: Sequence[CanonicalRow],
    *,
    max_width: int = DEFAULT_CATEGORY_WIDTH,
    trimmer: Callable[..., str] = trim_reason_category,
) -> tuple[list[CanonicalRow], list[CellDiagnostic]]:
    """Trim every row's category; a failing cell becomes "" and is reported, never raised."""
    trimmed: list[CanonicalRow] = []
    diagnostics: list[CellDiagnostic] = []
    for index, row in enumerate(rows):
        outcome = try_trim_cell(index, row.limit_reason_category, max_width=max_width, trimmer=trimmer)
        if not outcome.ok:
            logger.warning("Could not trim %s: %s", LIMIT_REASON_CATEGORY, outcome.error)
            diagnostics.append(CellDiagnostic(index, LIMIT_REASON_CATEGORY, str(outcome.error.cause)))
        trimmed.append(replace(row, limit_reason_category=outcome.value, extras=dict(row.extras)))
    return trimmed, diagnostics
