from __future__ import annotations

import csv
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from limitup_pager.category import display_width
from limitup_pager.columns import LIMIT_REASON, LIMIT_REASON_CATEGORY, is_disclosure_column
from limitup_pager.paging import CategoryStat

PAGE_SHEET_TITLE = "第1页"
STATS_HEADERS = [LIMIT_REASON, "出现次数"]
HEADER_COLOR = "C62828"


def page_file_name(base_name: str, page_number: int) -> str:
    return f"{base_name}_第{page_number}页.xlsx"


def stats_file_name(base_name: str) -> str:
    return f"{base_name}_涨停原因统计.csv"


def _header_font() -> Font:
    return Font(bold=True, color="FFFFFF")


def _header_fill(hex_color: str) -> PatternFill:
    return PatternFill("solid", fgColor=hex_color)


def _style_sheet(ws, col_widths: list[int], header_color: str):
    """Apply bold header, color, frozen row, and column widths."""
    fill = _header_fill(header_color)
    font = _header_font()
    for cell in ws[1]:
        cell.font = font
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=False)
    ws.freeze_panes = "A2"
    for i, width in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _infer_col_widths(rows: list[list], min_width: int = 10, max_width: int = 60, sample: int = 300) -> list[int]:
    if not rows:
        return []
    widths = [max(min_width, min(max_width, display_width(v) + 2)) for v in rows[0]]
    for row in rows[1 : sample + 1]:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], min(max_width, display_width(val) + 2))
    return widths


def sheet_headers(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """First row's keys, then keys that only appear in later rows, in order of appearance."""
    headers: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                headers.append(key)
    return headers


@contextmanager
def atomic_output(path: Path) -> Iterator[Path]:
    """Yield a temp path beside `path`; it replaces `path` only if the block succeeds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=path.suffix, dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_page_workbook(
    rows: Sequence[Mapping[str, Any]],
    output_path: Path,
    sheet_title: str = PAGE_SHEET_TITLE,
) -> Path:
    # Disclosure columns are already gone after normalisation; filter again for raw callers.
    clean_rows = [{k: v for k, v in row.items() if not is_disclosure_column(k)} for row in rows]
    headers = sheet_headers(clean_rows)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_title
    table = [headers]
    ws.append(headers)
    for row in clean_rows:
        values = [row.get(h, "") for h in headers]
        ws.append(values)
        table.append(values)
    if headers:
        _style_sheet(ws, _infer_col_widths(table), HEADER_COLOR)
    if LIMIT_REASON_CATEGORY in headers:
        col = get_column_letter(headers.index(LIMIT_REASON_CATEGORY) + 1)
        for cell in ws[col][1:]:
            cell.alignment = Alignment(wrap_text=True, vertical="top")

    with atomic_output(output_path) as tmp_path:
        wb.save(tmp_path)
    return output_path


def write_stats_csv(stats: Sequence[CategoryStat], output_path: Path) -> Path:
    """Reason/count table as UTF-8 CSV with a BOM so Excel opens the Chinese text correctly."""
    with atomic_output(output_path) as tmp_path:
        with tmp_path.open("w", encoding="utf-8-sig", newline="") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            writer.writerow(STATS_HEADERS)
            for stat in stats:
                writer.writerow([stat.category, stat.count])
    return output_path


def export_pages(
    pages: Sequence[Sequence[Mapping[str, Any]]],
    stats: Sequence[CategoryStat],
    output_dir: Path,
    base_name: str,
) -> dict[str, Any]:
    """Write one workbook per page plus the stats CSV, one file at a time."""
    written_pages: list[Path] = []
    for number, page in enumerate(pages, start=1):
        written_pages.append(write_page_workbook(page, output_dir / page_file_name(base_name, number)))
    stats_path = write_stats_csv(stats, output_dir / stats_file_name(base_name))
    return {"pages": written_pages, "stats": stats_path}
