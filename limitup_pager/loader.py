"""
loader.py — read the first sheet of a limit-up export into plain rows.

Supports: .xlsx .xlsm .xls .ods .csv .tsv

Public API:
    result = load_rows("path/to/export.xlsx")
    rows   = result["rows"]

Result dict keys:
    rows              — list of {column: value}; blank cells are ""
    dataframe         — the pandas DataFrame the rows came from
    detected_format   — "xlsx", "csv", ...
    detected_encoding — encoding name for text files; None for workbooks
    sheet_name        — sheet that was read; None for text files
    sheet_names       — all sheets in the workbook; None for text files
    warnings          — list of warning strings
"""

from __future__ import annotations

import io
import math
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import chardet
import pandas as pd

from limitup_pager.columns import CellValue, RawRow

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS  = {".csv", ".tsv"}
EXCEL_FORMATS = {".xlsx", ".xlsm", ".xls"}
ODS_FORMATS   = {".ods"}
ALL_FORMATS   = TEXT_FORMATS | EXCEL_FORMATS | ODS_FORMATS


# ══════════════════════════════════════════════════════════════════════════════
# CELL CONVERSION
# ══════════════════════════════════════════════════════════════════════════════

def to_cell_value(value: Any) -> CellValue:
    """
    Turn a pandas cell into str/int/float.

    NaN/None become "", numpy scalars become Python scalars, whole floats
    become ints (5.0 -> 5), timestamps become ISO text and times HH:MM:SS.
    """
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, int):
        return value
    return str(value)


def dataframe_to_rows(df: pd.DataFrame) -> list[RawRow]:
    """Convert every record; rows with no non-blank cell are skipped."""
    headers = [str(col) for col in df.columns]
    rows: list[RawRow] = []
    for record in df.itertuples(index=False, name=None):
        row = {header: to_cell_value(value) for header, value in zip(headers, record)}
        if any(value != "" for value in row.values()):
            rows.append(row)
    return rows


# ══════════════════════════════════════════════════════════════════════════════
# TEXT FILES
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> str:
    if raw.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    detected = chardet.detect(raw).get("encoding") or "utf-8"
    # chardet reports GB2312 for most mainland exports; GB18030 is its superset.
    if detected.lower() in {"gb2312", "gbk"}:
        return "gb18030"
    return detected


def _load_text(path: Path, suffix: str) -> dict:
    raw = path.read_bytes()
    enc = _detect_encoding(raw)
    try:
        text = raw.decode(enc)
    except (LookupError, UnicodeDecodeError):
        enc = "utf-8"
        text = raw.decode(enc, errors="replace")

    sep = "\t" if suffix == ".tsv" else ","
    try:
        df = pd.read_csv(io.StringIO(text), sep=sep, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        df = pd.DataFrame()
    except Exception as exc:
        raise ValueError(f"Could not parse {suffix} file: {exc}") from exc

    return {
        "rows":              dataframe_to_rows(df),
        "dataframe":         df,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": enc,
        "sheet_name":        None,
        "sheet_names":       None,
        "warnings":          [],
    }


# ══════════════════════════════════════════════════════════════════════════════
# WORKBOOKS
# ══════════════════════════════════════════════════════════════════════════════

def _require_engine(suffix: str) -> str | None:
    if suffix == ".xls":
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise ImportError(".xls files require xlrd — run: pip install xlrd") from None
        return "xlrd"
    if suffix == ".ods":
        try:
            import odf  # noqa: F401
        except ImportError:
            raise ImportError(".ods files require odfpy — run: pip install odfpy") from None
        return "odf"
    return "openpyxl"


def _load_workbook(path: Path, suffix: str) -> dict:
    """Read only the first sheet; other sheets are reported in warnings."""
    engine = _require_engine(suffix)
    try:
        with pd.ExcelFile(path, engine=engine) as xf:
            sheet_names = list(xf.sheet_names)
            if not sheet_names:
                raise ValueError("Workbook has no sheets.")
            df = xf.parse(sheet_names[0], keep_default_na=False, na_values=[])
    except ValueError:
        raise
    except Exception as exc:
        raise ValueError(f"Could not open workbook: {exc}") from exc

    warnings: list[str] = []
    if len(sheet_names) > 1:
        warnings.append(
            f"Multiple sheets found ({len(sheet_names)} total); "
            f"used '{sheet_names[0]}'. Ignored: {sheet_names[1:]}"
        )

    return {
        "rows":              dataframe_to_rows(df),
        "dataframe":         df,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": None,
        "sheet_name":        sheet_names[0],
        "sheet_names":       sheet_names,
        "warnings":          warnings,
    }


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_rows(path: "str | Path", suffix: str | None = None) -> dict:
    """
    Load the first sheet of a supported file.

    Args:
        path:   Path to the file (str or Path).
        suffix: Format override for files saved without an extension,
                such as uploaded temp files.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if the format is unsupported or unreadable.
        ImportError        if .xls/.ods support is not installed.
    """
    path   = Path(path)
    suffix = (suffix or path.suffix).lower()

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise ValueError(
            f"Unsupported format '{suffix or '[missing extension]'}'. Supported: {supported}"
        )

    if suffix in TEXT_FORMATS:
        return _load_text(path, suffix)
    return _load_workbook(path, suffix)
