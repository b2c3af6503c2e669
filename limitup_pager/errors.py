from __future__ import annotations


class LimitUpPagerError(Exception):
    """Base class for errors raised by the processing pipeline."""


class MissingColumnError(LimitUpPagerError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__("缺少必要列，请检查文件格式。 Missing: " + ", ".join(missing))
        self.missing = list(missing)


class CellProcessingError(LimitUpPagerError):
    """A single cell could not be normalized; the caller degrades it to ''."""

    def __init__(self, row_index: int, column: str, cause: BaseException) -> None:
        super().__init__(f"row {row_index}: {column}: {cause}")
        self.row_index = row_index
        self.column = column
        self.cause = cause
