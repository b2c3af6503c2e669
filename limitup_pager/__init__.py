"""Limit-up spreadsheet normalization and category-priority pagination."""

__version__ = "0.1.0"
