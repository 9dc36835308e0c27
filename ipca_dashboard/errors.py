from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for every error raised by the dashboard pipeline."""


class FetchError(DashboardError):
    """The dataset resource could not be read. Fatal for the pipeline."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Could not load dataset from {source}: {reason}")
        self.source = source
        self.reason = reason


class EmptyDatasetError(DashboardError):
    """The dataset has no lines at all (not even a header)."""


class MalformedRowError(DashboardError):
    """A single data row was skipped. Never raised by the parser, only collected."""

    def __init__(self, line_number: int, reason: str, raw: Optional[str] = None):
        super().__init__(f"Line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason
        self.raw = raw
