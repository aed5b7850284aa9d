"""Book pipeline, batch driver and progress aggregation."""

from .book_pipeline import BookPipeline, read_book
from .driver import BatchDriver, discover_books
from .layout import ReportLayout
from .progress import (
    ConsoleProgressSink,
    LoggingProgressSink,
    ProgressAggregator,
    ProgressEvent,
    ProgressSnapshot,
    ProgressState,
)

__all__ = [
    "BatchDriver",
    "BookPipeline",
    "ConsoleProgressSink",
    "LoggingProgressSink",
    "ProgressAggregator",
    "ProgressEvent",
    "ProgressSnapshot",
    "ProgressState",
    "ReportLayout",
    "discover_books",
    "read_book",
]
