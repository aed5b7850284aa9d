"""Concurrent lexical statistics for directories of plain-text books."""

from .config import AnalyzerConfig, OutputMode, TitleStrategy
from .models import BatchReport, BookSource, BookStatistics, FileOutcome, FileStatus, TokenSet

__all__ = [
    "AnalyzerConfig",
    "BatchReport",
    "BookSource",
    "BookStatistics",
    "FileOutcome",
    "FileStatus",
    "OutputMode",
    "TitleStrategy",
    "TokenSet",
]
