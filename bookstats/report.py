from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from bookstats.models import BatchReport, BookStatistics

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "batch_report.json"


def render_report(stats: BookStatistics) -> str:
    lines: List[str] = [
        f"Longest Sentence: {stats.longest_sentence}",
        f"Shortest Sentence: {stats.shortest_sentence}",
        f"Longest Word: {stats.longest_word}",
        f"Most Common Letter: {stats.most_common_letter}",
        "Words Sorted by Frequency:",
    ]
    lines.extend(f"{word}: {count}" for word, count in stats.word_frequency)
    return "\n".join(lines) + "\n"


def write_report(path: Path, stats: BookStatistics, *, encoding: str = "utf-8") -> Path:
    """Write one book's report, replacing whatever is already at ``path``."""
    path.write_text(render_report(stats), encoding=encoding)
    logger.debug("Report written to %s", path)
    return path


def write_batch_summary(directory: Path, report: BatchReport) -> Path:
    target = directory / SUMMARY_FILENAME
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(report.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return target
