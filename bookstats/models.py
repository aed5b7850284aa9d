from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class FileStatus(str, Enum):
    """Terminal outcome of a single book pipeline."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class BookSource:
    path: Path
    title: str


@dataclass
class TokenSet:
    sentences: List[str]
    words: List[str]
    punctuation: set[str] = field(default_factory=set)


@dataclass
class BookStatistics:
    longest_sentence: str = ""
    shortest_sentence: str = ""
    longest_word: str = ""
    most_common_letter: str = ""
    word_frequency: List[Tuple[str, int]] = field(default_factory=list)
    total_sentences: int = 0
    total_words: int = 0
    total_bytes: int = 0
    punctuation: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        top_words = self.word_frequency[:10]
        return {
            "longest_sentence": self.longest_sentence,
            "shortest_sentence": self.shortest_sentence,
            "longest_word": self.longest_word,
            "most_common_letter": self.most_common_letter,
            "total_sentences": self.total_sentences,
            "total_words": self.total_words,
            "total_bytes": self.total_bytes,
            "unique_words": len(self.word_frequency),
            "top_words": [{"word": word, "count": count} for word, count in top_words],
        }


@dataclass
class FileOutcome:
    path: Path
    status: FileStatus
    title: Optional[str] = None
    report_path: Optional[Path] = None
    stats: Optional[BookStatistics] = None
    error: Optional[str] = None
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "file": str(self.path),
            "title": self.title,
            "status": self.status.value,
            "report_path": str(self.report_path) if self.report_path else None,
            "stats": self.stats.to_dict() if self.stats else None,
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass
class BatchReport:
    input_dir: Path
    total_files: int = 0
    completed: List[FileOutcome] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def completed_count(self) -> int:
        return len(self.completed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def record_success(self, outcome: FileOutcome) -> None:
        self.completed.append(outcome)

    def record_failure(self, path: Path, reason: str) -> None:
        self.failed[str(path)] = reason

    def record(self, outcome: FileOutcome) -> None:
        if outcome.status is FileStatus.COMPLETED:
            self.record_success(outcome)
        else:
            self.record_failure(outcome.path, outcome.error or "Unknown error")

    def complete(self) -> None:
        self.finished_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        duration = None
        if self.finished_at is not None:
            duration = round(self.finished_at - self.started_at, 2)
        return {
            "input_dir": str(self.input_dir),
            "completed": [item.to_dict() for item in self.completed],
            "failed": self.failed,
            "summary": {
                "total_files": self.total_files,
                "completed": self.completed_count,
                "failed": self.failed_count,
                "duration_seconds": duration,
                "total_words": sum(item.stats.total_words for item in self.completed if item.stats),
            },
        }
