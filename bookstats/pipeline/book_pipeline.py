"""Per-book pipeline: read, tokenize, compute, write."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from bookstats.config import AnalyzerConfig
from bookstats.models import BookSource, BookStatistics, FileOutcome, FileStatus
from bookstats.nlp.statistics import compute
from bookstats.nlp.tokenizer import tokenize
from bookstats.report import write_report
from bookstats.titles import derive_title
from bookstats.utils.retry import retry_call

from .layout import ReportLayout
from .progress import EventKind, ProgressEvent

logger = logging.getLogger(__name__)

BookReader = Callable[[Path, str], str]
ReportWriter = Callable[[Path, BookStatistics, str], Path]
ProgressNotifier = Callable[[ProgressEvent], None]


def read_book(path: Path, encoding: str = "utf-8") -> str:
    return path.read_text(encoding=encoding)


def write_book_report(path: Path, stats: BookStatistics, encoding: str) -> Path:
    return write_report(path, stats, encoding=encoding)


class BookPipeline:
    """Runs one book to a terminal outcome; :meth:`run` never raises."""

    def __init__(
        self,
        config: AnalyzerConfig,
        layout: ReportLayout,
        *,
        notify: Optional[ProgressNotifier] = None,
        reader: BookReader = read_book,
        writer: ReportWriter = write_book_report,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.layout = layout
        self._notify = notify
        self._reader = reader
        self._writer = writer
        self._sleep = sleep

    # ------------------------------------------------------------------
    def run(self, path: Path) -> FileOutcome:
        try:
            return self._run(path)
        finally:
            self.layout.release(path)

    def _run(self, path: Path) -> FileOutcome:
        key = str(path)
        encoding = self.config.pipeline.encoding
        attempts = {"count": 0}
        source: Optional[BookSource] = None

        def counted(fn: Callable[[], object]) -> Callable[[], object]:
            def wrapper():
                attempts["count"] += 1
                return fn()

            return wrapper

        try:
            logger.debug("%s: reading", path.name)
            content = self._with_retry(counted(lambda: self._reader(path, encoding)), f"Reading {path.name}")
            source = BookSource(path=path, title=self._title_for(path, content))
            self._emit(EventKind.STARTED, key, source.title)

            logger.debug("%s: analyzing", source.title)
            stats = self.analyze(content)

            report_path = self.layout.report_path(path, source.title)
            logger.debug("%s: writing %s", source.title, report_path)
            self._with_retry(
                counted(lambda: self._writer(report_path, stats, encoding)),
                f"Writing {report_path.name}",
            )
        except (OSError, ValueError) as exc:
            logger.error("Failed to process %s: %s", path, exc)
            return self._failure(path, source, exc, attempts["count"])
        except Exception as exc:
            logger.exception("Unexpected error while processing %s", path)
            return self._failure(path, source, exc, attempts["count"])

        self._emit(EventKind.COMPLETED, key, source.title)
        logger.debug("%s: completed", source.title)
        return FileOutcome(
            path=path,
            status=FileStatus.COMPLETED,
            title=source.title,
            report_path=report_path,
            stats=stats,
            attempts=attempts["count"],
        )

    def analyze(self, content: str) -> BookStatistics:
        analysis = self.config.analysis
        tokens = tokenize(content, analysis.skip_patterns, analysis.sentence_terminators)
        return compute(tokens, content)

    # ------------------------------------------------------------------
    def _title_for(self, path: Path, content: str) -> str:
        analysis = self.config.analysis
        return derive_title(path, content, analysis.title_strategy, analysis.title_prefix)

    def _with_retry(self, fn: Callable[[], object], context: str):
        retry_cfg = self.config.retry
        return retry_call(
            fn,
            attempts=retry_cfg.attempts,
            delay=retry_cfg.delay_seconds,
            context=context,
            sleep=self._sleep,
        )

    def _failure(
        self,
        path: Path,
        source: Optional[BookSource],
        exc: BaseException,
        attempts: int,
    ) -> FileOutcome:
        title = source.title if source else None
        self._emit(EventKind.FAILED, str(path), title or path.name)
        return FileOutcome(
            path=path,
            status=FileStatus.FAILED,
            title=title,
            error=str(exc) or exc.__class__.__name__,
            attempts=attempts,
        )

    def _emit(self, kind: EventKind, key: str, title: str) -> None:
        if self._notify is None:
            return
        self._notify(ProgressEvent(kind, key, title))
