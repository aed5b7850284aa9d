"""Batch driver fanning book pipelines out over a thread pool."""
from __future__ import annotations

import logging
import re
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, List, Optional

from bookstats.config import AnalyzerConfig
from bookstats.models import BatchReport, FileOutcome, FileStatus
from bookstats.report import write_batch_summary

from .book_pipeline import BookPipeline, BookReader, ReportWriter, read_book, write_book_report
from .layout import ReportLayout
from .progress import ProgressAggregator, ProgressSink, ProgressSnapshot

logger = logging.getLogger(__name__)

_NAT_RE = re.compile(r"(\d+)")


def discover_books(directory: Path, layout: Optional[ReportLayout] = None) -> List[Path]:
    """List ``*.txt`` books directly inside ``directory`` in natural order."""
    if not directory.exists():
        raise FileNotFoundError(f"Input directory does not exist: {directory}")
    if not directory.is_dir():
        raise NotADirectoryError(f"Input path is not a directory: {directory}")
    books = [
        path
        for path in directory.glob("*.txt")
        if path.is_file() and not (layout and layout.is_report(path))
    ]
    return sorted(books, key=_natural_sort_key)


def _natural_sort_key(path: Path) -> tuple:
    key: List[object] = []
    for part in _NAT_RE.split(path.name.casefold()):
        key.append(int(part) if part.isdigit() else part)
    return tuple(key)


class BatchDriver:
    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        *,
        sink: Optional[ProgressSink] = None,
        reader: BookReader = read_book,
        writer: ReportWriter = write_book_report,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.sink = sink
        self._reader = reader
        self._writer = writer
        self._sleep = sleep
        self.last_snapshot: Optional[ProgressSnapshot] = None

    def worker_count(self, total: int) -> int:
        cap = self.config.pipeline.max_workers
        if cap <= 0:
            return max(1, total)
        return max(1, min(cap, total))

    def run(self, directory: Path) -> BatchReport:
        directory = Path(directory).expanduser()
        layout = ReportLayout(directory, self.config.pipeline)
        files = discover_books(directory, layout)
        report = BatchReport(input_dir=directory, total_files=len(files))
        if not files:
            logger.warning("No books found in %s", directory)
            report.complete()
            return report

        report_dir = layout.prepare()
        layout.register(files)
        workers = self.worker_count(len(files))
        logger.info("Analyzing %d book(s) from %s with %d worker(s)", len(files), directory, workers)

        progress_cfg = self.config.progress
        outcomes: Dict[Path, FileOutcome] = {}
        with ProgressAggregator(
            len(files),
            self.sink,
            completed_window=progress_cfg.completed_window,
            in_progress_window=progress_cfg.in_progress_window,
        ) as aggregator:
            pipeline = BookPipeline(
                self.config,
                layout,
                notify=aggregator.post,
                reader=self._reader,
                writer=self._writer,
                sleep=self._sleep,
            )
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="book") as executor:
                futures: Dict[Future, Path] = {executor.submit(pipeline.run, path): path for path in files}
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        outcomes[path] = future.result()
                    except Exception as exc:  # pragma: no cover - BookPipeline.run does not raise
                        logger.exception("Pipeline crashed for %s", path)
                        aggregator.failed(str(path), path.name)
                        outcomes[path] = FileOutcome(path=path, status=FileStatus.FAILED, error=str(exc))
        self.last_snapshot = aggregator.snapshot()

        for path in files:
            report.record(outcomes[path])
        report.complete()
        if self.config.pipeline.write_summary:
            self._write_summary(report_dir, report)
        logger.info(
            "Finished %s: %d completed, %d failed",
            directory,
            report.completed_count,
            report.failed_count,
        )
        return report

    def _write_summary(self, directory: Path, report: BatchReport) -> None:
        try:
            path = write_batch_summary(directory, report)
            logger.info("Batch summary saved to %s", path)
        except OSError as exc:
            logger.error("Failed to write batch summary in %s: %s", directory, exc)
