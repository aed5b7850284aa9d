"""CLI entrypoint for the book statistics batch."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from bookstats.config import (
    DEFAULT_CONFIG_PATH,
    AnalyzerConfig,
    OutputMode,
    TitleStrategy,
    apply_overrides,
    load_config,
)
from bookstats.pipeline.driver import BatchDriver
from bookstats.pipeline.progress import ConsoleProgressSink, LoggingProgressSink, ProgressSink

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookstats",
        description="Compute lexical statistics for every .txt book in a directory",
    )
    parser.add_argument("--inputs", type=Path, required=True, help="Directory with .txt books")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    parser.add_argument("--log-level", default=None, help="Logging level override")
    parser.add_argument("--max-workers", type=int, default=None, help="Worker cap (0 = one per book)")
    parser.add_argument("--retries", type=int, default=None, help="Attempts per read/write step")
    parser.add_argument("--retry-delay-ms", type=int, default=None, help="Delay between attempts")
    parser.add_argument(
        "--title-strategy",
        choices=[strategy.value for strategy in TitleStrategy],
        default=None,
        help="Take titles from the header line or from file names",
    )
    parser.add_argument(
        "--output-mode",
        choices=[mode.value for mode in OutputMode],
        default=None,
        help="Write reports into a subdirectory or beside each book with a suffix",
    )
    parser.add_argument(
        "--progress",
        choices=["bar", "log", "none"],
        default="bar",
        help="Progress display (default: bar)",
    )
    return parser


def build_config(args: argparse.Namespace, raw: Dict[str, Any]) -> AnalyzerConfig:
    merged = apply_overrides(
        raw,
        {
            "analysis": {"title_strategy": args.title_strategy},
            "retry": {"attempts": args.retries, "delay_ms": args.retry_delay_ms},
            "pipeline": {"max_workers": args.max_workers, "output_mode": args.output_mode},
            "runtime": {"log_level": args.log_level},
        },
    )
    return AnalyzerConfig.from_dict(merged)


def build_sink(kind: str) -> Optional[ProgressSink]:
    if kind == "bar":
        return ConsoleProgressSink()
    if kind == "log":
        return LoggingProgressSink()
    return None


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        config = build_config(args, load_config(args.config))
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(config.log_level)

    driver = BatchDriver(config, sink=build_sink(args.progress))
    try:
        report = driver.run(args.inputs)
    except (FileNotFoundError, NotADirectoryError) as exc:
        logger.error("%s", exc)
        return 2
    print(
        f"Processed {report.total_files} book(s): "
        f"{report.completed_count} completed, {report.failed_count} failed."
    )
    return 1 if report.failed_count else 0
