"""Configuration for the book statistics batch: YAML on disk, dataclasses in memory."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

DEFAULT_SKIP_PATTERNS: Tuple[str, ...] = (
    "trademark owner",
    "Project Gutenberg™",
    "electronic works",
    "harmless from all liability",
    "CHAPTER",
    "Chapter",
    "CONTENTS",
    "Title:",
    "Project Gutenberg",
)
DEFAULT_TITLE_PREFIX = "The Project Gutenberg eBook of"
DEFAULT_SENTENCE_TERMINATORS = ".!?;"


class TitleStrategy(str, Enum):
    """Where a book's display title comes from."""

    HEADER = "header"
    FILENAME = "filename"

    @classmethod
    def from_flag(cls, flag: str) -> "TitleStrategy":
        normalized = str(flag).strip().lower()
        for strategy in cls:
            if strategy.value == normalized:
                return strategy
        raise ValueError(f"Unsupported title strategy: {flag}")


class OutputMode(str, Enum):
    """Where per-book reports are written."""

    SUBDIR = "subdir"
    SUFFIX = "suffix"

    @classmethod
    def from_flag(cls, flag: str) -> "OutputMode":
        normalized = str(flag).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unsupported output mode: {flag}")


@dataclass
class AnalysisConfig:
    skip_patterns: Tuple[str, ...] = DEFAULT_SKIP_PATTERNS
    sentence_terminators: str = DEFAULT_SENTENCE_TERMINATORS
    title_strategy: TitleStrategy = TitleStrategy.HEADER
    title_prefix: str = DEFAULT_TITLE_PREFIX

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        patterns = data.get("skip_patterns")
        if patterns is None:
            patterns = DEFAULT_SKIP_PATTERNS
        elif isinstance(patterns, str):
            patterns = [patterns]
        terminators = data.get("sentence_terminators") or DEFAULT_SENTENCE_TERMINATORS
        return cls(
            skip_patterns=tuple(str(pattern) for pattern in patterns if pattern),
            sentence_terminators=str(terminators),
            title_strategy=TitleStrategy.from_flag(data.get("title_strategy", TitleStrategy.HEADER.value)),
            title_prefix=str(data.get("title_prefix", DEFAULT_TITLE_PREFIX) or ""),
        )


@dataclass
class RetryConfig:
    attempts: int = 10
    delay_ms: int = 1000

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryConfig":
        attempts = int(data.get("attempts", 10))
        delay_ms = int(data.get("delay_ms", 1000))
        if attempts < 1:
            raise ValueError(f"retry.attempts must be at least 1, got {attempts}")
        if delay_ms < 0:
            raise ValueError(f"retry.delay_ms must not be negative, got {delay_ms}")
        return cls(attempts=attempts, delay_ms=delay_ms)


@dataclass
class PipelineConfig:
    max_workers: int = 0  # 0 = one worker per discovered file
    output_mode: OutputMode = OutputMode.SUBDIR
    output_dir_name: str = "Stats"
    report_suffix: str = "_stats"
    write_summary: bool = True
    encoding: str = "utf-8"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        max_workers = int(data.get("max_workers", 0) or 0)
        if max_workers < 0:
            raise ValueError(f"pipeline.max_workers must not be negative, got {max_workers}")
        return cls(
            max_workers=max_workers,
            output_mode=OutputMode.from_flag(data.get("output_mode", OutputMode.SUBDIR.value)),
            output_dir_name=str(data.get("output_dir_name") or "Stats"),
            report_suffix=str(data.get("report_suffix") or "_stats"),
            write_summary=bool(data.get("write_summary", True)),
            encoding=str(data.get("encoding") or "utf-8"),
        )


@dataclass
class ProgressConfig:
    completed_window: int = 5
    in_progress_window: int = 8

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressConfig":
        return cls(
            completed_window=max(0, int(data.get("completed_window", 5))),
            in_progress_window=max(0, int(data.get("in_progress_window", 8))),
        )


@dataclass
class AnalyzerConfig:
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalyzerConfig":
        data = data or {}
        runtime_cfg = data.get("runtime") or {}
        return cls(
            analysis=AnalysisConfig.from_dict(data.get("analysis") or {}),
            retry=RetryConfig.from_dict(data.get("retry") or {}),
            pipeline=PipelineConfig.from_dict(data.get("pipeline") or {}),
            progress=ProgressConfig.from_dict(data.get("progress") or {}),
            log_level=str(runtime_cfg.get("log_level", "INFO")),
        )


def load_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("Config %s not found; using defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config at {path} is not a mapping")
    return raw


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Merge per-section overrides into a raw config dict, ignoring ``None`` values."""
    merged: Dict[str, Any] = {key: dict(value) if isinstance(value, dict) else value for key, value in config.items()}
    for section, values in overrides.items():
        target = merged.setdefault(section, {})
        for key, value in values.items():
            if value is not None:
                target[key] = value
    return merged
