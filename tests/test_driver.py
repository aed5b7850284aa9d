import errno
import json
import time
from pathlib import Path

import pytest

from bookstats.config import (
    AnalysisConfig,
    AnalyzerConfig,
    OutputMode,
    PipelineConfig,
    ProgressConfig,
    RetryConfig,
    TitleStrategy,
)
from bookstats.pipeline.book_pipeline import read_book
from bookstats.pipeline.driver import BatchDriver, discover_books


def _config(**pipeline_overrides) -> AnalyzerConfig:
    return AnalyzerConfig(
        retry=RetryConfig(attempts=3, delay_ms=0),
        pipeline=PipelineConfig(**pipeline_overrides),
        progress=ProgressConfig(completed_window=100, in_progress_window=100),
    )


def _write_book(directory: Path, stem: str, title: str, body: str = "A short tale.\nThe end!\n") -> Path:
    path = directory / f"{stem}.txt"
    path.write_text(f"The Project Gutenberg eBook of {title}\n{body}", encoding="utf-8")
    return path


def test_batch_with_one_always_failing_file(tmp_path):
    _write_book(tmp_path, "a", "Alpha")
    _write_book(tmp_path, "b", "Beta")
    _write_book(tmp_path, "locked", "Gamma")

    def reader(path: Path, encoding: str) -> str:
        if path.stem == "locked":
            raise OSError(errno.EBUSY, "locked by another process", str(path))
        return read_book(path, encoding)

    snapshots = []
    driver = BatchDriver(_config(), sink=snapshots.append, reader=reader, sleep=lambda _: None)
    report = driver.run(tmp_path)

    assert report.total_files == 3
    assert report.completed_count == 2
    assert report.failed_count == 1
    assert list(report.failed) == [str(tmp_path / "locked.txt")]
    assert sorted(driver.last_snapshot.completed_titles) == ["Alpha", "Beta"]
    for snapshot in snapshots:
        assert "Gamma" not in snapshot.completed_titles
        assert "locked.txt" not in snapshot.completed_titles
    assert snapshots[-1].finished
    assert (tmp_path / "Stats" / "Alpha.txt").exists()
    assert (tmp_path / "Stats" / "Beta.txt").exists()


def test_many_books_complete_exactly_once(tmp_path):
    total = 25
    for idx in range(total):
        _write_book(tmp_path, f"book{idx}", f"Book {idx}")

    driver = BatchDriver(_config(max_workers=8), sleep=lambda _: None)
    report = driver.run(tmp_path)

    assert report.completed_count == total
    assert report.failed_count == 0
    completed = driver.last_snapshot.completed_titles
    assert len(completed) == total
    assert set(completed) == {f"Book {idx}" for idx in range(total)}
    assert driver.last_snapshot.in_progress_titles == ()
    # Outcomes are recorded in discovery order regardless of completion order.
    assert [outcome.path.stem for outcome in report.completed] == [f"book{idx}" for idx in range(total)]


def test_rerun_overwrites_reports(tmp_path):
    _write_book(tmp_path, "a", "Alpha", body="Cats sit.\nDogs run!\n")
    driver = BatchDriver(_config(), sleep=lambda _: None)

    driver.run(tmp_path)
    first = (tmp_path / "Stats" / "Alpha.txt").read_text(encoding="utf-8")
    driver.run(tmp_path)
    second = (tmp_path / "Stats" / "Alpha.txt").read_text(encoding="utf-8")

    assert first == second
    assert sorted(p.name for p in (tmp_path / "Stats").iterdir()) == ["Alpha.txt", "batch_report.json"]


def test_suffix_mode_writes_beside_books_and_skips_reports_on_rerun(tmp_path):
    _write_book(tmp_path, "a", "Alpha")
    _write_book(tmp_path, "b", "Beta")
    driver = BatchDriver(_config(output_mode=OutputMode.SUFFIX, write_summary=False), sleep=lambda _: None)

    driver.run(tmp_path)
    report = driver.run(tmp_path)

    assert report.total_files == 2
    assert (tmp_path / "a_stats.txt").exists()
    assert (tmp_path / "b_stats.txt").exists()
    assert not (tmp_path / "Stats").exists()


def test_duplicate_titles_get_distinct_reports(tmp_path):
    _write_book(tmp_path, "first", "Same Title")
    _write_book(tmp_path, "second", "Same Title")

    report = BatchDriver(_config(), sleep=lambda _: None).run(tmp_path)

    paths = {outcome.report_path for outcome in report.completed}
    assert len(paths) == 2
    assert all(path.exists() for path in paths)


def test_filename_title_strategy(tmp_path):
    _write_book(tmp_path, "pg11", "Alice")
    config = _config()
    config.analysis = AnalysisConfig(title_strategy=TitleStrategy.FILENAME)

    report = BatchDriver(config, sleep=lambda _: None).run(tmp_path)

    assert report.completed[0].title == "pg11"
    assert (tmp_path / "Stats" / "pg11.txt").exists()


def test_batch_summary_is_written(tmp_path):
    _write_book(tmp_path, "a", "Alpha", body="One two three.\n")
    BatchDriver(_config(), sleep=lambda _: None).run(tmp_path)

    payload = json.loads((tmp_path / "Stats" / "batch_report.json").read_text(encoding="utf-8"))
    assert payload["summary"]["completed"] == 1
    assert payload["summary"]["failed"] == 0
    assert payload["completed"][0]["title"] == "Alpha"


def test_empty_directory(tmp_path):
    report = BatchDriver(_config()).run(tmp_path)
    assert report.total_files == 0
    assert report.completed_count == 0
    assert not (tmp_path / "Stats").exists()


def test_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        BatchDriver(_config()).run(tmp_path / "nope")


def test_discovery_is_flat_and_naturally_ordered(tmp_path):
    for name in ("book10.txt", "book2.txt", "Book1.txt", "notes.md"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "book0.txt").write_text("x", encoding="utf-8")

    assert [path.name for path in discover_books(tmp_path)] == ["Book1.txt", "book2.txt", "book10.txt"]


def test_worker_count_cap():
    assert BatchDriver(_config(max_workers=0)).worker_count(12) == 12
    assert BatchDriver(_config(max_workers=4)).worker_count(12) == 4
    assert BatchDriver(_config(max_workers=4)).worker_count(2) == 2


def test_long_non_ascii_title_is_written_without_retrying(tmp_path):
    _write_book(tmp_path, "voina", "Война и мир " * 20)
    sleeps = []
    config = _config()
    config.retry = RetryConfig(attempts=10, delay_ms=1000)

    report = BatchDriver(config, sleep=sleeps.append).run(tmp_path)

    assert report.completed_count == 1
    assert sleeps == []
    assert report.completed[0].report_path.exists()


def test_duplicate_title_naming_follows_discovery_order(tmp_path):
    for stem in ("a", "b", "c"):
        _write_book(tmp_path, stem, "Dup")
    _write_book(tmp_path, "d", "Dup (b)")

    def reader(path: Path, encoding: str) -> str:
        # Finish later-discovered books first.
        time.sleep({"a": 0.15, "b": 0.1, "c": 0.05}.get(path.stem, 0))
        return read_book(path, encoding)

    report = BatchDriver(_config(), reader=reader, sleep=lambda _: None).run(tmp_path)

    names = {outcome.path.stem: outcome.report_path.name for outcome in report.completed}
    assert names == {
        "a": "Dup.txt",
        "b": "Dup (b).txt",
        "c": "Dup (c).txt",
        "d": "Dup (b) (d).txt",
    }
