"""Maps each input book to its report path."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Set

from bookstats.config import OutputMode, PipelineConfig
from bookstats.titles import MAX_FILENAME_BYTES, safe_filename, truncate_utf8

_STEM_TAG_BYTES = 60


class ReportLayout:
    """
    Resolves report destinations for one batch.

    Suffix mode is a pure function of the input path. Subdirectory mode names
    reports after book titles, so two books can want the same file. Sources
    passed to :meth:`register` claim names in discovery order: a book waits in
    :meth:`report_path` until every earlier-discovered book has claimed a name
    or been released. The first claimant gets ``<title>.txt``; later ones get
    ``<title> (<stem>).txt`` and then numbered variants until a free name turns up.
    """

    def __init__(self, input_dir: Path, config: PipelineConfig) -> None:
        self.input_dir = input_dir
        self.mode = config.output_mode
        self.suffix = config.report_suffix
        self.report_dir = input_dir / config.output_dir_name if self.mode is OutputMode.SUBDIR else input_dir
        self._order: Dict[Path, int] = {}
        self._sources: List[Path] = []
        self._settled: Set[Path] = set()
        self._claims: Dict[Path, Path] = {}
        self._taken: Set[Path] = set()
        self._cond = threading.Condition()

    def prepare(self) -> Path:
        self.report_dir.mkdir(parents=True, exist_ok=True)
        return self.report_dir

    def is_report(self, path: Path) -> bool:
        return self.mode is OutputMode.SUFFIX and path.stem.endswith(self.suffix)

    def register(self, sources: Iterable[Path]) -> None:
        """Record discovery order; must be called before any pipeline starts."""
        with self._cond:
            self._sources = list(sources)
            self._order = {source: idx for idx, source in enumerate(self._sources)}

    def release(self, source: Path) -> None:
        """Mark ``source`` as done with naming, claimed or not."""
        with self._cond:
            if source not in self._settled:
                self._settled.add(source)
                self._cond.notify_all()

    def report_path(self, source: Path, title: str) -> Path:
        if self.mode is OutputMode.SUFFIX:
            return source.with_name(f"{source.stem}{self.suffix}.txt")
        name = safe_filename(title, fallback=source.stem)
        with self._cond:
            claimed = self._claims.get(source)
            if claimed is not None:
                return claimed
            self._cond.wait_for(lambda: self._earlier_settled(source))
            for candidate in self._candidates(name, source):
                target = self.report_dir / f"{candidate}.txt"
                if target not in self._taken:
                    break
            self._taken.add(target)
            self._claims[source] = target
            self._settled.add(source)
            self._cond.notify_all()
            return target

    def _earlier_settled(self, source: Path) -> bool:
        index = self._order.get(source)
        if index is None:
            return True
        return all(other in self._settled for other in self._sources[:index])

    @staticmethod
    def _candidates(name: str, source: Path) -> Iterator[str]:
        yield name
        tag = truncate_utf8(source.stem, _STEM_TAG_BYTES)
        counter = 1
        while True:
            tail = f" ({tag})" if counter == 1 else f" ({tag} {counter})"
            head = truncate_utf8(name, MAX_FILENAME_BYTES - len(tail.encode("utf-8"))).rstrip()
            yield head + tail
            counter += 1
