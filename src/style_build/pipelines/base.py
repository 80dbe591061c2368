"""Shared pipeline models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..paths import PathData, resolve_path
from ..resolvers import SourceDescriptor, TargetDescriptor

TIMING_KEYS = ("total", "rendered", "processed", "written")


class Stopwatch:
    """Measures one file's total time plus the time spent in each stage."""

    def __init__(self) -> None:
        self.started = perf_counter()
        self._last = self.started

    def lap(self) -> float:
        now = perf_counter()
        elapsed = now - self._last
        self._last = now
        return elapsed

    def elapsed(self) -> float:
        return perf_counter() - self.started


class BuildRecord:
    """Per-file state carried through render, process and write.

    ``css`` and ``map`` read the latest entry of their history and append on
    assignment, so each stage that rewrites content leaves the previous value
    in place for debugging until :meth:`clear_memory` runs.
    """

    def __init__(
        self,
        file: Path,
        source: SourceDescriptor,
        target: TargetDescriptor,
        append: str = "",
        ext: str = ".css",
    ) -> None:
        self.source_file = Path(file)
        self.source = source
        self.target = target
        self.input: PathData = resolve_path(self.source_file, source.root)
        self.output: PathData = resolve_path(
            target.resolved / self.input.rel, target.resolved, append + ext
        )
        self.css_history: List[str] = []
        self.map_history: List[str] = []
        self.timings: Dict[str, Optional[float]] = {key: None for key in TIMING_KEYS}
        self.stats: Dict[str, Any] = {"rendered": None, "processed": None}
        self._errors: List[BaseException] = []
        self.written: List[Path] = []
        self.stopwatch = Stopwatch()

    @property
    def css(self) -> Optional[str]:
        return self.css_history[-1] if self.css_history else None

    @css.setter
    def css(self, value: str) -> None:
        self.css_history.append(value)

    @property
    def map(self) -> Optional[str]:
        return self.map_history[-1] if self.map_history else None

    @map.setter
    def map(self, value: str) -> None:
        self.map_history.append(value)

    @property
    def errors(self) -> List[BaseException]:
        return self._errors

    @errors.setter
    def errors(self, value: Union[BaseException, Sequence[BaseException]]) -> None:
        if isinstance(value, (list, tuple)):
            self._errors = list(value)
        else:
            self._errors.append(value)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def mark(self, stage: str) -> float:
        """Record the time since the previous mark as ``stage``'s duration."""
        duration = self.stopwatch.lap()
        self.timings[stage] = duration
        return duration

    def finish(self) -> float:
        total = self.stopwatch.elapsed()
        self.timings["total"] = total
        return total

    def clear_memory(self) -> None:
        self.css_history = []
        self.map_history = []

    def __repr__(self) -> str:
        return f"BuildRecord({self.input.rel!r} -> {self.output.rel!r})"


@dataclass
class BuildStats:
    sources: int = 0
    rendered: int = 0
    processed: int = 0
    written: int = 0
    maps: int = 0
    files: List[Union[BuildRecord, Tuple[str, str]]] = field(default_factory=list)
    duration_seconds: float = 0.0
    options_file: Optional[Path] = None
