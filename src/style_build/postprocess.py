"""CSS-to-CSS transform chain applied after compilation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional


@dataclass
class ProcessResult:
    css: str
    map: Optional[str] = None
    messages: List[str] = field(default_factory=list)


Processor = Callable[[str, Dict[str, Any]], ProcessResult]


def run_processors(
    processors: Iterable[Processor], css: str, options: Mapping[str, Any]
) -> ProcessResult:
    """Feed ``css`` through each processor in order.

    Every processor sees the map produced so far as ``previous_map``. A
    processor returning no map leaves the current one untouched.
    """

    current = ProcessResult(css=css, map=options.get("previous_map"))
    for processor in processors:
        step_options = dict(options)
        step_options["previous_map"] = current.map
        result = processor(current.css, step_options)
        current = ProcessResult(
            css=result.css,
            map=result.map if result.map is not None else current.map,
            messages=current.messages + list(result.messages),
        )
    return current
