"""Turn user-supplied source/target paths into concrete build inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .errors import SourceEmpty, SourceNotFound, TargetNotDirectory

SUPPORTED_SUFFIXES = {".scss", ".sass"}
PARTIAL_PREFIX = "_"


@dataclass
class SourceDescriptor:
    root: Path
    original: str
    resolved: Path
    files: List[Path] = field(default_factory=list)


@dataclass
class TargetDescriptor:
    original: str
    resolved: Path
    created: bool = False


def is_partial(path: Path) -> bool:
    return path.name.startswith(PARTIAL_PREFIX)


def _walk_sources(directory: Path) -> Iterable[Path]:
    for file_path in sorted(directory.rglob("*")):
        if not file_path.is_file():
            continue
        if file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue
        if is_partial(file_path):
            continue
        yield file_path


def resolve_source(source: Path | str) -> SourceDescriptor:
    resolved = Path(source).expanduser().resolve()
    if not resolved.exists():
        raise SourceNotFound(f"Source not found: {resolved}")

    if resolved.is_dir():
        files = list(_walk_sources(resolved))
        if not files:
            raise SourceEmpty(f"Source is empty: {resolved}")
        root = resolved
    else:
        files = [resolved]
        root = resolved.parent

    return SourceDescriptor(root=root, original=str(source), resolved=resolved, files=files)


def resolve_target(target: Path | str) -> TargetDescriptor:
    resolved = Path(target).expanduser().resolve()
    created = False
    if not resolved.exists():
        resolved.mkdir(parents=True, exist_ok=True)
        created = True
    elif not resolved.is_dir():
        raise TargetNotDirectory(f"Target must be a directory: {resolved}")
    return TargetDescriptor(original=str(target), resolved=resolved, created=created)
