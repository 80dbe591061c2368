"""Input/output path metadata for a single stylesheet."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PathData:
    root: Path
    dir: Path
    name: str
    ext: str
    path: Path
    rel: str


def resolve_path(file: Path | str, root: Path | str, ext: Optional[str] = None) -> PathData:
    """Describe ``file`` relative to ``root``, optionally swapping its extension.

    ``rel`` is always rendered as ``./<relative path>`` so callers can tell it
    is root-relative regardless of the working directory.
    """

    file_path = Path(file)
    root_path = Path(root)
    directory = file_path.parent
    name = file_path.stem
    extension = ext or file_path.suffix
    path = directory / (name + extension) if ext else file_path
    rel = "." + os.sep + os.path.relpath(path, root_path)
    return PathData(
        root=root_path,
        dir=directory,
        name=name,
        ext=extension,
        path=path,
        rel=rel,
    )
