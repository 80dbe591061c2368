"""``load-base64($source, $mime: null)``: inline local assets as data URIs."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import filetype

from ..errors import FileNotFound, MimeDetectionFailed

if TYPE_CHECKING:
    from ..pipelines.builder import Builder

SIGNATURE = "load-base64($source, $mime: null)"


def cache_key(source: str, mime: Optional[str]) -> str:
    return f"{source}:{mime}" if mime else source


def _source_root(builder: "Builder") -> Path:
    if builder.current_run is not None:
        return builder.current_run.source.root
    return Path.cwd()


def encode_file(path: Path, mime: Optional[str] = None) -> str:
    if not path.is_file():
        raise FileNotFound(f"File not found: {path}")
    if not mime:
        mime = filetype.guess_mime(str(path))
    if not mime:
        raise MimeDetectionFailed(f"Failed to detect mimetype of: {path}")
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f'"data:{mime};base64,{payload}"'


def make_loader(builder: "Builder", cache: Dict[str, str]):
    def load_base64(source: Any, mime: Any = None) -> str:
        source_value = str(source)
        mime_value = mime if isinstance(mime, str) and mime else None
        key = cache_key(source_value, mime_value)
        if key in cache:
            return cache[key]
        encoded = encode_file(_source_root(builder) / source_value, mime_value)
        cache[key] = encoded
        return encoded

    return load_base64


def register(options: Mapping[str, Any], compiler_options: Dict[str, Any], builder: "Builder") -> None:
    builder.functions_enabled = True
    cache = builder.cache("base64")
    functions = compiler_options.setdefault("functions", {})
    functions[SIGNATURE] = make_loader(builder, cache)
