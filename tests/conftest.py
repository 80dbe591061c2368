from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import pytest

from style_build.compiler import CompileResult
from style_build.pipelines.builder import Builder

_IMPORT = re.compile(r'@import "(.+)";')


class FakeCompiler:
    """Returns each imported file's text verbatim as its CSS."""

    def __init__(self, fail_on: Tuple[str, ...] = (), empty_on: Tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.empty_on = empty_on
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, template: str, options: Mapping[str, Any]) -> CompileResult:
        self.calls.append((template, dict(options)))
        path = Path(_IMPORT.search(template).group(1))
        if path.name in self.fail_on:
            raise ValueError(f"Invalid CSS after \"color:\": {path.name}")
        if path.name in self.empty_on:
            return CompileResult(css="")
        source_map = None
        if options.get("source_map"):
            source_map = json.dumps({"version": 3, "sources": [path.name], "mappings": "AAAA"})
        return CompileResult(css=path.read_text(), source_map=source_map, included_files=[str(path)])


@pytest.fixture
def write_tree(tmp_path: Path):
    def _write(files: Mapping[str, str], root: str = "src") -> Path:
        base = tmp_path / root
        for name, content in files.items():
            path = base / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return base

    return _write


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def builder(tmp_path: Path, monkeypatch, fake_compiler: FakeCompiler) -> Builder:
    monkeypatch.chdir(tmp_path)
    instance = Builder(compiler=fake_compiler)
    instance.compiler_options["output_style"] = "expanded"
    instance.compiler_options["source_map"] = False
    instance.postprocess = False
    return instance
