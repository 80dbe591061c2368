"""Compiler boundary: root template construction and the libsass adapter."""

from __future__ import annotations

import json
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import sass

ROOT_TEMPLATE = """{prepend}$build-env: {environment};
$build-production: {production};
@import "{import_target}";
"""

_SIGNATURE = re.compile(r"^\s*([\w-]+)\s*\((.*)\)\s*$")


@dataclass
class CompileResult:
    css: str
    source_map: Optional[str] = None
    included_files: List[str] = field(default_factory=list)


Compiler = Callable[[str, Mapping[str, Any]], CompileResult]


def build_root_template(
    import_target: Path | str,
    environment: Optional[str] = None,
    production: bool = False,
    prepend: str = "",
) -> str:
    """Entry point that declares build variables before importing the real file."""

    if prepend and not prepend.endswith("\n"):
        prepend += "\n"
    return ROOT_TEMPLATE.format(
        prepend=prepend,
        environment=json.dumps(environment) if environment else "null",
        production="true" if production else "false",
        import_target=Path(import_target).as_posix(),
    )


def _sass_function(signature: str, func: Callable[..., Any]) -> sass.SassFunction:
    match = _SIGNATURE.match(signature)
    if not match:
        return sass.SassFunction.from_lambda(signature.strip(), func)
    name, raw_args = match.groups()
    arguments = tuple(arg.strip() for arg in raw_args.split(",") if arg.strip())
    return sass.SassFunction(name, arguments, func)


def _included_from_map(source_map: str, map_dir: Path, entry: Path) -> List[str]:
    payload = json.loads(source_map)
    included: List[str] = []
    for source in payload.get("sources", []):
        resolved = (map_dir / source).resolve()
        if resolved != entry.resolve():
            included.append(str(resolved))
    return included


def compile_sass(template: str, options: Mapping[str, Any]) -> CompileResult:
    kwargs: Dict[str, Any] = {
        "output_style": options.get("output_style", "expanded"),
        "include_paths": [str(path) for path in options.get("load_paths") or []],
    }
    functions = options.get("functions") or {}
    if functions:
        kwargs["custom_functions"] = [
            _sass_function(signature, func) for signature, func in functions.items()
        ]

    want_map = bool(options.get("source_map"))

    # libsass only emits maps in filename mode; the map also lists the imports
    with tempfile.TemporaryDirectory(prefix="style-build-") as tmp:
        entry = Path(tmp) / "root.scss"
        entry.write_text(template, encoding="utf-8")
        output_path = Path(options.get("output_path") or entry.with_suffix(".css"))
        map_path = Path(f"{output_path}.map")
        css, source_map = sass.compile(
            filename=str(entry),
            source_map_filename=str(map_path),
            output_filename_hint=str(output_path),
            source_map_contents=want_map,
            omit_source_map_url=not want_map,
            **kwargs,
        )
        included = _included_from_map(source_map, map_path.parent, entry)
    return CompileResult(
        css=css,
        source_map=source_map if want_map else None,
        included_files=included,
    )
