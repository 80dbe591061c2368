"""Configuration dataclasses and the plugin-options file helpers."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import yaml

from .errors import OptionsFileError

if TYPE_CHECKING:
    from .pipelines.builder import Builder

OPTIONS_FILENAME = ".stylebuild.yaml"
DEFAULT_COLORS = [100, 200, 300]


@dataclass
class BuildConfig:
    strict: bool = True
    verbose: bool = False
    minify: bool = False
    source_map: bool = False
    postprocess: bool = True
    environment: Optional[str] = None
    load_paths: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=list)
    options_dir: Optional[str] = None
    use_options_file: bool = True
    colors: List[int] = field(default_factory=lambda: list(DEFAULT_COLORS))

    def apply(self, builder: "Builder") -> None:
        builder.strict = self.strict
        builder.verbose = self.verbose
        builder.environment = self.environment
        builder.postprocess = self.postprocess
        builder.compiler_options["output_style"] = "compressed" if self.minify else "expanded"
        builder.compiler_options["source_map"] = self.source_map
        builder.compiler_options["load_paths"] = [
            Path(path).expanduser() for path in self.load_paths
        ]
        builder.options_dir = Path(self.options_dir).expanduser() if self.options_dir else None
        builder.use_options_file = self.use_options_file


def load_build_config(path: str | Path) -> BuildConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Config file must contain a YAML mapping at the top level.")

    known = {item.name for item in fields(BuildConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {unknown}")
    return BuildConfig(**raw)


def find_options_file(directories: Iterable[Path]) -> Optional[Path]:
    for directory in directories:
        candidate = Path(directory) / OPTIONS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_plugin_options(path: str | Path) -> Dict[str, Any]:
    """Read ``{extension: {options: {...}}}``; JSON content is valid YAML."""

    options_path = Path(path)
    try:
        with options_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise OptionsFileError(f"Failed to read options file: {options_path}") from exc

    if not isinstance(raw, dict):
        raise OptionsFileError(f"Options file must contain a mapping: {options_path}")
    return raw


def deploy_options_file(directory: str | Path, extensions: Iterable[str]) -> Path:
    target = Path(directory) / OPTIONS_FILENAME
    if target.exists():
        raise FileExistsError(f"Options file already exists: {target}")
    scaffold = {name: {"options": {}} for name in extensions}
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(scaffold, handle, sort_keys=True)
    return target
