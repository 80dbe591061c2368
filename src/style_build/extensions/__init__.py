"""Named extensions that mutate builder configuration at load time.

An extension is a module exposing ``register(options, compiler_options, builder)``.
It is referenced as ``name`` or ``name:module``, where ``module`` is a dotted
import path, a ``.py`` file, or one of the built-in aliases.
"""

from __future__ import annotations

import importlib
import importlib.util
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from ..errors import (
    AlreadyLoaded,
    ExtensionFailed,
    ExtensionNotCallable,
    ExtensionNotFound,
    InvalidOptionsObject,
)

if TYPE_CHECKING:
    from ..pipelines.builder import Builder

BUILTIN_EXTENSIONS: Dict[str, str] = {
    "base64": "style_build.extensions.inline_base64",
}

Resolver = Callable[[str], Any]


def _load_module_from_file(path: Path):
    spec = importlib.util.spec_from_file_location(f"style_build_ext_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ExtensionNotFound(f"Extension not found: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def import_extension(reference: str) -> Any:
    """Resolve ``reference`` to its ``register`` factory (the module if it has none)."""

    reference = BUILTIN_EXTENSIONS.get(reference, reference)
    file_path = Path(reference).expanduser()
    if file_path.suffix == ".py":
        if not file_path.is_file():
            raise ExtensionNotFound(f"Extension not found: {file_path}")
        module = _load_module_from_file(file_path.resolve())
    else:
        try:
            module = importlib.import_module(reference)
        except ModuleNotFoundError as exc:
            raise ExtensionNotFound(f"Extension not found: {reference}") from exc
    return getattr(module, "register", module)


def parse_extension_spec(spec: str) -> tuple[str, str]:
    name, _, module = spec.partition(":")
    name = name.strip()
    module = module.strip() or name
    return name, module


class ExtensionRegistry:
    def __init__(self, builder: "Builder", resolver: Resolver = import_extension) -> None:
        self.builder = builder
        self.resolver = resolver
        self.loaded: List[str] = []

    def is_loaded(self, name: str) -> bool:
        return name in self.loaded

    def _options_for(self, name: str, options: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        if options is None:
            entry = self.builder.plugin_options.get(name) or {}
            if not isinstance(entry, Mapping):
                raise InvalidOptionsObject(f"Invalid options entry for extension: {name}")
            options = entry.get("options") or {}
        if not isinstance(options, Mapping):
            raise InvalidOptionsObject(f"Invalid options object for extension: {name}")
        return options

    def load(self, spec: str, options: Optional[Mapping[str, Any]] = None) -> str:
        name, module = parse_extension_spec(spec)
        if self.is_loaded(name):
            raise AlreadyLoaded(f"Extension already loaded: {name}")

        try:
            factory = self.resolver(module)
        except ExtensionNotFound:
            raise
        except ImportError as exc:
            raise ExtensionNotFound(f"Extension not found: {module}") from exc
        if factory is None:
            raise ExtensionNotFound(f"Extension not found: {module}")
        if not callable(factory):
            raise ExtensionNotCallable(f"Extension is not callable: {name}")

        resolved_options = self._options_for(name, options)
        try:
            factory(resolved_options, self.builder.compiler_options, self.builder)
        except Exception as exc:
            raise ExtensionFailed(f"Extension failed to load: {name}") from exc

        self.loaded.append(name)
        return name
