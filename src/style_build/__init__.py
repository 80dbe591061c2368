"""Batch stylesheet builds: compile, post-process and write with source maps."""

__version__ = "0.1.0"

from .config import BuildConfig, load_build_config
from .errors import StyleBuildError
from .paths import PathData, resolve_path
from .pipelines.base import BuildRecord, BuildStats
from .pipelines.builder import Builder
from .cli import app

__all__ = [
    "BuildConfig",
    "BuildRecord",
    "BuildStats",
    "Builder",
    "PathData",
    "StyleBuildError",
    "load_build_config",
    "resolve_path",
    "app",
]
