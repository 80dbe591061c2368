"""Sequential render -> process -> write pipeline over a stylesheet tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..compiler import CompileResult, Compiler, build_root_template, compile_sass
from ..config import find_options_file, load_plugin_options
from ..errors import (
    EmptyOutput,
    InvalidOptionsObject,
    OptionsFileError,
    ProcessFailed,
    RenderFailed,
    StyleBuildError,
    WriteFailed,
)
from ..extensions import ExtensionRegistry, Resolver, import_extension
from ..logging_utils import get_logger
from ..postprocess import Processor, ProcessResult, run_processors
from ..resolvers import SourceDescriptor, TargetDescriptor, resolve_source, resolve_target
from .base import BuildRecord, BuildStats, Stopwatch

BeforeWrite = Callable[[BuildRecord, BuildStats, "Builder"], Optional[bool]]


@dataclass
class CurrentRun:
    source: SourceDescriptor
    target: TargetDescriptor


class Builder:
    """Owns build configuration and drives every source file through the stages.

    Errors raised by a stage are passed to :meth:`error`, which either raises
    them (strict mode) or logs them to ``sink`` and lets the run move on to
    the next file.
    """

    def __init__(
        self,
        sink: Optional[logging.Logger] = None,
        compiler: Compiler = compile_sass,
        resolver: Resolver = import_extension,
    ) -> None:
        self.sink = sink
        self.compiler = compiler
        self.strict = True
        self.verbose = False
        self.environment: Optional[str] = None
        self.prepend = ""
        self.compiler_options: Dict[str, Any] = {
            "output_style": "compressed",
            "source_map": True,
            "load_paths": [],
            "functions": {},
        }
        # informational; registered functions are always forwarded to the compiler
        self.functions_enabled = False
        self.postprocess = True
        self.processors: List[Processor] = []
        self.postprocess_options: Dict[str, Any] = {}
        self.output_ext = ".css"
        self.compressed_suffix = ".min"
        self.options_dir: Optional[Path] = None
        self.use_options_file = True
        self.plugin_options: Dict[str, Any] = {}
        self.keep_records = True
        self.current_run: Optional[CurrentRun] = None
        self.caches: Dict[str, Dict[str, Any]] = {}
        self.extensions = ExtensionRegistry(self, resolver=resolver)
        self.logger = get_logger("Builder")

    def error(self, err: BaseException, fatal: bool = False) -> None:
        if fatal or self.strict:
            raise err
        if self.sink is None:
            return
        if self.verbose:
            self.sink.error(str(err), exc_info=err)
        else:
            self.sink.error(str(err))

    def cache(self, name: str) -> Dict[str, Any]:
        return self.caches.setdefault(name, {})

    def load_extension(self, spec: str, options: Optional[Mapping[str, Any]] = None) -> str:
        return self.extensions.load(spec, options)

    @property
    def compressed(self) -> bool:
        return self.compiler_options.get("output_style") == "compressed"

    @property
    def production(self) -> bool:
        return self.environment == "production"

    def _compiler_options(self, record: BuildRecord) -> Dict[str, Any]:
        if not isinstance(self.compiler_options, Mapping):
            raise InvalidOptionsObject("Invalid compiler options object")
        options = dict(self.compiler_options)
        options["load_paths"] = [record.input.dir, *(options.get("load_paths") or [])]
        options["output_path"] = record.output.path
        options["functions"] = dict(options.get("functions") or {})
        return options

    def _process_options(self, record: BuildRecord) -> Dict[str, Any]:
        if not isinstance(self.postprocess_options, Mapping):
            raise InvalidOptionsObject("Invalid post-process options object")
        options = dict(self.postprocess_options)
        options["from"] = record.input.path
        options["to"] = record.output.path
        options["previous_map"] = record.map
        return options

    def options_search_path(self, source: SourceDescriptor) -> List[Path]:
        if self.options_dir is not None:
            return [Path(self.options_dir)]
        if not self.use_options_file:
            return []
        return [Path.cwd(), source.root]

    def load_options_file(self, source: SourceDescriptor) -> Optional[Path]:
        search = self.options_search_path(source)
        found = find_options_file(search)
        if found is None:
            if self.options_dir is not None:
                self.error(OptionsFileError(f"Options file not found in: {self.options_dir}"))
            return None
        try:
            self.plugin_options.update(load_plugin_options(found))
        except StyleBuildError as err:
            self.error(err)
            return None
        self.logger.debug("Loaded options file %s", found)
        return found

    def render(self, record: BuildRecord) -> CompileResult:
        template = build_root_template(
            record.input.path,
            environment=self.environment,
            production=self.production,
            prepend=self.prepend,
        )
        result = self.compiler(template, self._compiler_options(record))
        if not result.css or not result.css.strip():
            raise EmptyOutput(f"Render produced no output for: {record.input.path}")
        record.css = result.css
        if result.source_map:
            record.map = result.source_map
        record.stats["rendered"] = list(result.included_files)
        record.mark("rendered")
        return result

    def process(self, record: BuildRecord) -> ProcessResult:
        result = run_processors(self.processors, record.css or "", self._process_options(record))
        record.css = result.css
        if result.map is not None:
            record.map = result.map
        record.stats["processed"] = list(result.messages)
        record.mark("processed")
        return result

    def write(self, record: BuildRecord, stats: BuildStats) -> None:
        record.stopwatch.lap()
        output = record.output.path
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(record.css or "", encoding="utf-8")
        except OSError as exc:
            raise WriteFailed(f"Failed to write: {output}") from exc
        record.written.append(output)
        stats.written += 1

        source_map = record.map
        if source_map:
            map_path = Path(f"{output}.map")
            try:
                map_path.write_text(source_map, encoding="utf-8")
            except OSError as exc:
                raise WriteFailed(f"Failed to write: {map_path}") from exc
            record.written.append(map_path)
            stats.maps += 1
        record.mark("written")

    def _fail(self, record: BuildRecord, err: StyleBuildError) -> None:
        record.errors = err
        self.error(err)

    def build_file(
        self, file: Path, stats: BuildStats, callback: Optional[BeforeWrite] = None
    ) -> BuildRecord:
        assert self.current_run is not None
        append = self.compressed_suffix if self.compressed else ""
        record = BuildRecord(
            file,
            self.current_run.source,
            self.current_run.target,
            append=append,
            ext=self.output_ext,
        )

        try:
            self.render(record)
            stats.rendered += 1
        except EmptyOutput as err:
            self._fail(record, err)
            return record
        except Exception as exc:
            self._fail(record, RenderFailed(f"Render failed for: {file}", exc))
            return record

        if self.postprocess and self.processors:
            try:
                self.process(record)
                stats.processed += 1
            except Exception as exc:
                self._fail(record, ProcessFailed(f"Post-process failed for: {file}", exc))
                return record

        if callback is not None and callback(record, stats, self) is False:
            self.logger.debug("Write skipped by callback for %s", record.input.rel)
            record.finish()
            return record

        try:
            self.write(record, stats)
        except WriteFailed as err:
            self._fail(record, err)
        record.finish()
        return record

    def run(
        self,
        source: Path | str,
        target: Path | str,
        callback: Optional[BeforeWrite] = None,
        extensions: Optional[Iterable[str]] = None,
    ) -> BuildStats:
        clock = Stopwatch()
        source_info = resolve_source(source)
        target_info = resolve_target(target)
        self.current_run = CurrentRun(source=source_info, target=target_info)
        stats = BuildStats(sources=len(source_info.files))

        try:
            stats.options_file = self.load_options_file(source_info)
            for spec in extensions or []:
                try:
                    self.load_extension(spec)
                except StyleBuildError as err:
                    self.error(err)

            for file in source_info.files:
                record = self.build_file(file, stats, callback)
                record.clear_memory()
                if self.keep_records:
                    stats.files.append(record)
                else:
                    stats.files.append((record.input.rel, record.output.rel))
        finally:
            self.current_run = None

        stats.duration_seconds = clock.elapsed()
        self.logger.debug(
            "Built %s of %s sources in %.2fs", stats.written, stats.sources, stats.duration_seconds
        )
        return stats
