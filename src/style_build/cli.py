"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.table import Table

from . import __version__
from .config import DEFAULT_COLORS, BuildConfig, deploy_options_file, load_build_config
from .errors import StyleBuildError
from .extensions import BUILTIN_EXTENSIONS
from .logging_utils import get_console, get_logger, set_global_log_level
from .pipelines.base import BuildRecord, BuildStats
from .pipelines.builder import Builder

app = typer.Typer(add_completion=False, help="Compile, post-process and write stylesheet trees")
console = get_console()
logger = get_logger("CLI")


def _version_callback(value: bool) -> None:
    if not value:
        return
    console.print(f"style-build@{__version__}")
    console.print(f"- Installed at: {Path(__file__).resolve().parent}")
    raise typer.Exit()


def parse_extensions(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    if raw.strip().lower() in {"all", "true"}:
        return list(BUILTIN_EXTENSIONS)
    return [name.strip() for name in raw.split(",") if name.strip()]


def parse_colors(raw: Optional[str], verbose: bool = False) -> List[int]:
    """Three ascending KiB limits, returned in bytes."""
    values: List[int] = []
    if raw:
        try:
            values = [int(part) for part in raw.split(",") if part.strip()]
        except ValueError:
            values = []
    if len(values) != 3 or values != sorted(values):
        if verbose and raw:
            logger.info("Using default coloring, --colors must contain 3 incrementing KiB limits")
        values = list(DEFAULT_COLORS)
    return [value * 1024 for value in values]


def size_style(size: int, limits: Sequence[int]) -> str:
    green, yellow, red = limits
    if size <= green:
        return "green"
    if size <= yellow:
        return "yellow"
    if size > red:
        return "red"
    return "default"


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.2f} KiB"


def _output_size(record: BuildRecord) -> Optional[int]:
    if record.output.path not in record.written:
        return None
    return record.output.path.stat().st_size


def _file_line(record: BuildRecord, limits: Sequence[int]) -> str:
    line = f"- [cyan]{record.input.rel}[/cyan]"
    size = _output_size(record)
    if size is None:
        return f"{line} [bold red]Skipped[/bold red]"
    style = size_style(size, limits)
    line += f" [red]>[/red] [cyan]{record.output.rel}[/cyan] [{style}]{_format_size(size)}[/{style}]"
    if Path(f"{record.output.path}.map") in record.written:
        line += " [red]([/red][cyan].map[/cyan][red])[/red]"
    return line


def _print_stats(stats: BuildStats, limits: Sequence[int]) -> None:
    table = Table(title="Overview", show_header=True, header_style="bold cyan")
    for column in ("Sources", "Rendered", "Processed", "Written", "Maps", "Seconds"):
        table.add_column(column, justify="right")
    table.add_row(
        str(stats.sources),
        str(stats.rendered),
        str(stats.processed),
        str(stats.written),
        str(stats.maps),
        f"{stats.duration_seconds:.2f}",
    )
    console.print(table)

    records = [item for item in stats.files if isinstance(item, BuildRecord)]
    if not records:
        return
    details = Table(title="Render and processing details", show_header=True, header_style="bold magenta")
    details.add_column("Source")
    details.add_column("Output")
    details.add_column("Includes", justify="right")
    details.add_column("Size", justify="right")
    details.add_column("Seconds", justify="right")
    for record in records:
        size = _output_size(record)
        included = record.stats["rendered"] or []
        total = record.timings["total"]
        if size is None:
            size_cell = "[bold red]Skipped[/bold red]"
        else:
            style = size_style(size, limits)
            size_cell = f"[{style}]{_format_size(size)}[/{style}]"
        details.add_row(
            record.input.rel,
            record.output.rel,
            str(len(included)),
            size_cell,
            f"{total:.2f}" if total is not None else "-",
        )
    console.print(details)


def _build_config(
    config_path: Optional[Path],
    verbose: bool,
    compressed: bool,
    with_map: bool,
    no_postprocess: bool,
    environment: Optional[str],
    options_dir: Optional[Path],
    no_options: bool,
    extensions: Optional[str],
    loose: bool,
) -> BuildConfig:
    config = load_build_config(config_path) if config_path else BuildConfig()
    if loose:
        config.strict = False
    if verbose:
        config.verbose = True
    if compressed:
        config.minify = True
    if with_map:
        config.source_map = True
    if no_postprocess:
        config.postprocess = False
    if environment:
        config.environment = environment
    if options_dir is not None:
        config.options_dir = str(options_dir)
    if no_options:
        config.use_options_file = False
    config.extensions = [*config.extensions, *parse_extensions(extensions)]
    return config


@app.command()
def build(
    source: Optional[Path] = typer.Argument(None, help="Source file or directory"),
    target: Optional[Path] = typer.Argument(None, help="Target directory"),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version"
    ),
    show_stats: bool = typer.Option(False, "--stats", "-s", help="Show build statistics"),
    verbose: bool = typer.Option(False, "--verbose", "-i", help="Show per-file output and full errors"),
    compressed: bool = typer.Option(False, "--compressed", "-c", help="Minify the output"),
    with_map: bool = typer.Option(False, "--with-map", "-m", help="Write source maps"),
    no_postprocess: bool = typer.Option(False, "--no-postprocess", "-p", help="Skip post-processing"),
    env: Optional[str] = typer.Option(None, "--env", help="Build environment name"),
    production: bool = typer.Option(False, "--production", help="Shortcut for --env production"),
    development: bool = typer.Option(False, "--development", help="Shortcut for --env development"),
    options_dir: Optional[Path] = typer.Option(
        None, "--options", help="Directory holding the extension options file"
    ),
    no_options: bool = typer.Option(False, "--no-options", help="Do not load an extension options file"),
    extensions: Optional[str] = typer.Option(
        None, "--extensions", "-e", help="Comma separated extensions, or 'all'"
    ),
    colors: Optional[str] = typer.Option(
        None, "--colors", "-w", help="Three ascending KiB limits for size coloring"
    ),
    loose: bool = typer.Option(False, "--loose", "-u", help="Report errors and keep building"),
    deploy_config: bool = typer.Option(
        False, "--deploy-config", help="Write an extension options file to the current directory"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to YAML build config"),
) -> None:
    if deploy_config:
        try:
            written = deploy_options_file(Path.cwd(), BUILTIN_EXTENSIONS)
        except FileExistsError as exc:
            logger.error(str(exc))
            raise typer.Exit(code=1)
        console.print(f"[bold green]Created[/bold green] {written}")
        return

    if production:
        env = "production"
    elif development:
        env = "development"

    try:
        config = _build_config(
            config_path, verbose, compressed, with_map, no_postprocess,
            env, options_dir, no_options, extensions, loose,
        )
    except (FileNotFoundError, TypeError, ValueError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1)

    limits = parse_colors(colors, config.verbose) if colors else [value * 1024 for value in config.colors]

    # One argument names the target; the working directory is the source.
    if target is None:
        source, target = Path.cwd(), source or Path.cwd()

    builder = Builder(sink=logger)
    config.apply(builder)
    if builder.verbose:
        set_global_log_level(logging.DEBUG)
    if builder.strict and builder.verbose:
        logger.warning("Running in strict mode!")

    built = 0
    try:
        with console.status("Building...") as status:

            def _progress(record: BuildRecord, stats: BuildStats, _builder: Builder) -> bool:
                nonlocal built
                built += 1
                width = len(str(stats.sources))
                status.update(f"Built ({built:>{width}}/{stats.sources})...")
                return True

            stats = builder.run(source, target, _progress, config.extensions)
    except (StyleBuildError, OSError) as exc:
        if builder.verbose:
            logger.error("Something went wrong", exc_info=exc)
        else:
            logger.error(f"Something went wrong: {exc}")
        raise typer.Exit(code=1)

    if builder.verbose:
        for item in stats.files:
            if isinstance(item, BuildRecord):
                console.print(_file_line(item, limits))

    if not stats.written:
        if stats.sources:
            logger.warning("style-build did not write any files!")
        else:
            logger.error("style-build did not find any files!")
    else:
        plural = "" if stats.written == 1 else "s"
        console.print(
            f"[bold green]style-build wrote[/bold green] {stats.written} file{plural} "
            f"in {stats.duration_seconds:.2f}s"
        )

    if show_stats:
        _print_stats(stats, limits)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
