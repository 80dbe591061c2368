from pathlib import Path

import pytest
from typer.testing import CliRunner

from style_build.cli import _output_size, app, console, parse_colors, parse_extensions, size_style
from style_build.config import OPTIONS_FILENAME
from style_build.errors import WriteFailed
from style_build.logging_utils import get_console
from style_build.pipelines.builder import Builder

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_build_directory(write_tree, tmp_path: Path):
    src = write_tree({"main.scss": "body { color: red; }", "_vars.scss": "$x: 1;"})
    dist = tmp_path / "dist"

    result = runner.invoke(app, [str(src), str(dist)])

    assert result.exit_code == 0, result.output
    assert "color: red" in (dist / "main.css").read_text()
    assert not (dist / "_vars.css").exists()
    assert not (dist / "main.css.map").exists()


def test_build_compressed_with_map(write_tree, tmp_path: Path):
    src = write_tree({"main.scss": "body { color: red; }"})
    dist = tmp_path / "dist"

    result = runner.invoke(app, [str(src), str(dist), "-c", "-m", "--stats"])

    assert result.exit_code == 0, result.output
    assert (dist / "main.min.css").exists()
    assert (dist / "main.min.css.map").exists()
    assert "Overview" in result.output


def test_single_argument_is_target(write_tree, tmp_path: Path):
    (tmp_path / "site.scss").write_text("a { color: blue; }")

    result = runner.invoke(app, ["out"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "out" / "site.css").exists()


def test_strict_failure_exits_non_zero(write_tree, tmp_path: Path):
    src = write_tree({"broken.scss": "body { color: ; "})

    result = runner.invoke(app, [str(src), str(tmp_path / "dist")])

    assert result.exit_code == 1


def test_loose_failure_still_exits_zero(write_tree, tmp_path: Path):
    src = write_tree({"broken.scss": "body { color: ; ", "ok.scss": "a { color: red; }"})
    dist = tmp_path / "dist"

    result = runner.invoke(app, [str(src), str(dist), "--loose"])

    assert result.exit_code == 0, result.output
    assert (dist / "ok.css").exists()
    assert not (dist / "broken.css").exists()


def test_missing_source_exits_non_zero(tmp_path: Path):
    result = runner.invoke(app, [str(tmp_path / "missing"), str(tmp_path / "dist"), "--loose"])
    assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "style-build@" in result.output


def test_deploy_config(tmp_path: Path):
    result = runner.invoke(app, ["--deploy-config"])
    assert result.exit_code == 0, result.output
    assert "base64" in (tmp_path / OPTIONS_FILENAME).read_text()

    again = runner.invoke(app, ["--deploy-config"])
    assert again.exit_code == 1


def test_parse_extensions():
    assert parse_extensions(None) == []
    assert parse_extensions("all") == ["base64"]
    assert parse_extensions("true") == ["base64"]
    assert parse_extensions("a, b,") == ["a", "b"]


def test_parse_colors():
    assert parse_colors("10,20,30") == [10 * 1024, 20 * 1024, 30 * 1024]
    assert parse_colors("30,20,10") == [100 * 1024, 200 * 1024, 300 * 1024]
    assert parse_colors("1,2") == [100 * 1024, 200 * 1024, 300 * 1024]
    assert parse_colors("x,y,z") == [100 * 1024, 200 * 1024, 300 * 1024]


def test_size_style():
    limits = [100, 200, 300]
    assert size_style(50, limits) == "green"
    assert size_style(150, limits) == "yellow"
    assert size_style(250, limits) == "default"
    assert size_style(400, limits) == "red"


def test_failed_map_write_still_reports_css_size(write_tree, tmp_path: Path):
    src = write_tree({"main.scss": "body { color: red; }"})
    dist = tmp_path / "dist"
    (dist / "main.css.map").mkdir(parents=True)
    builder = Builder()
    builder.strict = False
    builder.compiler_options["output_style"] = "expanded"

    stats = builder.run(src, dist)

    record = stats.files[0]
    assert isinstance(record.errors[0], WriteFailed)
    assert _output_size(record) == (dist / "main.css").stat().st_size

    result = runner.invoke(app, [str(src), str(dist), "-m", "-u", "-i"])
    assert result.exit_code == 0, result.output
    assert "Skipped" not in result.output


def test_cli_shares_the_logging_console():
    assert console is get_console()
