from pathlib import Path

import pytest

from conftest import FakeCompiler
from style_build.errors import (
    AlreadyLoaded,
    ExtensionFailed,
    ExtensionNotCallable,
    ExtensionNotFound,
    InvalidOptionsObject,
)
from style_build.extensions import import_extension, parse_extension_spec
from style_build.pipelines.builder import Builder


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, options, compiler_options, builder):
        self.calls.append((options, compiler_options, builder))


def _builder(factories):
    return Builder(compiler=FakeCompiler(), resolver=lambda module: factories.get(module))


def test_parse_extension_spec():
    assert parse_extension_spec("base64") == ("base64", "base64")
    assert parse_extension_spec("icons:my_pkg.icons") == ("icons", "my_pkg.icons")


def test_loading_same_name_twice_fails():
    recorder = Recorder()
    builder = _builder({"icons": recorder})
    builder.load_extension("icons")
    with pytest.raises(AlreadyLoaded):
        builder.load_extension("icons")
    assert len(recorder.calls) == 1
    assert builder.extensions.loaded == ["icons"]


def test_alias_module_is_resolved_by_module_path():
    recorder = Recorder()
    builder = _builder({"pkg.icons": recorder})
    assert builder.load_extension("icons:pkg.icons") == "icons"
    assert builder.extensions.is_loaded("icons")


def test_factory_receives_options_config_and_builder():
    recorder = Recorder()
    builder = _builder({"icons": recorder})
    builder.plugin_options = {"icons": {"options": {"size": 16}}}

    builder.load_extension("icons")

    options, compiler_options, engine = recorder.calls[0]
    assert options == {"size": 16}
    assert compiler_options is builder.compiler_options
    assert engine is builder


def test_explicit_options_override_options_file():
    recorder = Recorder()
    builder = _builder({"icons": recorder})
    builder.plugin_options = {"icons": {"options": {"size": 16}}}
    builder.load_extension("icons", {"size": 32})
    assert recorder.calls[0][0] == {"size": 32}


def test_missing_options_default_to_empty_mapping():
    recorder = Recorder()
    builder = _builder({"icons": recorder})
    builder.load_extension("icons")
    assert recorder.calls[0][0] == {}


def test_invalid_options_object():
    builder = _builder({"icons": Recorder()})
    builder.plugin_options = {"icons": {"options": ["size"]}}
    with pytest.raises(InvalidOptionsObject):
        builder.load_extension("icons")
    assert not builder.extensions.is_loaded("icons")


def test_unresolvable_extension():
    builder = _builder({})
    with pytest.raises(ExtensionNotFound):
        builder.load_extension("nope")


def test_non_callable_extension():
    builder = _builder({"icons": 42})
    with pytest.raises(ExtensionNotCallable):
        builder.load_extension("icons")


def test_factory_errors_are_wrapped():
    def explode(options, compiler_options, builder):
        raise RuntimeError("boom")

    builder = _builder({"icons": explode})
    with pytest.raises(ExtensionFailed) as info:
        builder.load_extension("icons")
    assert isinstance(info.value.__cause__, RuntimeError)
    assert not builder.extensions.is_loaded("icons")


def test_import_extension_from_file(tmp_path: Path):
    module = tmp_path / "banner.py"
    module.write_text(
        "def register(options, compiler_options, builder):\n"
        "    builder.prepend = options.get('text', '')\n"
    )
    builder = Builder(compiler=FakeCompiler())
    builder.load_extension(f"banner:{module}", {"text": "/* hi */"})
    assert builder.prepend == "/* hi */"


def test_import_extension_without_register(tmp_path: Path):
    module = tmp_path / "plain.py"
    module.write_text("VALUE = 1\n")
    builder = Builder(compiler=FakeCompiler())
    with pytest.raises(ExtensionNotCallable):
        builder.load_extension(f"plain:{module}")


def test_import_extension_missing_module(tmp_path: Path):
    with pytest.raises(ExtensionNotFound):
        import_extension("style_build_missing_extension")
    with pytest.raises(ExtensionNotFound):
        import_extension(str(tmp_path / "missing.py"))


def test_builtin_alias_resolves():
    from style_build.extensions import inline_base64

    assert import_extension("base64") is inline_base64.register
