"""Tests for the command line entry point and settings handling."""

import json
import logging

import pytest

import constants
from args import parse_args
from cli_config import apply_resolver_overrides, build_env, load_settings
from common.logging_utils import Timer, extra_context
from constants import Constants, ExitCodes
from jspmresolve import main


@pytest.fixture(autouse=True)
def _isolate_constants(monkeypatch):
    """Restore resolver tunables and keep default settings locations out of reach."""
    monkeypatch.setattr(Constants, "DEFAULT_ENV", dict(Constants.DEFAULT_ENV))
    monkeypatch.setattr(Constants, "BROWSER_BUILTINS_DIR", Constants.BROWSER_BUILTINS_DIR)
    monkeypatch.setattr(Constants, "RESOLVE_NODE_MODULES", Constants.RESOLVE_NODE_MODULES)
    monkeypatch.setattr(constants, "_config_candidates", lambda: [])
    monkeypatch.delenv(Constants.ENV_LOG_LEVEL, raising=False)
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_jspm_resolve", False):
            root.removeHandler(handler)


def _run(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    return excinfo.value.code, lines


class TestParseArgs:
    """Test argument parsing."""

    def test_specifiers_and_flags(self):
        """Test positional specifiers and boolean flags."""
        args = parse_args(["a", "b", "-p", "/x/app.js", "--browser", "--cjs", "--async"])
        assert args.specifiers == ["a", "b"]
        assert args.PARENT == "/x/app.js"
        assert args.BROWSER and args.CJS and args.ASYNC
        assert not args.PRODUCTION
        assert not args.NO_NODE_MODULES

    def test_loglevel_is_case_insensitive(self):
        """Test that --loglevel accepts lower case."""
        assert parse_args(["a", "--loglevel", "debug"]).LOG_LEVEL == "DEBUG"

    def test_requires_specifier(self):
        """Test that at least one specifier is required."""
        with pytest.raises(SystemExit):
            parse_args([])


class TestCliConfig:
    """Test settings file loading and CLI overrides."""

    def test_yaml_settings(self, tmp_path):
        """Test resolver settings loaded from YAML."""
        settings_file = tmp_path / "settings.yml"
        settings_file.write_text(
            "resolver:\n"
            "  env:\n"
            "    browser: true\n"
            "  browser_builtins_dir: /shims\n"
            "  resolve_node_modules: false\n"
        )
        args = parse_args(["a", "-c", str(settings_file)])
        settings = load_settings(args)
        assert settings["resolver"]["browser_builtins_dir"] == "/shims"
        assert Constants.DEFAULT_ENV["browser"] is True
        assert Constants.BROWSER_BUILTINS_DIR == "/shims"
        assert Constants.RESOLVE_NODE_MODULES is False

    def test_json_settings(self, tmp_path):
        """Test resolver settings loaded from JSON."""
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({"resolver": {"browser_builtins_dir": "/json-shims"}}))
        load_settings(parse_args(["a", "-c", str(settings_file)]))
        assert Constants.BROWSER_BUILTINS_DIR == "/json-shims"

    def test_broken_settings_are_ignored(self, tmp_path, caplog):
        """Test that an unparsable settings file is logged and skipped."""
        settings_file = tmp_path / "settings.yml"
        settings_file.write_text("resolver: [unclosed")
        with caplog.at_level(logging.WARNING):
            assert load_settings(parse_args(["a", "-c", str(settings_file)])) == {}
        assert "Failed to load settings" in caplog.text

    def test_cli_overrides(self):
        """Test that CLI flags override resolver settings."""
        args = parse_args(["a", "--builtins-dir", "/cli-shims", "--no-node-modules"])
        apply_resolver_overrides(args)
        assert Constants.BROWSER_BUILTINS_DIR == "/cli-shims"
        assert Constants.RESOLVE_NODE_MODULES is False

    def test_build_env(self):
        """Test that only given flags enter the environment."""
        assert build_env(parse_args(["a"])) == {}
        assert build_env(parse_args(["a", "--browser", "--production"])) == {"browser": True, "production": True}


class TestMain:
    """Test the console entry point."""

    def test_success(self, project, capsys):
        """Test JSON output and exit code on success."""
        code, lines = _run(["a", "pkg/sub", "-p", project.path("app.js")], capsys)
        assert code == ExitCodes.SUCCESS.value
        assert lines == [
            {"specifier": "a", "resolved": project.path("b.js"), "format": "module"},
            {"specifier": "pkg/sub", "resolved": project.path("jspm_packages/npm/pkg@1.0.0/sub.js"), "format": "module"},
        ]

    def test_async_and_browser(self, project, capsys):
        """Test the asyncio path with the browser condition."""
        code, lines = _run(["c", "-p", project.path("app.js"), "--browser", "--async"], capsys)
        assert code == 0
        assert lines[0]["resolved"] == project.path("c-browser.js")

    def test_not_found_exit_code(self, project, capsys):
        """Test the exit code for a missing module."""
        code, lines = _run(["a", "nothing-here", "-p", project.path("app.js"), "--no-node-modules"], capsys)
        assert code == ExitCodes.MODULE_NOT_FOUND.value
        assert lines[1]["error"]["code"] == "MODULE_NOT_FOUND"

    def test_invalid_name_exit_code(self, project, capsys):
        """Test the exit code for a malformed specifier."""
        code, lines = _run(["//bad", "-p", project.path("app.js")], capsys)
        assert code == ExitCodes.INVALID_MODULE_NAME.value
        assert lines[0]["error"]["code"] == "INVALID_MODULE_NAME"

    def test_invalid_configuration_exit_code(self, project, capsys):
        """Test the exit code for a bad map target."""
        code, _ = _run(["outside", "-p", project.path("app.js")], capsys)
        assert code == ExitCodes.INVALID_CONFIGURATION.value

    def test_cjs_formats(self, project, capsys):
        """Test CommonJS format labels from --cjs."""
        _, lines = _run(["a", "--cjs", "-p", project.path("app.js")], capsys)
        assert lines[0]["format"] == "commonjs"


class TestLoggingUtils:
    """Test structured logging helpers."""

    def test_extra_context_orders_and_drops_none(self):
        """Test field ordering and None filtering."""
        extra = extra_context(target="t", custom=1, event="e", outcome=None)
        assert list(extra["context"].items()) == [("event", "e"), ("target", "t"), ("custom", 1)]

    def test_timer(self):
        """Test that Timer measures a duration."""
        with Timer() as timer:
            pass
        assert timer.duration_ms() >= 0.0
