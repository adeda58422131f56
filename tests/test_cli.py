"""Tests for the ghprojects CLI."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from ghprojects import __version__
from ghprojects.cli import app
from ghprojects.cli.commands.demo import parse_input_line
from ghprojects.core.config import PreferenceStore
from ghprojects.ui.events import KeyEvent

runner = CliRunner()


class TestApp:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"ghprojects v{__version__}" in result.output

    def test_invalid_settings_file(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("retry:\n  max_attempts: 0\n")
        result = runner.invoke(app, ["--config", str(path), "defaults", "list"])
        assert result.exit_code == 2
        assert "Error loading settings" in result.output

    @pytest.mark.parametrize("option", ["--log-level", "--log-format"])
    def test_invalid_logging_option(self, option: str) -> None:
        result = runner.invoke(app, [option, "foo", "classify", "Forbidden"])
        assert result.exit_code == 2
        assert "'foo'" in result.output

    def test_log_level_is_case_insensitive(self) -> None:
        result = runner.invoke(app, ["--log-level", "debug", "classify", "Forbidden"])
        assert result.exit_code == 0


class TestClassify:
    def test_table(self) -> None:
        result = runner.invoke(app, ["classify", "Forbidden", "--status", "403"])
        assert result.exit_code == 0
        assert "permission" in result.output
        assert "Retryable" in result.output

    def test_json(self) -> None:
        result = runner.invoke(app, ["classify", "API rate limit exceeded", "--json"])
        assert result.exit_code == 0
        assert '"kind": "rate_limit"' in result.output
        assert '"retryable": true' in result.output
        assert '"retry_after": 60.0' in result.output


class TestDefaults:
    def test_list_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        result = runner.invoke(app, ["defaults", "list", "--preferences", str(path)])
        assert result.exit_code == 0
        assert "No default repositories set." in result.output

    def test_list_and_clear(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        store = PreferenceStore(path)
        store.set_default_repository("PVT_1", "R_9")
        store.save()

        listed = runner.invoke(app, ["defaults", "list", "-p", str(path)])
        assert listed.exit_code == 0
        assert "PVT_1" in listed.output
        assert "R_9" in listed.output

        cleared = runner.invoke(app, ["defaults", "clear", "PVT_1", "-p", str(path)])
        assert cleared.exit_code == 0
        assert "Cleared default repository for PVT_1" in cleared.output
        assert PreferenceStore.open(path).defaults == {}

    def test_clear_missing(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        result = runner.invoke(app, ["defaults", "clear", "PVT_404", "-p", str(path)])
        assert result.exit_code == 1
        assert "No default repository set for project PVT_404" in result.output


class TestParseInputLine:
    @pytest.mark.parametrize(
        ("line", "keys"),
        [
            ("\n", ["enter"]),
            ("down down enter\n", ["down", "down", "enter"]),
            ("ctrl+s", ["ctrl+s"]),
            (":hi u\n", ["h", "i", "space", "u"]),
        ],
    )
    def test_tokens(self, line: str, keys: list[str]) -> None:
        assert parse_input_line(line) == [KeyEvent(k) for k in keys]


class TestDemo:
    def test_quit_from_owner_selection(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["demo", "--latency", "0", "--preferences", str(tmp_path / "config.json")],
            input="q\n",
        )
        assert result.exit_code == 0, result.output
        assert "Select owner" in result.output
        assert "octo-org" in result.output

