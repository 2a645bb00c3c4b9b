"""Tests for the eval, check and tokens commands."""

from __future__ import annotations

import json
from concurrent.futures import Future
from pathlib import Path

import pytest
from click.testing import CliRunner

from condexpr.cli import main
from condexpr.cli.check import _await_result
from condexpr.cli.exit_codes import ExitCode


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep CLI runs away from the user's config and the root logger."""
    monkeypatch.setattr("condexpr.cli._configure_logging", lambda *args: None)
    monkeypatch.setenv("CONDEXPR_CONFIG_PATH", str(tmp_path / "missing.toml"))
    for suffix in ("MAX_WORKERS", "CACHE_SIZE", "LOG_LEVEL", "LOG_FILE", "LOG_FORMAT"):
        monkeypatch.delenv(f"CONDEXPR_{suffix}", raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def conditions_file(tmp_path: Path):
    def write(text: str) -> Path:
        path = tmp_path / "conditions.yaml"
        path.write_text(text)
        return path

    return write


class TestEvalCommand:
    """Tests for `condexpr eval`."""

    def test_true_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "2 > 1"])
        assert result.exit_code == ExitCode.SUCCESS
        assert result.output.strip() == "true"

    def test_false_exits_one(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "1 > 2"])
        assert result.exit_code == ExitCode.CONDITION_FALSE
        assert result.output.strip() == "false"

    def test_set_placeholders(self, runner: CliRunner) -> None:
        result = runner.invoke(
            main,
            [
                "eval",
                "%level% >= 10 && %world% == nether",
                "--set",
                "level=12",
                "--set",
                "world=nether",
            ],
        )
        assert result.exit_code == ExitCode.SUCCESS

    def test_set_value_may_contain_equals(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "%eq% == 'a=b'", "--set", "eq=a=b"])
        assert result.exit_code == ExitCode.SUCCESS

    def test_invalid_set(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "1 > 0", "--set", "novalue"])
        assert result.exit_code == ExitCode.INVALID_INPUT
        assert "expected KEY=VALUE" in result.output

    def test_parse_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "1>0)"])
        assert result.exit_code == ExitCode.PARSE_ERROR
        assert "Unexpected trailing content" in result.output
        assert "   ^" in result.output

    def test_async_parse_error_is_false(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "--async", "1>0)"])
        assert result.exit_code == ExitCode.CONDITION_FALSE

    def test_async_true(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "--async", "abc >> b"])
        assert result.exit_code == ExitCode.SUCCESS

    def test_json_output(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "a == a", "--format", "json"])
        assert result.exit_code == ExitCode.SUCCESS
        payload = json.loads(result.output)
        assert payload["result"] is True
        assert payload["expression"] == "a == a"

    def test_json_parse_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "a =", "--format", "json"])
        assert result.exit_code == ExitCode.PARSE_ERROR
        assert '"PARSE_ERROR"' in result.output


class TestCheckCommand:
    """Tests for `condexpr check`."""

    def test_list_file(self, runner: CliRunner, conditions_file) -> None:
        path = conditions_file('- "1 > 0"\n- "a == a"\n')
        result = runner.invoke(main, ["check", str(path)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_mapping_file_with_placeholders(
        self, runner: CliRunner, conditions_file
    ) -> None:
        path = conditions_file(
            "placeholders:\n"
            '  level: "12"\n'
            "  rank: guest\n"
            "conditions:\n"
            '  - "%level% >= 10"\n'
            "  - \"'%rank%' !<< 'guest visitor'\"\n"
        )
        assert runner.invoke(main, ["check", str(path)]).exit_code == 1

        result = runner.invoke(main, ["check", str(path), "--set", "rank=admin"])
        assert result.exit_code == ExitCode.SUCCESS

    def test_false_line(self, runner: CliRunner, conditions_file) -> None:
        path = conditions_file('- "1 > 0"\n- "0 > 1"\n')
        result = runner.invoke(main, ["check", str(path)])
        assert result.exit_code == ExitCode.CONDITION_FALSE

    def test_malformed_line_is_false(self, runner: CliRunner, conditions_file) -> None:
        path = conditions_file('- "1 > 0"\n- "(((("\n')
        result = runner.invoke(main, ["check", str(path)])
        assert result.exit_code == ExitCode.CONDITION_FALSE

    @pytest.mark.parametrize("use_async", [False, True])
    def test_empty_file_is_true(
        self, runner: CliRunner, conditions_file, use_async: bool
    ) -> None:
        path = conditions_file("")
        args = ["check", str(path)] + (["--async"] if use_async else [])
        assert runner.invoke(main, args).exit_code == ExitCode.SUCCESS

    def test_async_chain(self, runner: CliRunner, conditions_file) -> None:
        path = conditions_file('- "1 > 0"\n- "b << abc"\n')
        result = runner.invoke(main, ["check", "--async", str(path)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["check", str(tmp_path / "nope.yaml")])
        assert result.exit_code == ExitCode.TARGET_NOT_FOUND

    @pytest.mark.parametrize(
        "text",
        [
            "conditions: not-a-list\n",
            "- 1\n- 2\n",
            "placeholders: [a, b]\nconditions: []\n",
            "just a string\n",
        ],
    )
    def test_invalid_shape(
        self, runner: CliRunner, conditions_file, text: str
    ) -> None:
        result = runner.invoke(main, ["check", str(conditions_file(text))])
        assert result.exit_code == ExitCode.INVALID_INPUT

    def test_invalid_yaml(self, runner: CliRunner, conditions_file) -> None:
        result = runner.invoke(main, ["check", str(conditions_file("- [unclosed\n"))])
        assert result.exit_code == ExitCode.INVALID_INPUT

    def test_json_output(self, runner: CliRunner, conditions_file) -> None:
        path = conditions_file('- "1 > 0"\n')
        result = runner.invoke(main, ["check", str(path), "--format", "json"])
        payload = json.loads(result.output)
        assert payload["result"] is True
        assert payload["count"] == 1


class TestTokensCommand:
    """Tests for `condexpr tokens`."""

    def test_lists_tokens(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["tokens", "a>=1"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["0", "LITERAL", "a"]
        assert lines[1].split() == ["1", "OPERATOR", ">="]
        assert lines[2].split() == ["3", "LITERAL", "1"]
        assert lines[3].split() == ["4", "EOF"]

    def test_unterminated_quote(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["tokens", "'abc == d"])
        assert result.exit_code == ExitCode.PARSE_ERROR
        assert "Unterminated string" in result.output


class TestConfigHandling:
    """Tests for --config loading in the CLI group."""

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text("[engine]\nmax_workers = 0\n")
        result = runner.invoke(main, ["--config", str(config), "eval", "1 > 0"])
        assert result.exit_code == ExitCode.CONFIG_ERROR

    def test_cache_from_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text("[engine]\ncache_size = 4\n")
        result = runner.invoke(main, ["--config", str(config), "eval", "1 > 0"])
        assert result.exit_code == ExitCode.SUCCESS


class TestInterrupt:
    """Ctrl+C while waiting on an async result."""

    class _InterruptedFuture:
        def __init__(self) -> None:
            self.cancelled = False

        def result(self):
            raise KeyboardInterrupt

        def cancel(self) -> bool:
            self.cancelled = True
            return True

    def test_cancels_and_exits_interrupted(self, capsys) -> None:
        future = self._InterruptedFuture()

        with pytest.raises(SystemExit) as exc_info:
            _await_result(future, json_output=True)

        assert exc_info.value.code == ExitCode.INTERRUPTED
        assert future.cancelled is True
        assert json.loads(capsys.readouterr().err)["error"]["code"] == "INTERRUPTED"

    def test_passes_result_through(self) -> None:
        future: Future = Future()
        future.set_result(True)
        assert _await_result(future, json_output=False) is True
