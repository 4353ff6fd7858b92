from __future__ import annotations

import re
import textwrap

from click.testing import CliRunner as ClickRunner
from typer.testing import CliRunner

from toolkit_cli import __version__
from toolkit_cli.apps.run_cli import _preparse, app, build_cli, build_logger, main
from toolkit_cli.logger import SeverityName

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def _plain(s: str) -> str:
    return _ANSI_RE.sub("", s)


def _script(bin_dir, name: str, source: str) -> None:
    (bin_dir / name).write_text(textwrap.dedent(source))


GREET = """
from toolkit_cli.command import Argument, Command, Flag


def greet(options, name):
    text = f"hello {name}"
    print(text.upper() if options.loud else text)
    print(f"exclusions={options.deploy_exclusions}")
    print(f"dry_run={options.dry_run}")


greet_command = Command(
    name="greet",
    description="Say hello.",
    arguments=[Argument("name")],
    flags={"loud": Flag("loud", "boolean", "Shout it.", abbreviation="l")},
    action=greet,
)
"""


def test_version(toolkit_env, capsys):
    assert main(["--version"]) == 0
    assert f"run {__version__}" in capsys.readouterr().out


def test_runs_discovered_command(toolkit_env, capsys):
    _script(toolkit_env, "greet.py", GREET)
    code = main(["-n", "greet", "world", "--loud"])
    out = capsys.readouterr().out
    assert code == 0
    assert "HELLO WORLD" in out
    assert "exclusions=dist,node_modules" in out
    assert "dry_run=True" in out


def test_bin_dir_option_wins_over_env(toolkit_env, tmp_path, capsys):
    other = tmp_path / "scripts"
    other.mkdir()
    _script(other, "greet.py", GREET)
    assert main(["--bin-dir", str(other), "greet", "you"]) == 0
    assert "hello you" in capsys.readouterr().out


def test_action_return_code_is_exit_code(toolkit_env):
    _script(
        toolkit_env,
        "fail.py",
        """
        from toolkit_cli.command import Command

        fail_command = Command(name="fail", description="Fail.", action=lambda options: 4)
        """,
    )
    assert main(["fail"]) == 4


def test_op_error_exits_one(toolkit_env, capsys):
    _script(
        toolkit_env,
        "broken.py",
        """
        from toolkit_cli.cli_shared import OpError
        from toolkit_cli.command import Command


        def action(options):
            raise OpError("upstream is down")


        broken_command = Command(name="broken", description="Break.", action=action)
        """,
    )
    assert main(["broken"]) == 1
    assert "error: upstream is down" in _plain(capsys.readouterr().err)


def test_unknown_command_is_usage_error(toolkit_env, capsys):
    assert main(["nope"]) == 2
    captured = capsys.readouterr()
    assert "No such command 'nope'" in _plain(f"{captured.err}\n{captured.out}")


def test_missing_deploy_token_is_usage_error(toolkit_env, monkeypatch, capsys):
    monkeypatch.delenv("DENO_DEPLOY_TOKEN", raising=False)
    assert main(["next-version", "1.0.0"]) == 2
    captured = capsys.readouterr()
    assert "--deploy-token" in _plain(f"{captured.err}\n{captured.out}")


def test_malformed_descriptor_is_warned_and_skipped(toolkit_env, capsys):
    _script(toolkit_env, "bad.py", 'bad = {"name": "bad", "description": "Broken."}\n')
    assert main(["next-version", "1.0.0"]) == 0
    captured = capsys.readouterr()
    assert "skipping malformed command" in _plain(captured.err)
    assert captured.out.strip().endswith("v1.0.1")


def test_import_failure_exits_one(toolkit_env, capsys):
    _script(toolkit_env, "boom.py", "raise RuntimeError('boom')\n")
    assert main(["next-version", "1.0.0"]) == 1
    assert "failed to import" in _plain(capsys.readouterr().err)


def test_logger_level_debug_shows_globals(toolkit_env, capsys):
    assert main(["--logger-level", "debug", "next-version", "1.0.0"]) == 0
    out = _plain(capsys.readouterr().out)
    assert "global options" in out
    assert "token-123" not in out


def test_next_version_writes_github_output(toolkit_env, tmp_path, monkeypatch, capsys):
    output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    assert main(["next-version", "v1.2.3", "--release", "minor", "--preid", "rc"]) == 0
    assert capsys.readouterr().out.strip() == "v1.3.0-rc.0"
    assert output.read_text() == "version=1.3.0-rc.0\ntag=v1.3.0-rc.0\n"


def test_help_lists_builtins_first(toolkit_env):
    _script(toolkit_env, "greet.py", GREET)
    cli = build_cli(logger=build_logger(SeverityName.SILENT), bin_dir=str(toolkit_env))
    result = ClickRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    names = [n for n in ("init-project", "next-version", "commits", "greet") if n in result.output]
    assert names == ["init-project", "next-version", "commits", "greet"]
    positions = [result.output.index(n) for n in names]
    assert positions == sorted(positions)


def test_root_app_without_discovery(toolkit_env):
    result = CliRunner().invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "--deploy-token" in _plain(result.output)


def test_preparse_reads_env_and_falls_back(monkeypatch):
    monkeypatch.setenv("TOOLKIT_BIN_DIR", "./scripts")
    monkeypatch.setenv("TOOLKIT_LOGGER_LEVEL", "LOUD")
    pre = _preparse([])
    assert pre.bin_dir == "./scripts"
    assert pre.logger_level is SeverityName.INFORMATIONAL

    pre = _preparse(["--logger-level", "warning", "--bin-dir", "bin2"])
    assert pre.bin_dir == "bin2"
    assert pre.logger_level is SeverityName.WARNING


def test_preparse_ignores_subcommand_flags(monkeypatch):
    monkeypatch.delenv("TOOLKIT_BIN_DIR", raising=False)
    pre = _preparse(["build", "--bin", "out", "--bin-dir", "elsewhere"])
    assert pre.bin_dir == "./bin"


def test_preparse_does_not_abbreviate(monkeypatch):
    monkeypatch.delenv("TOOLKIT_BIN_DIR", raising=False)
    assert _preparse(["--bin", "out", "build"]).bin_dir == "./bin"
    assert _preparse(["--bin-dir=scripts", "-n", "build"]).bin_dir == "scripts"


def test_preparse_missing_value_falls_back(monkeypatch):
    monkeypatch.delenv("TOOLKIT_LOGGER_LEVEL", raising=False)
    assert _preparse(["--logger-level"]).logger_level is SeverityName.INFORMATIONAL


def test_subcommand_flag_named_like_global_option(toolkit_env, capsys):
    _script(
        toolkit_env,
        "build.py",
        """
        from toolkit_cli.command import Command, Flag


        def build(options):
            print(f"out={options.bin}")


        build_command = Command(
            name="build",
            description="Build.",
            flags={"bin": Flag("bin", "string", "Output directory.")},
            action=build,
        )
        """,
    )
    assert main(["build", "--bin", "out"]) == 0
    assert "out=out" in capsys.readouterr().out


def test_missing_global_option_value_is_usage_error(toolkit_env, capsys):
    assert main(["--logger-level"]) == 2
    captured = capsys.readouterr()
    assert "--logger-level" in _plain(captured.err)


def test_root_that_is_not_a_click_group_is_op_error(toolkit_env, monkeypatch, capsys):
    monkeypatch.setattr("toolkit_cli.apps.run_cli.typer.main.get_command", lambda app: object())
    assert main(["--version"]) == 1
    assert "unsupported typer version" in _plain(capsys.readouterr().err)
