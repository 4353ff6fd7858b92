from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import click
import typer
import typer.core
import typer.main
from dotenv import load_dotenv

from .. import __version__
from ..cli_shared import (
    DEFAULT_BIN_DIR,
    DENO_DEPLOY_TOKEN,
    GITHUB_OUTPUT,
    TOOLKIT_BIN_DIR,
    TOOLKIT_DEPLOY_EXCLUSIONS,
    TOOLKIT_IMPORT_MAP_PATH,
    TOOLKIT_LOGGER_LEVEL,
    TOOLKIT_PROJECT_ID,
    GlobalOpts,
    OpError,
    UsageError,
    _render_usage_error_with_help,
    _rich_error,
)
from ..commands import BUILTIN_COMMANDS
from ..discovery import discover_commands, register_subcommands
from ..environment import NonEmptyStr, get_from_environment
from ..logger import Logger, Mode, SeverityName

PROG_NAME = "run"
DEFAULT_LOGGER_LEVEL = SeverityName.INFORMATIONAL


class _InsertionOrderTyperGroup(typer.core.TyperGroup):
    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(self.commands)


def _bootstrap_env() -> None:
    # Discover and load .env without overriding already-exported values.
    load_dotenv()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name=PROG_NAME,
    help="Run the commands of your project scripts directory.",
    no_args_is_help=True,
    add_completion=False,
    cls=_InsertionOrderTyperGroup,
)


@app.callback()
def app_callback(
    ctx: typer.Context,
    bin_dir: str = typer.Option(
        DEFAULT_BIN_DIR,
        "--bin-dir",
        envvar=TOOLKIT_BIN_DIR,
        help="The scripts directory of your project.",
    ),
    logger_level: SeverityName = typer.Option(
        DEFAULT_LOGGER_LEVEL,
        "--logger-level",
        envvar=TOOLKIT_LOGGER_LEVEL,
        case_sensitive=False,
        help="Minimum severity of the log messages to output.",
    ),
    project_id: str | None = typer.Option(
        None,
        "--project-id",
        envvar=TOOLKIT_PROJECT_ID,
        help="The id of your project in Deno Deploy.",
    ),
    deploy_exclusions: str = typer.Option(
        ...,
        "--deploy-exclusions",
        envvar=TOOLKIT_DEPLOY_EXCLUSIONS,
        help="Comma separated paths to exclude from a deploy.",
    ),
    deploy_token: str = typer.Option(
        ...,
        "--deploy-token",
        envvar=DENO_DEPLOY_TOKEN,
        show_default=False,
        help="Access token to use when deploying to Deno Deploy.",
    ),
    import_map_path: Path | None = typer.Option(
        None,
        "--import-map-path",
        envvar=TOOLKIT_IMPORT_MAP_PATH,
        dir_okay=False,
        help="Path to your import map file.",
    ),
    github_output: Path | None = typer.Option(
        None,
        "--github-output",
        envvar=GITHUB_OUTPUT,
        dir_okay=False,
        help="File that collects the outputs of a GitHub Actions step.",
    ),
    dry_run: bool = typer.Option(False, "-n", "--dry-run", help="Dry run the process of a given command."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    logger = obj.get("logger")
    if not isinstance(logger, Logger):
        logger = build_logger(logger_level)
    elif logger.settings.severity != logger_level:
        logger = logger.get_sub_logger(severity=logger_level)

    g = GlobalOpts(
        deploy_exclusions=deploy_exclusions,
        deploy_token=deploy_token,
        logger=logger,
        bin_dir=bin_dir,
        project_id=project_id,
        import_map_path=str(import_map_path) if import_map_path else None,
        github_output=str(github_output) if github_output else None,
        dry_run=dry_run,
    )
    ctx.obj = {**obj, "g": g, "logger": logger}
    logger.debug("global options", g.describe())


def build_logger(severity: SeverityName | str = DEFAULT_LOGGER_LEVEL) -> Logger:
    return Logger(application=PROG_NAME, severity=severity, mode=Mode.PRETTY)


_VALUE_OPTIONS = frozenset(
    {
        "--bin-dir",
        "--logger-level",
        "--project-id",
        "--deploy-exclusions",
        "--deploy-token",
        "--import-map-path",
        "--github-output",
    }
)


def _global_tokens(argv: list[str]) -> list[str]:
    """The leading tokens of ``argv`` that belong to the root command.

    Scanning stops at the subcommand name so its own flags are never read as
    global ones.
    """
    tokens: list[str] = []
    expect_value = False
    for token in argv:
        if expect_value:
            tokens.append(token)
            expect_value = False
            continue
        if token == "--" or not token.startswith("-"):
            break
        tokens.append(token)
        expect_value = token in _VALUE_OPTIONS
    return tokens


def _preparse(argv: list[str]) -> argparse.Namespace:
    """Pick the scripts directory and log level before click parses anything.

    Command-line values win over the environment; bad or missing values fall
    back to the defaults, the full parse reports them later.
    """
    parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False, exit_on_error=False)
    parser.add_argument("--bin-dir", default=None)
    parser.add_argument("--logger-level", default=None)
    try:
        args, _ = parser.parse_known_args(_global_tokens(argv))
    except argparse.ArgumentError:
        args = argparse.Namespace(bin_dir=None, logger_level=None)

    bin_dir = args.bin_dir or get_from_environment(
        TOOLKIT_BIN_DIR, NonEmptyStr, default=DEFAULT_BIN_DIR, fallback=DEFAULT_BIN_DIR
    )
    level = DEFAULT_LOGGER_LEVEL
    raw_level = args.logger_level
    if raw_level:
        try:
            level = SeverityName(raw_level.upper())
        except ValueError:
            pass
    else:
        level = get_from_environment(
            TOOLKIT_LOGGER_LEVEL, SeverityName, default=DEFAULT_LOGGER_LEVEL, fallback=DEFAULT_LOGGER_LEVEL
        )
    return argparse.Namespace(bin_dir=bin_dir, logger_level=level)


def build_cli(*, logger: Logger, bin_dir: str, builtins: Any = None) -> click.Group:
    """Return the root group with the built-ins and the discovered commands."""
    group = typer.main.get_command(app)
    if not isinstance(group, click.Group):
        raise OpError(f"unsupported typer version: root command is a {type(group).__name__}, not a click group")
    commands = discover_commands(
        bin_dir,
        logger=logger,
        builtins=BUILTIN_COMMANDS if builtins is None else builtins,
    )
    return register_subcommands(group, commands)


def _root_help_text(group: click.Group | None) -> str:
    if group is None:
        return ""
    try:
        with click.Context(group, info_name=PROG_NAME) as ctx:
            return group.get_help(ctx)
    except Exception:
        return ""


def _run_cli(*, prog_name: str = PROG_NAME, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    _bootstrap_env()

    pre = _preparse(argv)
    logger = build_logger(pre.logger_level)
    group: click.Group | None = None
    try:
        group = build_cli(logger=logger, bin_dir=pre.bin_dir)
        result = group.main(
            args=argv,
            prog_name=prog_name,
            standalone_mode=False,
            obj={"logger": logger},
        )
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        if isinstance(e, click.UsageError):
            _render_usage_error_with_help(message=e.format_message(), ctx=getattr(e, "ctx", None))
            return int(e.exit_code)
        _rich_error(e.format_message())
        return int(e.exit_code)
    except click.Abort:
        _rich_error("aborted")
        return 1
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), fallback_help=_root_help_text(group))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    return _run_cli(prog_name=PROG_NAME, argv=argv)
