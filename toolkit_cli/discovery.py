"""Find ``Command`` descriptors in a scripts directory and adapt them to click.

Every ``*.py`` file under the directory (names starting with ``_`` excluded) is
imported. A module that defines ``COMMANDS`` contributes exactly the entries of
that sequence; any other module contributes its exported values that are
commands. Built-in commands are registered first and a discovered command with
the same name replaces the built-in.
"""

from __future__ import annotations

import asyncio
import inspect
import os
from typing import Any, Iterable

import click
import typer

from .cli_shared import (
    GlobalOpts,
    OpError,
    UsageError,
    _render_usage_error_with_help,
    _rich_error,
    try_catch,
)
from .command import (
    VERSION_CHOICES,
    Command,
    CommandDefinitionError,
    Flag,
    FlagType,
    coerce_command,
)
from .filesystem import exported_values, get_local_paths, import_module_from_path

SCRIPT_EXTS = (".py",)
SCRIPT_SKIP = (r"^_",)


class CommandDiscoveryError(OpError):
    pass


def _click_type(flag_type: FlagType) -> click.ParamType:
    if flag_type == FlagType.NUMBER:
        return click.FLOAT
    if flag_type == FlagType.INTEGER:
        return click.INT
    if flag_type == FlagType.FILE:
        return click.Path(dir_okay=False)
    if flag_type == FlagType.VERSION:
        return click.Choice(VERSION_CHOICES)
    return click.STRING


def flag_metavar(name: str, flag_type: FlagType | str) -> str:
    return f"<{name}:{FlagType(flag_type).value}>"


def stringify_flag(flag: Flag) -> str:
    """Render ``flag`` the way it reads in help output.

    >>> stringify_flag(Flag("release", "version", abbreviation="r"))
    '-r, --release <release:version>'
    >>> stringify_flag(Flag("git", "boolean"))
    '--git'
    """
    decls = flag_declarations(flag)
    if flag.is_boolean:
        return ", ".join(decls)
    return f"{', '.join(decls)} {flag_metavar(flag.name, flag.type)}"


def flag_declarations(flag: Flag) -> list[str]:
    decls = [f"-{flag.abbreviation}"] if flag.abbreviation else []
    decls.append(f"--{flag.name}")
    return decls


def to_click_option(key: str, flag: Flag) -> click.Option:
    if flag.is_boolean:
        return click.Option(
            [*flag_declarations(flag), key],
            is_flag=True,
            default=bool(flag.default),
            required=flag.required,
            hidden=flag.hidden,
            help=flag.description or None,
        )
    return click.Option(
        [*flag_declarations(flag), key],
        type=_click_type(flag.type),
        default=flag.default,
        required=flag.required,
        hidden=flag.hidden,
        show_default=flag.default is not None,
        metavar=flag_metavar(flag.name, flag.type),
        help=flag.description or None,
    )


def _argument_dest(name: str) -> str:
    return name.replace("-", "_").lower()


def _ctx_global(ctx: click.Context) -> GlobalOpts:
    root = ctx.find_root()
    for candidate in (ctx, root):
        if isinstance(candidate.obj, dict) and isinstance(candidate.obj.get("g"), GlobalOpts):
            return candidate.obj["g"]
    raise UsageError("global options are not available")


def invoke_command(ctx: click.Context, command: Command, flags: dict[str, Any], arguments: list[Any]) -> None:
    g = _ctx_global(ctx)
    options = g.as_options(**flags)
    g.logger.debug(f"running {command.name}", {"arguments": arguments, "flags": flags})
    try:
        result = command.action(options, *arguments)
        if inspect.iscoroutine(result):
            result = asyncio.run(result)
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=2)
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if isinstance(result, int) and not isinstance(result, bool) and result:
        raise typer.Exit(code=result)


def to_click_command(command: Command) -> click.Command:
    dests = [_argument_dest(a.name) for a in command.arguments]

    def callback(**params: Any) -> None:
        ctx = click.get_current_context()
        arguments = [params.pop(d) for d in dests]
        invoke_command(ctx, command, params, arguments)

    params: list[click.Parameter] = [
        click.Argument(
            [_argument_dest(a.name)],
            type=_click_type(a.type),
            metavar=flag_metavar(a.name, a.type),
        )
        for a in command.arguments
    ]
    params.extend(to_click_option(key, flag) for key, flag in command.flags.items())
    return click.Command(
        command.name,
        callback=callback,
        params=params,
        help=command.description,
        short_help=command.description.splitlines()[0],
    )


def register_subcommands(group: click.Group, commands: Iterable[Command]) -> click.Group:
    for command in commands:
        group.add_command(to_click_command(command), command.name)
    return group


def _module_values(path: str) -> list[Any]:
    try:
        module = import_module_from_path(path)
    except Exception as e:
        raise CommandDiscoveryError(f"failed to import {path}: {e}") from e
    manifest = getattr(module, "COMMANDS", None)
    if manifest is not None:
        return list(manifest)
    return exported_values(module)


def list_script_paths(bin_dir: str | os.PathLike[str]) -> list[str]:
    return try_catch(lambda: get_local_paths(bin_dir, exts=SCRIPT_EXTS, skip=SCRIPT_SKIP), [])


def discover_commands(
    bin_dir: str | os.PathLike[str],
    *,
    logger: Any,
    builtins: Iterable[Command] = (),
) -> list[Command]:
    """Return the built-ins followed by the commands found under ``bin_dir``.

    A missing or unreadable ``bin_dir`` yields no scripts. A malformed
    descriptor is logged as a warning and skipped; a script that fails to
    import raises ``CommandDiscoveryError``.
    """
    found: dict[str, Command] = {c.name: c for c in builtins}
    paths = list_script_paths(bin_dir)
    if not paths:
        logger.debug(f"no scripts found in {os.fspath(bin_dir)}")

    for path in paths:
        seen: set[int] = set()
        for value in _module_values(path):
            if id(value) in seen:
                continue
            seen.add(id(value))
            try:
                command = coerce_command(value)
            except CommandDefinitionError as e:
                logger.warn(f"skipping malformed command in {path}: {e}")
                continue
            if command is None:
                continue
            if command.name in found:
                logger.debug(f"{path} overrides command {command.name!r}")
            found[command.name] = command
    return list(found.values())
