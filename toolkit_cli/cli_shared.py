from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, fields
from typing import Any, Callable, TypeVar

import click
from rich.console import Console
from rich.markup import escape


class ToolkitError(Exception):
    pass


class UsageError(ToolkitError):
    pass


class OpError(ToolkitError):
    pass


TOOLKIT_BIN_DIR = "TOOLKIT_BIN_DIR"
TOOLKIT_LOGGER_LEVEL = "TOOLKIT_LOGGER_LEVEL"
TOOLKIT_PROJECT_ID = "TOOLKIT_PROJECT_ID"
TOOLKIT_DEPLOY_EXCLUSIONS = "TOOLKIT_DEPLOY_EXCLUSIONS"
TOOLKIT_IMPORT_MAP_PATH = "TOOLKIT_IMPORT_MAP_PATH"
DENO_DEPLOY_TOKEN = "DENO_DEPLOY_TOKEN"
GITHUB_OUTPUT = "GITHUB_OUTPUT"

DEFAULT_BIN_DIR = "./bin"

T = TypeVar("T")


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class GlobalOpts:
    deploy_exclusions: str
    deploy_token: str
    logger: Any
    bin_dir: str = DEFAULT_BIN_DIR
    project_id: str | None = None
    import_map_path: str | None = None
    github_output: str | None = None
    dry_run: bool = False

    def as_options(self, **extra: Any) -> argparse.Namespace:
        # asdict() would deep-copy the logger handle.
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(extra)
        return argparse.Namespace(**values)

    def describe(self) -> dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "logger"}
        out["deploy_token"] = "***" if self.deploy_token else ""
        return out


def _print_json(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True, default=str) + "\n")


def try_catch(fn: Callable[[], T], fallback: T) -> T:
    """Return ``fn()``, or ``fallback`` when it raises."""
    try:
        return fn()
    except Exception:
        return fallback


_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}")


def _render_usage_error_with_help(
    *,
    message: str,
    ctx: click.Context | None = None,
    fallback_help: str = "",
) -> None:
    _rich_error(message)
    help_text = ""
    if isinstance(ctx, click.Context):
        try:
            help_text = str(ctx.get_help() or "").strip()
        except Exception:
            help_text = ""
    if not help_text:
        help_text = str(fallback_help or "").strip()
    if help_text:
        _eprint("")
        _eprint(help_text)
