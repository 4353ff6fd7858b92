"""Command descriptors for the ``run`` CLI.

A scripts file exposes commands by defining ``Command`` values at module level
(or by listing them in a ``COMMANDS`` sequence):

    from toolkit_cli.command import Argument, Command, Flag

    def greet(options, name):
        options.logger.info(f"hello {name}", tags=["greet"])

    greet_command = Command(
        name="greet",
        description="Say hello.",
        arguments=[Argument("name", "string")],
        flags={"loud": Flag("loud", "boolean", "Shout it.", abbreviation="l")},
        action=greet,
    )

The action is called as ``action(options, *arguments)``. ``options`` is an
``argparse.Namespace`` with the global options (``logger``, ``dry_run``,
``deploy_token``, ...) plus one attribute per flag key.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from .cli_shared import UsageError

MAX_ARGUMENTS = 3

_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

Action = Callable[..., Any]


class CommandDefinitionError(UsageError):
    pass


class FlagType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"
    INTEGER = "integer"
    VERSION = "version"


VERSION_CHOICES = ("major", "minor", "patch")


def _flag_type(value: Any, *, where: str) -> FlagType:
    try:
        return FlagType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in FlagType)
        raise CommandDefinitionError(f"{where}: unknown type {value!r} (expected one of {allowed})") from None


def _check_name(value: Any, *, where: str) -> str:
    if not isinstance(value, str) or not _NAME_RE.match(value):
        raise CommandDefinitionError(f"{where}: invalid name {value!r}")
    return value


@dataclass(frozen=True)
class Argument:
    name: str
    type: FlagType | str = FlagType.STRING

    def __post_init__(self) -> None:
        _check_name(self.name, where="argument")
        object.__setattr__(self, "type", _flag_type(self.type, where=f"argument {self.name!r}"))
        if self.type == FlagType.BOOLEAN:
            raise CommandDefinitionError(f"argument {self.name!r}: boolean arguments are not supported")


@dataclass(frozen=True)
class Flag:
    name: str
    type: FlagType | str
    description: str = ""
    abbreviation: str | None = None
    default: Any = None
    required: bool = False
    hidden: bool = False

    def __post_init__(self) -> None:
        _check_name(self.name, where="flag")
        object.__setattr__(self, "type", _flag_type(self.type, where=f"flag {self.name!r}"))
        if self.abbreviation is not None and (len(self.abbreviation) != 1 or not self.abbreviation.isalpha()):
            raise CommandDefinitionError(
                f"flag {self.name!r}: abbreviation must be a single letter, got {self.abbreviation!r}"
            )

    @property
    def is_boolean(self) -> bool:
        return self.type == FlagType.BOOLEAN


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    action: Action
    flags: Mapping[str, Flag] = field(default_factory=dict)
    arguments: tuple[Argument, ...] | list[Argument] = ()

    def __post_init__(self) -> None:
        _check_name(self.name, where="command")
        if not isinstance(self.description, str) or not self.description.strip():
            raise CommandDefinitionError(f"command {self.name!r}: description is required")
        if not callable(self.action):
            raise CommandDefinitionError(f"command {self.name!r}: action must be callable")

        flags: dict[str, Flag] = {}
        for key, flag in dict(self.flags or {}).items():
            if not key.isidentifier():
                raise CommandDefinitionError(f"command {self.name!r}: flag key {key!r} is not an identifier")
            flags[key] = flag if isinstance(flag, Flag) else _flag_from_mapping(flag, command=self.name)
        object.__setattr__(self, "flags", flags)

        args = tuple(
            a if isinstance(a, Argument) else _argument_from_mapping(a, command=self.name)
            for a in (self.arguments or ())
        )
        if len(args) > MAX_ARGUMENTS:
            raise CommandDefinitionError(
                f"command {self.name!r}: at most {MAX_ARGUMENTS} arguments are supported, got {len(args)}"
            )
        object.__setattr__(self, "arguments", args)


def _flag_from_mapping(value: Any, *, command: str) -> Flag:
    if not isinstance(value, Mapping):
        raise CommandDefinitionError(f"command {command!r}: flags must be Flag values or mappings")
    opts = dict(value.get("options") or {})
    try:
        return Flag(
            name=value["name"],
            type=value["type"],
            description=value.get("description", ""),
            abbreviation=value.get("abbreviation"),
            default=value.get("default", opts.get("default")),
            required=bool(value.get("required", opts.get("required", False))),
            hidden=bool(value.get("hidden", opts.get("hidden", False))),
        )
    except KeyError as e:
        raise CommandDefinitionError(f"command {command!r}: flag is missing {e.args[0]!r}") from e


def _argument_from_mapping(value: Any, *, command: str) -> Argument:
    if not isinstance(value, Mapping):
        raise CommandDefinitionError(f"command {command!r}: arguments must be Argument values or mappings")
    try:
        return Argument(name=value["name"], type=value.get("type", FlagType.STRING))
    except KeyError as e:
        raise CommandDefinitionError(f"command {command!r}: argument is missing {e.args[0]!r}") from e


def define_command(
    *,
    name: str,
    description: str,
    action: Action,
    flags: Mapping[str, Flag] | None = None,
    arguments: list[Argument] | None = None,
) -> Command:
    return Command(
        name=name,
        description=description,
        action=action,
        flags=flags or {},
        arguments=tuple(arguments or ()),
    )


def is_command(value: Any) -> bool:
    return isinstance(value, Command)


def looks_like_command(value: Any) -> bool:
    return isinstance(value, Mapping) and "name" in value and "description" in value


def coerce_command(value: Any) -> Command | None:
    """Return ``value`` as a ``Command``, or None if it is not a descriptor.

    Mappings with ``name`` and ``description`` are treated as descriptors and
    raise ``CommandDefinitionError`` when malformed.
    """
    if is_command(value):
        return value
    if not looks_like_command(value):
        return None
    if "action" not in value:
        raise CommandDefinitionError(f"command {value.get('name')!r}: action is required")
    return Command(
        name=value["name"],
        description=value["description"],
        action=value["action"],
        flags=value.get("flags") or {},
        arguments=value.get("arguments") or (),
    )
