"""Commands that ship with the toolkit, in registration order."""

from __future__ import annotations

from .commits import commits_command
from .init_project import init_project_command
from .next_version import next_version_command

BUILTIN_COMMANDS = [
    init_project_command,
    next_version_command,
    commits_command,
]

__all__ = ["BUILTIN_COMMANDS"]
