"""Thin wrapper around the ``git`` executable.

    git = Git(cwd="/path/to/repo")
    git.add("file.txt")
    git.commit("Implement feature X")
    commits = git.log(max_count="5")
"""

from __future__ import annotations

import json
import os
import re
import subprocess
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .emoji_codes import emoji_char_to_code

COMMIT_FORMAT: dict[str, Any] = {
    "hash": "%H",
    "id": "%h",
    "timestamp": "%ad",
    "author": {
        "name": "%an",
        "email": "%ae",
    },
    "subject": "%s",
    "ref": "%D",
}

COMMIT_PREFIX = '{"hash"'

_CAMEL_WORD = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

# git's default --date format, e.g. "Mon Oct 16 12:00:00 2023 +0200"
_GIT_DEFAULT_DATE = "%a %b %d %H:%M:%S %Y %z"


def parse_date(value: Any) -> datetime:
    """Numbers are Unix seconds; strings are ISO, RFC 2822 or git default dates."""
    if isinstance(value, datetime):
        return value
    raw = str(value).strip()
    try:
        return datetime.fromtimestamp(float(raw), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.strptime(raw, _GIT_DEFAULT_DATE)
    except ValueError:
        pass
    # raises ValueError if this last format does not match either
    return parsedate_to_datetime(raw)


class Author(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    email: str


class Commit(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    hash: str
    id: str
    timestamp: datetime
    author: Author
    subject: str
    ref: str

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        return parse_date(value)

    @model_validator(mode="after")
    def _normalize_subject(self) -> Commit:
        self.subject = emoji_char_to_code(self.subject)
        return self


def flag_name(name: str) -> str:
    """``maxCount`` and ``max_count`` both become ``--max-count``."""
    words = _CAMEL_WORD.sub("-", name).replace("_", "-")
    return "--" + "-".join(w for w in words.lower().split("-") if w)


def parse_flag(name: str, value: str | None = None, takes_value: bool = False) -> list[str]:
    flag = flag_name(name)
    if not value:
        return [flag]
    if not takes_value:
        return [flag, value]
    return [f"{flag}={value}"]


def parse_flags(flags: Mapping[str, Any], takes_value: bool = False) -> list[str]:
    items: list[str] = []
    for name, value in flags.items():
        if value is None or value is False:
            continue
        items.extend(parse_flag(name, None if value is True else str(value), takes_value))
    return items


def parse_log_output(output: str) -> list[Commit]:
    raw_commits = [COMMIT_PREFIX + chunk for chunk in output.split(COMMIT_PREFIX) if chunk.strip()]
    return [Commit.model_validate(json.loads(c)) for c in raw_commits]


class Git:
    """Callable git runner bound to a working directory.

    ``git(["status", "--short"])`` runs ``git status --short`` and returns its
    standard output. A non-zero exit raises ``subprocess.CalledProcessError``.
    """

    def __init__(self, cwd: str | os.PathLike[str] | None = None, env: Mapping[str, str] | None = None) -> None:
        self.cwd = os.fspath(cwd) if cwd is not None else os.getcwd()
        self.env = dict(env) if env is not None else None

    def __call__(self, args: list[str]) -> str:
        env = {**os.environ, **self.env} if self.env is not None else None
        proc = subprocess.run(
            ["git", *args],
            cwd=self.cwd,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )
        return proc.stdout

    def add(self, *paths: str) -> str:
        return self(["add", *paths])

    def commit(self, message: str, **flags: Any) -> str:
        return self(["commit", "-m", message, *parse_flags(flags, True)])

    def config(self, name: str, value: str | None = None) -> str:
        return self(["config", name, *([value] if value else [])])

    def init(self, **flags: Any) -> str:
        return self(["init", *parse_flags(flags)])

    def log(self, revision_range: str | None = None, **flags: Any) -> list[Commit]:
        """Return the commits of ``git log`` parsed into ``Commit`` records.

        ``revision_range`` takes the forms git accepts: ``"a b"``, ``"a ^b"``
        or ``"a...b"``.
        """
        args = parse_flags(flags, True)
        if revision_range:
            args.extend(revision_range.split())
        args.append(f"--pretty=format:{json.dumps(COMMIT_FORMAT)}")
        return parse_log_output(self(["log", *args]))
