from __future__ import annotations

import argparse
import subprocess

from ..cli_shared import OpError, _print_json
from ..command import Command, Flag
from ..git import Git


def list_commits(options: argparse.Namespace) -> int:
    flags = {}
    if options.max_count:
        flags["max_count"] = options.max_count
    try:
        commits = Git().log(options.revision_range, **flags)
    except subprocess.CalledProcessError as e:
        raise OpError(f"git log failed: {(e.stderr or '').strip() or e}") from e
    except FileNotFoundError as e:
        raise OpError("git executable not found") from e
    _print_json([c.model_dump(mode="json") for c in commits])
    return 0


commits_command = Command(
    name="commits",
    description="Print the git history of the current directory as JSON.",
    flags={
        "max_count": Flag("max-count", "integer", "Limit the number of commits.", abbreviation="m"),
        "revision_range": Flag("range", "string", "Revision range, e.g. v1.0.0..HEAD."),
    },
    action=list_commits,
)
