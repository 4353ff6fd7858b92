from __future__ import annotations

import argparse
import sys

from ..cli_shared import UsageError
from ..command import Argument, Command, Flag
from ..versioning import VersionObject


def next_version(options: argparse.Namespace, version: str) -> int:
    try:
        current = VersionObject(version)
    except ValueError as e:
        raise UsageError(f"invalid version {version!r}: {e}") from e

    nxt = current.get_next_version(options.release, options.preid or None)
    sys.stdout.write(nxt.tag + "\n")

    if options.github_output:
        if options.dry_run:
            options.logger.info(f"would append version={nxt.version} to {options.github_output}")
            return 0
        with open(options.github_output, "a", encoding="utf-8") as fh:
            fh.write(f"version={nxt.version}\n")
            fh.write(f"tag={nxt.tag}\n")
    return 0


next_version_command = Command(
    name="next-version",
    description="Print the tag of the next semantic version.",
    arguments=[Argument("version", "string")],
    flags={
        "release": Flag("release", "version", "Release type.", abbreviation="r", default="patch"),
        "preid": Flag("preid", "string", "Pre-release identifier, e.g. rc.", abbreviation="p"),
    },
    action=next_version,
)
