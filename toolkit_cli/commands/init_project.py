from __future__ import annotations

import argparse
import urllib.error
import urllib.request
from datetime import datetime
from pathlib import Path

from ..cli_shared import OpError, UsageError
from ..command import Argument, Command, Flag
from ..git import Git
from ..template import Template
from ..validations import is_http_url

DEFAULT_SOURCE = "https://raw.githubusercontent.com/toridoriv/my-dev-toolkit/main/"

VSCODE_FILES = ("settings.json", "extensions.json")
LICENSE_FILE = "LICENSE"


def _fetch_text(url: str, *, timeout: int = 30) -> str:
    req = urllib.request.Request(url, headers={"Accept": "text/plain"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        raise OpError(f"GET {url} failed: HTTP {e.code}") from e
    except urllib.error.URLError as e:
        raise OpError(f"GET {url} failed: {e.reason}") from e


def _source_url(source: str, name: str) -> str:
    return source.rstrip("/") + "/" + name


def collect_files(source: str, author: str | None = None) -> dict[str, str]:
    """Fetch the template files, keyed by their path relative to the project."""
    files = {f".vscode/{name}": _fetch_text(_source_url(source, f".vscode/{name}")) for name in VSCODE_FILES}
    replacements = {"year": str(datetime.now().year)}
    if author:
        replacements["author"] = author
    license_text = Template(_fetch_text(_source_url(source, LICENSE_FILE))).partial_render(replacements)
    files[LICENSE_FILE] = str(license_text) + "\n"
    return files


def init_project(options: argparse.Namespace, path: str) -> int:
    logger = options.logger
    source = options.source or DEFAULT_SOURCE
    if not is_http_url(source):
        raise UsageError(f"--source must be an http(s) URL, got {source!r}")

    root = Path(path)
    files = collect_files(source, options.author)
    for rel, content in files.items():
        target = root / rel
        if options.dry_run:
            logger.info(f"would write {target}", {"bytes": len(content)})
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.debug(f"wrote {target}")

    if options.git:
        if options.dry_run:
            logger.info(f"would run git init in {root}")
        else:
            root.mkdir(parents=True, exist_ok=True)
            Git(cwd=root).init(initial_branch="main", quiet=True)

    logger.info(f"project ready at {root}", tags=["init-project"])
    return 0


init_project_command = Command(
    name="init-project",
    description="Create a project folder with editor settings and a license.",
    arguments=[Argument("path", "string")],
    flags={
        "source": Flag("source", "string", "Base URL of the template files.", abbreviation="s"),
        "author": Flag("author", "string", "Author name for the license.", abbreviation="a"),
        "git": Flag("git", "boolean", "Initialize a git repository.", abbreviation="g"),
    },
    action=init_project,
)
