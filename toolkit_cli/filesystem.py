from __future__ import annotations

import hashlib
import importlib.util
import os
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable


def _compile(patterns: Iterable[str | re.Pattern[str]] | None) -> list[re.Pattern[str]]:
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in (patterns or [])]


def _matches(name: str, patterns: list[re.Pattern[str]]) -> bool:
    return any(p.search(name) for p in patterns)


def get_local_paths(
    directory: str | os.PathLike[str],
    *,
    exts: Iterable[str] | None = None,
    match: Iterable[str | re.Pattern[str]] | None = None,
    skip: Iterable[str | re.Pattern[str]] | None = None,
    include_dirs: bool = False,
    max_depth: int | None = None,
) -> list[str]:
    """List paths under ``directory`` recursively, as resolved absolute paths.

    ``skip`` and ``match`` are regular expressions tested against each entry's
    name. Skipped directories are not descended into. Raises
    ``NotADirectoryError`` / ``FileNotFoundError`` if ``directory`` is not a
    readable directory.
    """
    root = Path(directory).resolve()
    if not root.exists():
        raise FileNotFoundError(f"no such directory: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    match_res = _compile(match)
    skip_res = _compile(skip)
    wanted_exts = tuple(exts) if exts else None
    out: list[str] = []

    def _onerror(err: OSError) -> None:
        raise err

    for current, dirnames, filenames in os.walk(root, onerror=_onerror):
        depth = len(Path(current).relative_to(root).parts)
        dirnames[:] = sorted(d for d in dirnames if not _matches(d, skip_res))
        if max_depth is not None and depth >= max_depth:
            dirnames[:] = []
        if include_dirs:
            for d in dirnames:
                if not match_res or _matches(d, match_res):
                    out.append(str(Path(current, d)))
        for f in sorted(filenames):
            if _matches(f, skip_res):
                continue
            if wanted_exts and not f.endswith(wanted_exts):
                continue
            if match_res and not _matches(f, match_res):
                continue
            out.append(str(Path(current, f)))
    return out


def import_module_from_path(path: str | os.PathLike[str]) -> ModuleType:
    """Import a python file by path under a name unique to that path."""
    file_path = Path(path).resolve()
    digest = hashlib.sha1(str(file_path).encode("utf-8")).hexdigest()[:12]
    module_name = f"_toolkit_script_{file_path.stem}_{digest}"
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot import {file_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def exported_values(module: ModuleType) -> list[Any]:
    """Values named in ``__all__``, or every public module attribute."""
    names = getattr(module, "__all__", None)
    if names is None:
        names = [n for n in vars(module) if not n.startswith("_")]
    return [getattr(module, n) for n in names]


def get_all_module_imports(path: str | os.PathLike[str]) -> list[Any]:
    return exported_values(import_module_from_path(path))
