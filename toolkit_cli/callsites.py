from __future__ import annotations

import os
import traceback
from dataclasses import dataclass


@dataclass(frozen=True)
class CallSite:
    """One frame of a call stack."""

    file_name: str
    line_number: int
    column_number: int
    function_name: str
    code: str = ""

    @property
    def base_name(self) -> str:
        return os.path.basename(self.file_name)

    @property
    def is_top_level(self) -> bool:
        return self.function_name == "<module>"

    def __str__(self) -> str:
        return f"{self.file_name}:{self.line_number}:{self.column_number}"

    @classmethod
    def from_frame_summary(cls, fs: traceback.FrameSummary) -> CallSite:
        # colno is 0-based and only present on 3.11+
        colno = getattr(fs, "colno", None)
        return cls(
            file_name=fs.filename,
            line_number=int(fs.lineno or 0),
            column_number=int(colno) + 1 if colno is not None else 0,
            function_name=fs.name,
            code=(fs.line or "").strip(),
        )


def callsites(error: BaseException | None = None, *, skip_files: frozenset[str] = frozenset()) -> list[CallSite]:
    """Return the call sites of ``error`` (or of the current stack), innermost first.

    A raised exception is described by its traceback. An exception that was
    never raised has none, so the stack at the point of this call is used
    instead. Frames from this module and from ``skip_files`` are dropped.
    """
    if error is not None and error.__traceback__ is not None:
        summaries = traceback.extract_tb(error.__traceback__)
    else:
        summaries = traceback.extract_stack()
    skip = {_normalize(f) for f in skip_files} | {_normalize(__file__)}
    return [
        CallSite.from_frame_summary(fs)
        for fs in reversed(summaries)
        if _normalize(fs.filename) not in skip
    ]


def _normalize(path: str) -> str:
    return os.path.normcase(os.path.abspath(path))
