"""Typed access to environment variables.

Values are validated with pydantic. ``default`` covers an unset variable and
``fallback`` covers a value the schema rejects; without a fallback the
``pydantic.ValidationError`` propagates to the caller.
"""

from __future__ import annotations

import os
from typing import Annotated, Any

from pydantic import StringConstraints, TypeAdapter, ValidationError

_MISSING: Any = object()

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _adapter(schema: Any) -> TypeAdapter[Any]:
    if isinstance(schema, TypeAdapter):
        return schema
    return TypeAdapter(schema)


def get_from_environment(
    name: str,
    schema: Any,
    *,
    default: Any = _MISSING,
    fallback: Any = _MISSING,
) -> Any:
    """Read ``name`` from the environment and parse it with ``schema``.

    ``schema`` is any type pydantic can build a ``TypeAdapter`` for (or an
    adapter itself), so ``int``, enums and ``Annotated`` constraints all work.

    >>> os.environ["PORT"] = "8080"
    >>> get_from_environment("PORT", int, default=80)
    8080
    """
    raw = os.environ.get(name)
    if raw is None and default is not _MISSING:
        return default
    try:
        return _adapter(schema).validate_python(raw)
    except ValidationError:
        if fallback is not _MISSING:
            return fallback
        raise
