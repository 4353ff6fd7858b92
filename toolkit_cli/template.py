"""Flat ``{placeholder}`` string templates.

>>> template = Template("{salute} {name}!")
>>> template.render({"salute": "Hello", "name": "World"})
'Hello World!'
>>> str(template.partial_render({"salute": "Bye"}))
'Bye {name}!'
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from .cli_shared import ToolkitError

PLACEHOLDER_REGEX = re.compile(r"{.+?}")

Replacements = Mapping[str, Any]


class TemplateError(ToolkitError):
    def __init__(self, message: str, *, template: str, result: str, missing_replacements: list[str]) -> None:
        super().__init__(f"{message}: {', '.join(missing_replacements)}")
        self.template = template
        self.result = result
        self.missing_replacements = missing_replacements


class Template:
    """A string with ``{name}`` placeholders and optional default replacements."""

    def __init__(self, value: str, defaults: Replacements | None = None) -> None:
        self.value = str(value)
        self.replacements: dict[str, Any] = dict(defaults or {})

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Template({self.value!r}, defaults={self.replacements!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Template):
            return self.value == other.value and self.replacements == other.replacements
        return NotImplemented

    @property
    def placeholders(self) -> list[str]:
        return PLACEHOLDER_REGEX.findall(self.value)

    def _render(self, replacements: Replacements, *, use_defaults: bool = True) -> str:
        rep = {**self.replacements, **replacements} if use_defaults else dict(replacements)
        end_value = self.value
        for key, value in rep.items():
            end_value = end_value.replace("{" + key + "}", str(value))
        return end_value.strip()

    def _validate(self, value: str) -> None:
        missing = PLACEHOLDER_REGEX.findall(value)
        if missing:
            raise TemplateError(
                "some placeholders haven't been replaced yet",
                template=self.value,
                result=value,
                missing_replacements=missing,
            )

    def render(self, replacements: Replacements | None = None) -> str:
        """Replace every placeholder, falling back to the defaults.

        Raises ``TemplateError`` if any placeholder is left unresolved.
        """
        result = self._render(replacements or {})
        self._validate(result)
        return result

    def partial_render(self, replacements: Replacements) -> Template:
        """Replace only the given placeholders and return a new template.

        Defaults are neither applied nor validated; the ones whose keys were
        not given carry over to the new template.
        """
        rendered = self._render(replacements, use_defaults=False)
        defaults = {k: v for k, v in self.replacements.items() if k not in replacements}
        return Template(rendered, defaults)
