"""Conversion between emoji characters and GitHub-style ``:codes:``."""

from __future__ import annotations

import re

import emoji

EMOJI_CODE_REGEX = re.compile(r"^:\w+:$")
EMOJI_CODE_REGEX_GLOBAL = re.compile(r":\w+:")

# GitHub shortcodes ("alias") resolve first, then the CLDR names.
_LANGUAGE = "alias"


def is_emoji_code(text: str) -> bool:
    return bool(EMOJI_CODE_REGEX.match(text))


def is_emoji_char(text: str) -> bool:
    return emoji.is_emoji(text)


def emoji_char_to_code(text: str) -> str:
    """Replace emoji characters with their codes.

    >>> emoji_char_to_code("I Have 😶, and I Must 😱")
    'I Have :no_mouth:, and I Must :scream:'
    """
    return emoji.demojize(text, language=_LANGUAGE)


def emoji_code_to_char(text: str) -> str:
    """Replace known emoji codes with their characters; unknown codes are kept."""
    return EMOJI_CODE_REGEX_GLOBAL.sub(_code_to_char, text)


def _code_to_char(match: re.Match[str]) -> str:
    code = match.group(0)
    return emoji.emojize(code, language=_LANGUAGE)
