from __future__ import annotations

from toolkit_cli.emoji_codes import (
    emoji_char_to_code,
    emoji_code_to_char,
    is_emoji_char,
    is_emoji_code,
)


def test_is_emoji_code():
    assert is_emoji_code(":smile:")
    assert not is_emoji_code("smile")
    assert not is_emoji_code(":smile: again")


def test_is_emoji_char():
    assert is_emoji_char("😱")
    assert not is_emoji_char("a")


def test_emoji_char_to_code_uses_github_aliases():
    assert emoji_char_to_code("I Have 😶, and I Must 😱") == "I Have :no_mouth:, and I Must :scream:"


def test_emoji_code_to_char_keeps_unknown_codes():
    assert emoji_code_to_char(":sparkles: done :not_a_real_code:") == "✨ done :not_a_real_code:"
