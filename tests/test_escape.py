from __future__ import annotations

import itertools

import pytest

from clickhouse_stream import escape, unescape

SPECIAL = ["\b", "\f", "\r", "\n", "\t", "'", "\\", "/", "-"]


@pytest.mark.parametrize(
    ("raw", "escaped"),
    [
        ("plain", "plain"),
        ("a\tb", "a\\tb"),
        ("line\nbreak", "line\\nbreak"),
        ("it's", "it\\'s"),
        ("C:\\dir", "C:\\\\dir"),
        ("2024-03-05", "2024\\-03\\-05"),
        ("a/b", "a\\/b"),
    ],
)
def test_escape_known_characters(raw: str, escaped: str) -> None:
    assert escape(raw) == escaped
    assert unescape(escaped) == raw


def test_round_trip_over_special_character_orderings() -> None:
    for size in (1, 2, 3):
        for combo in itertools.product(SPECIAL, repeat=size):
            text = "".join(combo)
            assert unescape(escape(text)) == text


def test_unescape_keeps_unknown_pairs_and_trailing_backslash() -> None:
    assert unescape("\\x41") == "\\x41"
    assert unescape("end\\") == "end\\"


def test_escape_leaves_unicode_untouched() -> None:
    assert escape("привет") == "привет"
