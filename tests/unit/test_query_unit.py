"""Unit tests for query descriptors, escaping and row decoding."""

import pytest

from cliphistory.core.storage import CorruptRecordError, StorageQuery, TextValue, ThumbnailValue
from cliphistory.core.storage.query import (
    FALLBACK_ESCAPE_CHARS,
    QueryMode,
    build_like_pattern,
    choose_escape_char,
    decode_value,
)


def test_plain_value_has_no_escape() -> None:
    """Values without wildcards are wrapped as-is."""
    assert build_like_pattern("hello") == ("%hello%", None)


def test_percent_and_underscore_are_escaped_with_backslash() -> None:
    """Wildcards are escaped using the default escape character."""
    pattern, escape = build_like_pattern("50%_off")

    assert escape == "\\"
    assert pattern == "%50\\%\\_off%"


def test_backslash_in_value_switches_to_first_fallback() -> None:
    """A value containing the default escape uses the first unused fallback."""
    pattern, escape = build_like_pattern("C:\\tmp\\100%")

    assert escape == "!"
    assert pattern == "%C:\\tmp\\100!%%"


def test_fallback_skips_characters_present_in_value() -> None:
    """Fallback characters that occur in the value are not chosen."""
    assert choose_escape_char("\\!@") == "#"


def test_exhausted_fallbacks_keep_default() -> None:
    """When every candidate is present the default is kept."""
    value = "\\" + "".join(FALLBACK_ESCAPE_CHARS) + "%"

    assert choose_escape_char(value) == "\\"


def test_decode_text_and_image_values() -> None:
    """Kind tags map onto the matching payload variant."""
    assert decode_value(0, "copied", None) == TextValue("copied")
    assert decode_value(1, None, b"thumb") == ThumbnailValue(b"thumb")
    assert decode_value(1, None, None) == ThumbnailValue(b"")


def test_decode_unknown_kind_raises() -> None:
    """An unexpected kind tag is an invariant violation."""
    with pytest.raises(CorruptRecordError):
        decode_value(2, None, None)

    with pytest.raises(CorruptRecordError):
        decode_value(9, "text", None)


def test_query_constructors() -> None:
    """Factory methods build the three query modes."""
    recent = StorageQuery.recent(25, 50)
    assert recent.mode is QueryMode.RECENT
    assert (recent.limit, recent.skip) == (25, 50)

    assert StorageQuery.search("abc").value == "abc"
    assert StorageQuery.favorites().mode is QueryMode.FAVORITES


def test_recent_rejects_negative_bounds() -> None:
    """Negative pagination bounds are programming errors."""
    with pytest.raises(ValueError):
        StorageQuery.recent(-1)

    with pytest.raises(ValueError):
        StorageQuery.recent(10, -5)
