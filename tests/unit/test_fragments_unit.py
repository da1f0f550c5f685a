"""Unit tests for clipboard HTML fragment extraction."""

import pytest

from cliphistory.core.clipboard import parse_html_fragment

CF_HTML = (
    "Version:0.9\r\nStartHTML:00000097\r\nEndHTML:00000170\r\n"
    "<html><body>\r\n<!--StartFragment--><b>bold</b> text<!--EndFragment-->\r\n</body></html>"
)


def test_fragment_between_markers_is_kept() -> None:
    """Headers and the surrounding document are dropped."""
    assert parse_html_fragment(CF_HTML) == "<b>bold</b> text"


@pytest.mark.parametrize(
    "value",
    [
        "<p>no markers</p>",
        "<!--StartFragment--><p>only a start</p>",
        "<p>only an end</p><!--EndFragment-->",
    ],
)
def test_value_without_both_markers_is_unchanged(value: str) -> None:
    assert parse_html_fragment(value) == value


@pytest.mark.parametrize("value", [None, "", "<!--StartFragment--><!--EndFragment-->"])
def test_empty_html_is_none(value) -> None:
    """Nothing to store means no HTML companion at all."""
    assert parse_html_fragment(value) is None
