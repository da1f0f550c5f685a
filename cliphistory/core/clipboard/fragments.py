"""HTML clipboard flavour handling"""

from typing import Optional

FRAGMENT_START = '<!--StartFragment-->'
FRAGMENT_END = '<!--EndFragment-->'


def parse_html_fragment(value: Optional[str]) -> Optional[str]:
    """
    Extract the copied markup from clipboard HTML

    Browsers and office apps wrap the selection in fragment markers; only the
    part between them is kept. Without both markers the value is returned
    unchanged.

    Returns:
        The fragment, or None when there is no HTML
    """
    if not value:
        return None

    start = value.find(FRAGMENT_START)
    end = value.find(FRAGMENT_END)

    if start != -1 and end != -1:
        value = value[start + len(FRAGMENT_START):end]

    return value or None
