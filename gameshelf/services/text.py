import html
from typing import Optional

import bleach


def strip_html(value: Optional[str]) -> str:
    """Drop every tag and return plain text, entities decoded: "R&amp;D <b>x</b>" -> "R&D x"."""
    if not value:
        return ""
    cleaned = bleach.clean(value, tags=[], strip=True)
    return html.unescape(cleaned).strip()
