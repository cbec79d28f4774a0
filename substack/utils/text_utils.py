# substack/utils/text_utils.py
import re
from typing import Iterable

_TAG_PATTERN = re.compile(r"<[^>]+>", re.IGNORECASE)

# Only the entities feeds commonly carry; anything else is left verbatim.
_ENTITIES = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
]

ELLIPSIS = "..."


def strip_html(html: str) -> str:
    """Removes every tag from `html`. Ex: "<p>Hi <b>there</b></p>" -> "Hi there"."""
    if not html:
        return ""
    return _TAG_PATTERN.sub("", html)


def decode_entities(text: str) -> str:
    """Decodes the common HTML entities, in a fixed order (`&amp;` before `&lt;`)."""
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return text


def clean_html(html: str) -> str:
    """Tag removal + entity decoding + trim, as applied to feed descriptions."""
    return decode_entities(strip_html(html)).strip()


def truncate(text: str, limit: int = 200) -> str:
    """
    Cuts `text` to `limit` characters, appending "..." when something was cut.
    Ex: truncate("abcdef", 3) -> "abc..."
    """
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True if any keyword is a substring of `text` (caller lowercases)."""
    return any(keyword in text for keyword in keywords)
