import re
from typing import Any, Iterable

_PHONE_PATTERN = re.compile(r"^1[0-9]{10}$")


def normalize_text(value: Any, max_length: int = 100) -> str:
    """Trim a submitted value and cap its length.

    Anything that is not a string (missing keys, numbers, lists) normalizes
    to the empty string, so callers only ever deal with ``str``.

    Args:
        value: Raw value from a request body or stored row.
        max_length: Maximum number of characters kept.

    Returns:
        str: Trimmed, truncated text.
    """
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]


def normalize_text_list(values: Iterable[Any], max_length: int) -> list[str]:
    """Normalize every item, drop empties and deduplicate keeping first-seen order."""
    seen: dict[str, None] = {}
    for item in values:
        text = normalize_text(item, max_length)
        if text:
            seen.setdefault(text, None)
    return list(seen)


def is_valid_phone(phone: str) -> bool:
    """Return True for 11-digit mobile numbers starting with ``1``."""
    return bool(_PHONE_PATTERN.fullmatch(phone))
