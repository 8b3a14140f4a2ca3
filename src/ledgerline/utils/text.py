"""Text sanitization for values read from bank exports."""

import re

MAX_DESCRIPTION_LENGTH = 500
MAX_PAYEE_LENGTH = 200
MAX_MEMO_LENGTH = 1000

_BLOCK_TAGS = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_OPEN_BLOCK_TAGS = re.compile(r"<(script|style)\b[^>]*>", re.IGNORECASE)
_TAGS = re.compile(r"<[^>]*>")
_TRAILING_TAG = re.compile(r"<[^<]*$")
_PROTOCOLS = re.compile(r"\b(javascript|data|vbscript):", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _strip_until_stable(pattern: re.Pattern, text: str) -> str:
    while True:
        cleaned = pattern.sub("", text)
        if cleaned == text:
            return cleaned
        text = cleaned


def sanitize_text(text: str | None, max_length: int) -> str:
    """Reduce a CSV cell to plain text.

    Strips markup (script/style blocks including their content), dangerous
    protocol prefixes and control characters, trims whitespace and caps the
    length.

    Args:
        text: Raw cell text
        max_length: Maximum length of the result

    Returns:
        Sanitized text, possibly empty
    """
    if not text:
        return ""

    cleaned = _strip_until_stable(_BLOCK_TAGS, text)
    cleaned = _strip_until_stable(_OPEN_BLOCK_TAGS, cleaned)
    cleaned = _strip_until_stable(_TAGS, cleaned)
    cleaned = _strip_until_stable(_TRAILING_TAG, cleaned)
    cleaned = cleaned.replace("<", "").replace(">", "")
    cleaned = _PROTOCOLS.sub("", cleaned)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = cleaned.strip()

    return cleaned[:max_length]


def normalize_whitespace(text: str) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    return re.sub(r"\s+", " ", text.strip())
