"""Common utilities for the operations assistant.

Text handling contract
----------------------
* User questions and document text have BOM markers and replacement
  characters stripped once, at the boundary where they enter the system.
* Normalization is explicit: callers opt into NFKC normalization or
  ASCII-only output when a consumer requires it.
* Internal layers assume text is already clean.
"""

import unicodedata


def clean_text(text: str, *, normalize: bool = True, ascii_only: bool = False) -> str:
    """Remove BOM markers and optionally normalize/ASCII-fold text.

    Args:
        text: Input text that may contain BOM or special characters.
        normalize: Whether to apply NFKC normalization. Enabled by default.
        ascii_only: Whether to discard non-ASCII characters.

    Returns:
        Cleaned text with BOMs removed and optional normalization applied.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    if normalize:
        cleaned = unicodedata.normalize("NFKC", cleaned)
    if ascii_only:
        cleaned = cleaned.encode("ascii", errors="ignore").decode("ascii")
    return cleaned


def truncate_text(text: str, max_chars: int, suffix: str = "...") -> str:
    """Shorten text for log lines, keeping it under ``max_chars``."""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    if max_chars <= len(suffix):
        return text[:max_chars]
    return text[: max_chars - len(suffix)] + suffix
