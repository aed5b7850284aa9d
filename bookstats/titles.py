"""Book title derivation and report filename helpers."""
from __future__ import annotations

import re
from pathlib import Path

from bookstats.config import DEFAULT_TITLE_PREFIX, TitleStrategy

_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
# Filesystems cap names at 255 bytes; leave room for " (<stem>)" and ".txt".
MAX_FILENAME_BYTES = 200


def title_from_filename(path: Path) -> str:
    return path.stem.strip()


def title_from_header(first_line: str, prefix: str = DEFAULT_TITLE_PREFIX) -> str:
    """Strip the header prefix and colons from a book's first line, e.g. a Gutenberg banner."""
    title = first_line.lstrip("\ufeff")
    if prefix:
        title = title.replace(prefix, "")
    return title.strip().replace(":", "").strip()


def derive_title(
    path: Path,
    content: str,
    strategy: TitleStrategy = TitleStrategy.HEADER,
    prefix: str = DEFAULT_TITLE_PREFIX,
) -> str:
    """
    Pick a book's display title.

    The header strategy only trusts a first line carrying ``prefix`` (any
    non-blank line when ``prefix`` is empty); otherwise the file stem is used.
    """
    if strategy is TitleStrategy.FILENAME:
        return title_from_filename(path)
    first_line = content.split("\n", 1)[0] if content else ""
    if prefix and prefix not in first_line:
        return title_from_filename(path)
    return title_from_header(first_line, prefix) or title_from_filename(path)


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[: max(0, max_bytes)].decode("utf-8", errors="ignore")


def safe_filename(title: str, fallback: str, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("", title).strip().rstrip(". ")
    cleaned = truncate_utf8(cleaned, max_bytes).strip().rstrip(". ")
    return cleaned or truncate_utf8(fallback, max_bytes)
