"""
Name normalization for person comparison.

Comparison keys are lowercase with all whitespace and invisible
characters removed, so "Liu Xueli" and "liuxueli" compare equal, as do names
carrying a stray BOM or zero-width space. Stored names keep their
original casing; only comparison uses the keys.
"""

import re
from typing import Iterable

# \s covers Unicode whitespace, including the full-width space U+3000
_WHITESPACE_RE = re.compile(r"\s+")
# BOM and zero-width characters that \s does not match
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\u2060\ufeff]")


def normalize_name(value: str | None) -> str:
    """
    Canonicalize a name or alias into a comparison key.

    Total on any input: None and empty strings give "".
    """
    if not value:
        return ""
    key = value.lower()
    key = _WHITESPACE_RE.sub("", key)
    return _INVISIBLE_RE.sub("", key)


def alias_keys(name: str | None, aliases: Iterable[str] | None = None) -> list[str]:
    """
    Comparison keys for a person: the name first, then each alias.

    Keys that normalize to "" are dropped so blank aliases never match.
    """
    keys = []
    for value in [name, *(aliases or [])]:
        key = normalize_name(value)
        if key and key not in keys:
            keys.append(key)
    return keys


def merge_aliases(preferred: Iterable[str] | None, other: Iterable[str] | None) -> list[str]:
    """
    Union two alias lists, deduplicated by comparison key.

    When both lists hold the same alias, the preferred list's spelling
    is kept.
    """
    merged: list[str] = []
    seen: set[str] = set()
    for alias in [*(preferred or []), *(other or [])]:
        key = normalize_name(alias)
        if not key or key in seen:
            continue
        seen.add(key)
        merged.append(alias)
    return merged
