"""
Name Canonicalization

Strips formatting noise from raw entity names so that variants written by
different reports compare equal. All functions are pure and total: any
string (including the empty string) is accepted and nothing is raised.
"""

import re
from typing import Set

_EMPHASIS = re.compile(r"[*_~`]")
_PARENTHETICAL = re.compile(r"\s*\(.*?\)")
_BRACKETED = re.compile(r"\s*\[.*?\]")
_PUNCTUATION = re.compile(r"[.,;:\"'!?]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

# Display-name cleanup applied before alias resolution
_TYPE_PREFIX = re.compile(r"^[*_]*\[(PERSON|ORG)\][*_]*\s*", re.IGNORECASE)
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EDGE_EMPHASIS = re.compile(r"^[*_]{2,}|[*_]{2,}$")
_EDGE_BRACKETS = re.compile(r"^\[+|\]+$")


def core_name(raw: str) -> str:
    """
    Comparison key for a raw name.

    Lowercases, drops markdown emphasis markers, parenthetical and bracketed
    qualifiers and common punctuation, then collapses whitespace.

    >>> core_name("**Atlas Holdings, Inc.** (Delaware)")
    'atlas holdings inc'
    """
    if not raw:
        return ""
    s = raw.lower()
    s = _EMPHASIS.sub("", s)
    s = _PARENTHETICAL.sub("", s)
    s = _BRACKETED.sub("", s)
    s = _PUNCTUATION.sub("", s)
    return _WHITESPACE.sub(" ", s.strip())


def tokens(raw: str) -> Set[str]:
    """Whitespace tokens of the core name."""
    return {t for t in core_name(raw).split(" ") if t}


def normalize_id(raw: str) -> str:
    """
    Lowercase alphanumeric form used only to build graph node ids.

    Names that differ only in punctuation or spacing collapse onto the same
    id ("A.B. Corp" and "AB Corp" both give "abcorp"); graph nodes inherit
    that collapse.
    """
    if not raw:
        return ""
    return _NON_ALNUM.sub("", raw.lower())


def clean_entity_name(raw: str) -> str:
    """
    Display cleanup for entity names as emitted by report generation.

    Removes ``[PERSON]``/``[ORG]`` type prefixes, unwraps markdown links,
    and strips outer emphasis markers and outer square brackets. Unlike
    :func:`core_name` the result keeps its case and punctuation.
    """
    if not raw:
        return ""
    s = str(raw)
    s = _TYPE_PREFIX.sub("", s)
    s = _MARKDOWN_LINK.sub(r"\1", s)
    s = _EDGE_EMPHASIS.sub("", s)
    s = _EDGE_BRACKETS.sub("", s)
    return s.strip()
