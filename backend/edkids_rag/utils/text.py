"""Text processing helpers."""

from __future__ import annotations

import re
from pathlib import PurePath

TOKEN_RE = re.compile(r"\w+")
_SLUG_RE = re.compile(r"(?:[^\w-]|_)+")
_TITLE_SEP_RE = re.compile(r"[-_]")


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens; Unicode aware so Urdu text tokenizes too."""
    return TOKEN_RE.findall(text.lower())


def derive_topic(source_name: str) -> tuple[str, str]:
    """Return ``(topic_slug, title)`` for a source file name.

    >>> derive_topic("Percent_Basics.md")
    ('percent-basics', 'Percent Basics')
    >>> derive_topic("گنتی.md")
    ('گنتی', 'گنتی')
    """
    base = PurePath(source_name).stem
    topic_slug = _SLUG_RE.sub("-", base.lower())
    title = _TITLE_SEP_RE.sub(" ", base)
    return topic_slug, title


__all__ = ["tokenize", "derive_topic"]
