"""Anchor names for heading links.

Letters and digits are kept (lowercased); every other run of characters
becomes a single hyphen between words.  Leading and trailing separators
are dropped, so ``"Hello, World!"`` becomes ``"hello-world"``.  Applying
the function to its own output returns it unchanged.
"""

from __future__ import annotations

import re

# Runs of Unicode letters/digits (word characters minus underscore)
_WORD_RUN = re.compile(r"[^\W_]+")


def create_anchor_name(text: str) -> str:
    """Return the anchor name for a heading's plain-text title."""
    return "-".join(run.lower() for run in _WORD_RUN.findall(text))
