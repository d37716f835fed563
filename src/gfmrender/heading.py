"""Heading rendering with a clickable anchor link.

The heading's inline HTML (emphasis, code spans, links) is kept as the
visible content.  Only the anchor name is derived from the flattened plain
text, extracted with selectolax by a depth-first walk over text nodes.
"""

from __future__ import annotations

import html as html_module
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from selectolax.lexbor import LexborHTMLParser

from gfmrender.anchor_name import create_anchor_name
from gfmrender.annotation import escape_html

if TYPE_CHECKING:
    from selectolax.lexbor import LexborNode

logger = logging.getLogger(__name__)

_HEADING_TEMPLATE = (
    '<h{level}><a name="{anchor}" class="anchor" href="#{anchor}" '
    'rel="nofollow" aria-hidden="true"><span class="octicon octicon-link">'
    "</span></a>{content}</h{level}>"
)


@dataclass(frozen=True, slots=True)
class HeadingTitle:
    """Plain-text title of a heading.

    Attributes:
        text: Concatenated text content.
        parsed: False when the fragment could not be parsed and *text* is
            the raw fragment with entities unescaped.
    """

    text: str
    parsed: bool = True


@dataclass(frozen=True, slots=True)
class RenderedHeading:
    anchor_name: str
    markup: str


def _collect_text(node: LexborNode) -> str:
    parts: list[str] = []
    child = node.child
    while child is not None:
        # Text nodes carry the tag "-text"
        if child.tag == "-text":
            parts.append(child.text_content or "")
        else:
            parts.append(_collect_text(child))
        child = child.next
    return "".join(parts)


def extract_heading_text(fragment: str) -> HeadingTitle:
    """Return the text content of an inline HTML fragment.

    Falls back to unescaping the raw fragment when parsing fails.
    """
    if not fragment:
        return HeadingTitle(text="")
    try:
        tree = LexborHTMLParser(fragment)
    except Exception:
        logger.debug("Heading fragment did not parse; using raw text", exc_info=True)
        return HeadingTitle(text=html_module.unescape(fragment), parsed=False)

    root = tree.body if tree.body is not None else tree.root
    if root is None:
        return HeadingTitle(text=html_module.unescape(fragment), parsed=False)
    return HeadingTitle(text=_collect_text(root))


def render_heading(level: int, content: str) -> RenderedHeading:
    """Build heading markup with an anchor link in front of *content*.

    Args:
        level: Heading level, 1 to 6.
        content: Already-rendered inline HTML of the heading.

    Raises:
        ValueError: If *level* is outside 1..6.
    """
    if not 1 <= level <= 6:
        msg = f"heading level must be between 1 and 6, got {level}"
        raise ValueError(msg)

    title = extract_heading_text(content)
    anchor = create_anchor_name(title.text)
    markup = _HEADING_TEMPLATE.format(level=level, anchor=anchor, content=content)
    return RenderedHeading(anchor_name=anchor, markup=markup)


def build_heading(level: int, title: str) -> str:
    """Return heading markup for a plain-text *title*."""
    return render_heading(level, escape_html(title)).markup
