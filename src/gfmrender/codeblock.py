"""Fenced code block rendering with syntax and diff highlighting.

The language tag is the fence info string up to its first whitespace.
Tags with a known lexer render inside
``<div class="highlight highlight-{lang}"><pre>...</pre></div>``; any other
tag (or none) renders as escaped text in ``<pre><code>...</code></pre>``.

Diff tags combine three annotation layers: per-line tokens, the coarse
old/new block wrappers of each change hunk, and intra-line change spans.
If a layer set cannot be nested, the next simpler set is tried, ending
with plain escaped text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gfmrender.annotation import AnnotationError, escape_html, render_annotations
from gfmrender.diff_hunks import coarse_annotations, segment_diff
from gfmrender.intraline import fine_annotations
from gfmrender.tokenizer import find_lexer, token_annotations

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pygments.lexer import Lexer

    from gfmrender.annotation import Annotation
    from gfmrender.config import Settings

logger = logging.getLogger(__name__)

type Highlighter = Callable[[str, Lexer, Settings], str]


def find_lang(info: str | None) -> str:
    """Return the language tag: the info string up to the first whitespace."""
    if not info:
        return ""
    parts = info.split(maxsplit=1)
    return parts[0] if parts else ""


def _render_first(code: str, layers: Sequence[list[Annotation]]) -> str:
    """Render with the first annotation layer set that nests cleanly."""
    for annotations in layers:
        try:
            return render_annotations(code, annotations)
        except AnnotationError as exc:
            logger.warning("Dropping highlight layer: %s", exc)
    return escape_html(code)


def highlight_tokens(code: str, lexer: Lexer, settings: Settings) -> str:
    """Highlight *code* with its lexer's token classes."""
    tokens = token_annotations(code, lexer, settings.code_classes)
    if tokens is None:
        return escape_html(code)
    return _render_first(code, [tokens])


def highlight_diff(code: str, lexer: Lexer, settings: Settings) -> str:
    """Highlight a diff block: line tokens, hunk blocks and intra-line changes."""
    tokens = token_annotations(code, lexer, settings.code_classes) or []
    segmentation = segment_diff(code)
    coarse = coarse_annotations(segmentation.hunks, settings.markup)

    fine: list[Annotation] = []
    for hunk in segmentation.fine_hunks:
        spans = fine_annotations(
            hunk, settings.markup, settings.highlight.intraline_timeout
        )
        if spans is not None:
            fine.extend(spans)

    # Coarse wrappers go first so they stay outermost on equal ranges
    return _render_first(
        code,
        [
            [*coarse, *tokens, *fine],
            [*coarse, *tokens],
            coarse,
        ],
    )


def select_highlighter(lang: str, settings: Settings) -> Highlighter:
    """Pick the highlighting strategy for a recognised language tag."""
    if lang in settings.highlight.diff_languages:
        return highlight_diff
    return highlight_tokens


def render_code_block(info: str | None, code: str, settings: Settings) -> str:
    """Render a fenced code block to HTML.

    Args:
        info: The fence info string (may be empty).
        code: The block's literal text.
        settings: Renderer settings.
    """
    lang = find_lang(info)
    lexer = find_lexer(lang, settings.highlight)
    if lexer is None:
        return f"<pre><code>{escape_html(code)}</code></pre>\n"

    highlighter = select_highlighter(lang, settings)
    body = highlighter(code, lexer, settings)
    # The sanitiser drops the class when a tag has characters outside
    # [\w-] (e.g. "c++"), leaving a bare <div>
    return (
        f'<div class="highlight highlight-{escape_html(lang)}">'
        f"<pre>{body}</pre></div>\n"
    )
