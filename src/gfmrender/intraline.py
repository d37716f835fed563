"""Intra-line change highlighting for diff hunks.

For each eligible ``ChangeHunk`` the removed and added lines are joined
into two plain texts with the ``-``/``+`` marker of every line replaced by
a NUL sentinel.  diff-match-patch computes the changed sub-ranges of each
side; those are mapped back to block offsets and clipped to each line's
content so that they nest inside the per-line token spans.

Because the sentinel takes the marker's place, a position in a side text
sits at the same distance from its line start as in the original block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from diff_match_patch import diff_match_patch

from gfmrender.annotation import Annotation

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gfmrender.config import MarkupConfig
    from gfmrender.diff_hunks import ChangeHunk, DiffLine

logger = logging.getLogger(__name__)

MARKER_SENTINEL = "\x00"

type Span = tuple[int, int]


@dataclass(frozen=True, slots=True)
class FineDiff:
    """Changed sub-ranges of both sides, in side-text coordinates."""

    old_spans: list[Span]
    new_spans: list[Span]


def side_text(lines: Sequence[DiffLine]) -> str:
    """Join *lines* with their marker replaced by the sentinel."""
    return "".join(MARKER_SENTINEL + line.text[1:] + "\n" for line in lines)


def diff_spans(old_text: str, new_text: str, timeout: float = 1.0) -> FineDiff:
    """Compute the changed ranges of *old_text* and *new_text*.

    Runs a character diff followed by semantic cleanup, so changes snap to
    human-readable boundaries rather than scattering single characters.
    """
    dmp = diff_match_patch()
    dmp.Diff_Timeout = timeout
    diffs = dmp.diff_main(old_text, new_text)
    dmp.diff_cleanupSemantic(diffs)

    old_spans: list[Span] = []
    new_spans: list[Span] = []
    old_pos = 0
    new_pos = 0
    for op, data in diffs:
        length = len(data)
        if op == dmp.DIFF_EQUAL:
            old_pos += length
            new_pos += length
        elif op == dmp.DIFF_DELETE:
            old_spans.append((old_pos, old_pos + length))
            old_pos += length
        else:
            new_spans.append((new_pos, new_pos + length))
            new_pos += length
    return FineDiff(old_spans=old_spans, new_spans=new_spans)


def remap_spans(spans: Sequence[Span], lines: Sequence[DiffLine]) -> list[Span]:
    """Map side-text spans to block offsets, split per line.

    Each resulting span lies within one line's content, excluding the
    marker character and the newline.
    """
    result: list[Span] = []
    local = 0
    for line in lines:
        content_start = local + 1
        content_end = local + len(line.text)
        for start, end in spans:
            lo = max(start, content_start)
            hi = min(end, content_end)
            if lo < hi:
                result.append((line.start + lo - local, line.start + hi - local))
        local += len(line.text) + 1
    return result


def fine_annotations(
    hunk: ChangeHunk,
    markup: MarkupConfig,
    timeout: float = 1.0,
) -> list[Annotation] | None:
    """Annotate the changed characters inside *hunk*.

    Returns:
        The intra-line annotations, or None when the diff highlighter failed
        (the caller keeps the hunk's coarse wrappers only).
    """
    try:
        fine = diff_spans(side_text(hunk.removed), side_text(hunk.added), timeout)
    except Exception:
        logger.warning(
            "Intra-line diff failed for hunk at %d; keeping block highlight only",
            hunk.old_range[0],
            exc_info=True,
        )
        return None

    open_markup = f'<span class="{markup.changed_span_class}">'
    annotations = [
        Annotation(start, end, open_markup, "</span>")
        for start, end in remap_spans(fine.old_spans, hunk.removed)
    ]
    annotations.extend(
        Annotation(start, end, open_markup, "</span>")
        for start, end in remap_spans(fine.new_spans, hunk.added)
    )
    return annotations
