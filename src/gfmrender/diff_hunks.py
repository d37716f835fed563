"""Diff hunk segmentation for unified-diff code blocks.

Scans a diff block line by line, classifies each line by its first
character, and groups each contiguous run of removed lines with the
immediately following run of added lines into a ``ChangeHunk``.  Each hunk
yields two coarse wrapper annotations (old block, new block) and, when
eligible, feeds the intra-line highlighter in ``gfmrender.intraline``.

Offsets are string offsets into the whole block.  A line's ``start`` is
where its first character sits; ``next_start`` is one past its newline
(clamped to the block length when the last line is unterminated).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from gfmrender.annotation import Annotation

if TYPE_CHECKING:
    from gfmrender.config import MarkupConfig

logger = logging.getLogger(__name__)


class LineKind(Enum):
    """Classification of a diff line by its first character."""

    CONTEXT = "context"
    REMOVED = "removed"
    ADDED = "added"
    HUNK_HEADER = "hunk_header"


_MARKERS: dict[str, LineKind] = {
    "-": LineKind.REMOVED,
    "+": LineKind.ADDED,
    "@": LineKind.HUNK_HEADER,
}


def classify_line(text: str) -> LineKind:
    """Classify a diff line.  Only the first character is inspected."""
    return _MARKERS.get(text[:1], LineKind.CONTEXT)


@dataclass(frozen=True, slots=True)
class DiffLine:
    """One line of a diff block, without its newline."""

    index: int
    kind: LineKind
    text: str
    start: int
    next_start: int

    @property
    def end(self) -> int:
        """Offset just past the line's last character (before the newline)."""
        return self.start + len(self.text)


@dataclass(frozen=True, slots=True)
class ChangeHunk:
    """A run of removed lines paired with the run of added lines after it.

    Attributes:
        removed: Removed lines, possibly empty (pure addition).
        added: Added lines, possibly empty (pure deletion).
        old_range: Half-open range covering the removed lines.
        new_range: Half-open range covering the added lines.
        header_follows: The hunk was closed by a ``@@`` header line, which
            marks it as a ``---``/``+++`` file header pair.
    """

    removed: tuple[DiffLine, ...]
    added: tuple[DiffLine, ...]
    old_range: tuple[int, int]
    new_range: tuple[int, int]
    header_follows: bool = False

    @property
    def wants_fine_highlight(self) -> bool:
        """Whether intra-line highlighting applies to this hunk.

        Every hunk qualifies except a file header pair.  A one-sided hunk
        marks its whole content as changed.
        """
        return not self.header_follows


@dataclass(frozen=True, slots=True)
class DiffSegmentation:
    """Result of segmenting one diff block."""

    lines: tuple[DiffLine, ...]
    hunks: tuple[ChangeHunk, ...]

    @property
    def fine_hunks(self) -> tuple[ChangeHunk, ...]:
        return tuple(h for h in self.hunks if h.wants_fine_highlight)


def split_diff_lines(source: str) -> list[DiffLine]:
    """Split *source* on ``\\n`` and record each line's offsets.

    A trailing newline produces a final empty line, matching ``str.split``.
    """
    size = len(source)
    lines: list[DiffLine] = []
    offset = 0
    for index, text in enumerate(source.split("\n")):
        next_start = min(offset + len(text) + 1, size)
        lines.append(
            DiffLine(
                index=index,
                kind=classify_line(text),
                text=text,
                start=offset,
                next_start=next_start,
            )
        )
        offset = next_start
    return lines


def _make_hunk(
    removed: list[DiffLine],
    added: list[DiffLine],
    *,
    header_follows: bool,
) -> ChangeHunk:
    if removed:
        old_range = (removed[0].start, removed[-1].next_start)
    else:
        old_range = (added[0].start, added[0].start)
    if added:
        new_range = (added[0].start, added[-1].next_start)
    else:
        new_range = (old_range[1], old_range[1])
    return ChangeHunk(
        removed=tuple(removed),
        added=tuple(added),
        old_range=old_range,
        new_range=new_range,
        header_follows=header_follows,
    )


def segment_diff(source: str) -> DiffSegmentation:
    """Group removed/added line runs of a diff block into change hunks.

    A hunk is closed by a context line, a hunk header, the end of input, or
    a removed line arriving after added lines (which starts the next hunk).
    """
    lines = split_diff_lines(source)
    hunks: list[ChangeHunk] = []
    removed: list[DiffLine] = []
    added: list[DiffLine] = []

    def close(*, header_follows: bool = False) -> None:
        if removed or added:
            hunks.append(_make_hunk(removed, added, header_follows=header_follows))
        removed.clear()
        added.clear()

    for line in lines:
        match line.kind:
            case LineKind.REMOVED:
                if added:
                    close()
                removed.append(line)
            case LineKind.ADDED:
                added.append(line)
            case LineKind.HUNK_HEADER:
                close(header_follows=True)
            case LineKind.CONTEXT:
                close()
    close()

    logger.debug("Segmented %d diff lines into %d hunks", len(lines), len(hunks))
    return DiffSegmentation(lines=tuple(lines), hunks=tuple(hunks))


def coarse_annotations(
    hunks: tuple[ChangeHunk, ...] | list[ChangeHunk],
    markup: MarkupConfig,
) -> list[Annotation]:
    """Build the old-block and new-block wrapper annotations for each hunk."""
    removed_open = f'<span class="{markup.removed_block_class}">'
    added_open = f'<span class="{markup.added_block_class}">'
    annotations: list[Annotation] = []
    for hunk in hunks:
        annotations.append(Annotation(*hunk.old_range, removed_open, "</span>"))
        annotations.append(Annotation(*hunk.new_range, added_open, "</span>"))
    return annotations
