"""Annotation overlay: wrap ranges of a source string in markup.

An ``Annotation`` marks a half-open range ``[start, end)`` of one fixed
source string with an opening and closing markup string.  Independently
computed annotation sets (tokenizer spans, diff block wrappers, intra-line
change spans) are merged here into a single escaped, correctly nested
output string.

Architecture:
    Annotations are sorted by ``(start asc, end desc)`` so that an outer
    range starting at the same offset as an inner one is opened first.
    A single left-to-right sweep then keeps an explicit stack of open
    annotations, closing innermost-first before opening the next one.
    The set must be laminar: any two ranges are either disjoint or nested.
    Crossing ranges are rejected with ``AnnotationOverlapError`` instead of
    producing broken tag nesting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

# Characters that must be entity-escaped in text and attribute values
_ESCAPE_TABLE = str.maketrans(
    {
        '"': "&quot;",
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
    }
)


def escape_html(text: str) -> str:
    """Escape ``" & < >`` as HTML entities."""
    return text.translate(_ESCAPE_TABLE)


class AnnotationError(ValueError):
    """An annotation set cannot be rendered over its source."""


class AnnotationBoundsError(AnnotationError):
    """An annotation range falls outside the source or is inverted."""

    def __init__(self, annotation: Annotation, size: int) -> None:
        self.annotation = annotation
        self.size = size
        super().__init__(
            f"annotation [{annotation.start}, {annotation.end}) "
            f"is invalid for a source of length {size}"
        )


class AnnotationOverlapError(AnnotationError):
    """Two annotations partially overlap without one containing the other."""

    def __init__(self, outer: Annotation, inner: Annotation) -> None:
        self.outer = outer
        self.inner = inner
        super().__init__(
            f"annotation [{inner.start}, {inner.end}) crosses "
            f"[{outer.start}, {outer.end})"
        )


@dataclass(frozen=True, slots=True)
class Annotation:
    """Markup wrapped around ``source[start:end]``.

    Attributes:
        start: First covered offset (inclusive).
        end: End offset (exclusive).
        open_markup: Emitted at ``start``.
        close_markup: Emitted at ``end``.
        want_inner: When False the markup replaces the covered text and
            any annotations nested inside it are not rendered.
    """

    start: int
    end: int
    open_markup: str
    close_markup: str
    want_inner: bool = True

    def contains(self, other: Annotation) -> bool:
        return self.start <= other.start and other.end <= self.end

    def is_disjoint(self, other: Annotation) -> bool:
        return self.end <= other.start or other.end <= self.start

    def is_compatible(self, other: Annotation) -> bool:
        """True when the two ranges can be nested in the same output."""
        return (
            self.is_disjoint(other) or self.contains(other) or other.contains(self)
        )


def sort_annotations(annotations: Iterable[Annotation]) -> list[Annotation]:
    """Order annotations for rendering: start ascending, end descending.

    Ties beyond that keep their input order.
    """
    return sorted(annotations, key=lambda a: (a.start, -a.end))


def render_annotations(
    source: str,
    annotations: Iterable[Annotation],
    escape: Callable[[str], str] = escape_html,
) -> str:
    """Render *source* with every annotation's markup inserted around its range.

    Literal text between annotation boundaries is passed through *escape*.
    Text covered by an annotation with ``want_inner=False`` is omitted.

    Args:
        source: The raw, unescaped text the offsets refer to.
        annotations: Annotations in any order.
        escape: Escaping applied to literal text runs.

    Returns:
        The escaped text with markup inserted, properly nested.

    Raises:
        AnnotationBoundsError: A range lies outside *source* or is inverted.
        AnnotationOverlapError: Two ranges cross each other.
    """
    size = len(source)
    out: list[str] = []
    stack: list[Annotation] = []
    # Parallel to stack; False for annotations swallowed by a replacement
    shown: list[bool] = []
    pos = 0

    def hidden() -> bool:
        return bool(stack) and not (shown[-1] and stack[-1].want_inner)

    def emit_text(upto: int) -> None:
        nonlocal pos
        if upto > pos:
            if not hidden():
                out.append(escape(source[pos:upto]))
            pos = upto

    def close_until(offset: int) -> None:
        while stack and stack[-1].end <= offset:
            closing = stack[-1]
            emit_text(closing.end)
            stack.pop()
            if shown.pop():
                out.append(closing.close_markup)

    for ann in sort_annotations(annotations):
        if ann.start < 0 or ann.end > size or ann.start > ann.end:
            raise AnnotationBoundsError(ann, size)

        close_until(ann.start)
        if stack and ann.end > stack[-1].end:
            raise AnnotationOverlapError(stack[-1], ann)

        emit_text(ann.start)
        # Swallowed annotations are tracked but emit no markup
        visible = not hidden()
        if visible:
            out.append(ann.open_markup)
        stack.append(ann)
        shown.append(visible)

    close_until(size)
    emit_text(size)
    return "".join(out)
