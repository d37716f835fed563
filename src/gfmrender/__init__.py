"""gfm-render - GitHub-flavoured Markdown to HTML, rendered locally.

Headings get a clickable anchor link derived from their text; fenced code
blocks are syntax highlighted, and diff blocks additionally get block and
intra-line change highlighting.  Output is sanitised against an allow-list.
"""

from gfmrender.annotation import (
    Annotation,
    AnnotationBoundsError,
    AnnotationError,
    AnnotationOverlapError,
    render_annotations,
)
from gfmrender.heading import build_heading
from gfmrender.markdown import render, render_html

__version__ = "0.1.0"

__all__ = [
    "Annotation",
    "AnnotationBoundsError",
    "AnnotationError",
    "AnnotationOverlapError",
    "build_heading",
    "render",
    "render_annotations",
    "render_html",
]
