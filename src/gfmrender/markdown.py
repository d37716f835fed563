"""GitHub-flavoured Markdown rendering entry point.

mistune parses the document; this module's renderer routes headings and
fenced code blocks through ``gfmrender.nodes`` and adds task-list
checkboxes to list items.  Raw HTML is passed through unescaped and the
concatenated output is then run through the allow-list sanitiser.
"""

from __future__ import annotations

import logging
from typing import Any

import mistune

from gfmrender.config import Settings, get_settings
from gfmrender.nodes import CodeBlockNode, HeadingNode, render_node
from gfmrender.sanitize import SanitizePolicy, get_policy, sanitize_html

logger = logging.getLogger(__name__)

_UNCHECKED_BOX = '<input type="checkbox" disabled="">'
_CHECKED_BOX = '<input type="checkbox" checked="" disabled="">'


def _task_list_text(text: str) -> str:
    """Replace a leading ``[ ]``/``[x]`` marker with a checkbox input."""
    prefix = ""
    body = text
    if body.startswith("<p>"):
        prefix, body = "<p>", body[3:]
    if body.startswith("[ ] "):
        return prefix + _UNCHECKED_BOX + body[3:]
    if body.startswith(("[x] ", "[X] ")):
        return prefix + _CHECKED_BOX + body[3:]
    return text


class GfmRenderer(mistune.HTMLRenderer):
    """HTML renderer with anchored headings and highlighted code blocks."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(escape=False)
        self.settings = settings

    def heading(self, text: str, level: int, **attrs: Any) -> str:
        return render_node(HeadingNode(level=level, content=text), self.settings)

    def block_code(self, code: str, info: str | None = None) -> str:
        node = CodeBlockNode(info=info or "", literal=code)
        return render_node(node, self.settings)

    def list_item(self, text: str) -> str:
        if self.settings.markdown.task_lists:
            text = _task_list_text(text)
        return super().list_item(text)


def _policy_for(settings: Settings) -> SanitizePolicy:
    if settings is get_settings():
        return get_policy()
    return SanitizePolicy(
        allow_data_uri_images=settings.sanitize.allow_data_uri_images,
    )


def _decode_bytes(content: bytes) -> str:
    """Decode document bytes as UTF-8, falling back to latin-1."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Input is not UTF-8; decoding as latin-1")
        return content.decode("latin-1")


def render_html(
    source: str | bytes,
    *,
    sanitize: bool | None = None,
    settings: Settings | None = None,
) -> str:
    """Render a Markdown document to an HTML fragment.

    Args:
        source: Markdown text, as str or UTF-8 bytes.
        sanitize: Override ``settings.sanitize.enabled``.
        settings: Settings to use; defaults to ``get_settings()``.

    Returns:
        The rendered (and, unless disabled, sanitised) HTML.
    """
    if settings is None:
        settings = get_settings()
    text = _decode_bytes(source) if isinstance(source, bytes) else source

    md = mistune.create_markdown(
        renderer=GfmRenderer(settings),
        plugins=list(settings.markdown.plugins),
    )
    unsanitized = md(text)
    if not isinstance(unsanitized, str):
        msg = f"expected rendered HTML, got {type(unsanitized).__name__}"
        raise TypeError(msg)

    if sanitize is None:
        sanitize = settings.sanitize.enabled
    if not sanitize:
        return unsanitized
    return sanitize_html(unsanitized, _policy_for(settings))


def render(source: str | bytes) -> bytes:
    """Render a Markdown document to sanitised UTF-8 HTML bytes."""
    return render_html(source).encode("utf-8")
