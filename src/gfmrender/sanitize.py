"""Allow-list HTML sanitisation of rendered output.

The policy follows a user-generated-content profile (formatting, lists,
tables, links, images) extended with what the renderer itself emits:
``class`` on ``div``/``span``/``a``, anchor ``name``, ``rel="nofollow"``,
``aria-hidden="true"`` and task-list checkboxes.

Elements outside the allow-list are unwrapped (their content is kept),
except script-like elements whose content is dropped too.  Attributes
outside the allow-list, or whose value does not match its pattern, are
removed.  The policy is built once and shared read-only.
"""

from __future__ import annotations

import html as html_module
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from lxml import etree
from lxml import html as lxml_html

from gfmrender.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

# Attribute value is an URL checked against the scheme allow-list
URL = "url"

type AttrRule = re.Pattern[str] | str | None

_SPACE_SEPARATED_TOKENS = re.compile(r"^[\w\s-]+$")
_NOFOLLOW = re.compile(r"^nofollow$")
_TRUE = re.compile(r"^true$")
_CHECKBOX = re.compile(r"^checkbox$")
_EMPTY = re.compile(r"^$")
_INTEGER = re.compile(r"^[0-9]+$")
_NUMBER_OR_PERCENT = re.compile(r"^[0-9]+%?$")
_ALIGN = re.compile(r"^(?:left|right|center|justify)$", re.IGNORECASE)
_DIR = re.compile(r"^(?:rtl|ltr)$", re.IGNORECASE)
_LANG = re.compile(r"^[a-zA-Z]{2,20}(?:-[a-zA-Z0-9]{1,20})*$")
_ID = re.compile(r"^[a-zA-Z0-9:\-_.]+$")
_LIST_TYPE = re.compile(r"^(?:circle|disc|square|a|A|i|I|1)$")
_LANGUAGE_CLASS = re.compile(r"^language-[\w-]+$")
_DATETIME = re.compile(r"^[0-9T:.+\-Z ]+$")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_DATA_IMAGE = re.compile(
    r"^data:image/(?:png|jpeg|jpg|gif|webp|bmp);base64,[A-Za-z0-9+/=\s]+$",
    re.IGNORECASE,
)

_ALLOWED_ELEMENTS = frozenset(
    (
        "a", "abbr", "acronym", "b", "bdi", "bdo", "blockquote", "br",
        "caption", "cite", "code", "col", "colgroup", "dd", "del", "details",
        "dfn", "div", "dl", "dt", "em", "figcaption", "figure", "h1", "h2",
        "h3", "h4", "h5", "h6", "hgroup", "hr", "i", "img", "input", "ins",
        "kbd", "li", "mark", "ol", "p", "pre", "q", "rp", "rt", "ruby", "s",
        "samp", "small", "span", "strike", "strong", "sub", "summary", "sup",
        "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "tt",
        "u", "ul", "var", "wbr",
    )
)  # fmt: skip

# Dropped together with everything inside them
_DISCARD_CONTENT = frozenset(
    (
        "script", "style", "noscript", "template", "iframe", "object",
        "embed", "frame", "frameset", "head", "title", "textarea", "select",
    )
)  # fmt: skip

# Unwrapped when no attribute survives
_SKIP_IF_NO_ATTRS = frozenset(("a", "span"))

_GLOBAL_ATTRS: dict[str, AttrRule] = {
    "dir": _DIR,
    "id": _ID,
    "lang": _LANG,
    "title": None,
}

_ELEMENT_ATTRS: dict[str, dict[str, AttrRule]] = {
    "a": {
        "href": URL,
        "class": _SPACE_SEPARATED_TOKENS,
        "name": _SPACE_SEPARATED_TOKENS,
        "rel": _NOFOLLOW,
        "aria-hidden": _TRUE,
    },
    "div": {"class": _SPACE_SEPARATED_TOKENS},
    "span": {"class": _SPACE_SEPARATED_TOKENS},
    "code": {"class": _LANGUAGE_CLASS},
    "img": {
        "src": URL,
        "alt": None,
        "width": _NUMBER_OR_PERCENT,
        "height": _NUMBER_OR_PERCENT,
    },
    "input": {
        "type": _CHECKBOX,
        "checked": _EMPTY,
        "disabled": _EMPTY,
    },
    "blockquote": {"cite": URL},
    "q": {"cite": URL},
    "del": {"cite": URL, "datetime": _DATETIME},
    "ins": {"cite": URL, "datetime": _DATETIME},
    "time": {"datetime": _DATETIME},
    "ol": {"start": _INTEGER, "type": _LIST_TYPE},
    "ul": {"type": _LIST_TYPE},
    "li": {"value": _INTEGER},
    "td": {"colspan": _INTEGER, "rowspan": _INTEGER, "align": _ALIGN},
    "th": {"colspan": _INTEGER, "rowspan": _INTEGER, "align": _ALIGN},
    "col": {"span": _INTEGER},
    "colgroup": {"span": _INTEGER},
    "details": {"open": _EMPTY},
}


@dataclass(frozen=True)
class SanitizePolicy:
    """Immutable allow-list policy."""

    elements: frozenset[str] = _ALLOWED_ELEMENTS
    discard_content: frozenset[str] = _DISCARD_CONTENT
    global_attrs: Mapping[str, AttrRule] = field(
        default_factory=lambda: MappingProxyType(dict(_GLOBAL_ATTRS))
    )
    element_attrs: Mapping[str, Mapping[str, AttrRule]] = field(
        default_factory=lambda: MappingProxyType(
            {
                tag: MappingProxyType(dict(rules))
                for tag, rules in _ELEMENT_ATTRS.items()
            }
        )
    )
    url_schemes: frozenset[str] = frozenset(("http", "https", "mailto"))
    allow_data_uri_images: bool = True

    def rule_for(self, tag: str, attr: str) -> tuple[bool, AttrRule]:
        """Return ``(allowed, rule)`` for *attr* on *tag*."""
        rules = self.element_attrs.get(tag, {})
        if attr in rules:
            return True, rules[attr]
        if attr in self.global_attrs:
            return True, self.global_attrs[attr]
        return False, None

    def allows_url(self, tag: str, value: str) -> bool:
        value = value.strip()
        if tag == "img" and _DATA_IMAGE.match(value):
            return self.allow_data_uri_images
        try:
            parts = urlsplit(value)
        except ValueError:
            return False
        if not parts.scheme:
            # Relative URLs and fragments
            return True
        return parts.scheme.lower() in self.url_schemes

    def allows(self, tag: str, attr: str, value: str) -> bool:
        allowed, rule = self.rule_for(tag, attr)
        if not allowed:
            return False
        if rule is None:
            return True
        if isinstance(rule, re.Pattern):
            return bool(rule.match(value))
        return self.allows_url(tag, value)


@lru_cache(maxsize=1)
def get_policy() -> SanitizePolicy:
    """Return the process-wide policy, built from settings on first use.

    Call ``get_policy.cache_clear()`` in tests after changing settings.
    """
    settings = get_settings()
    return SanitizePolicy(
        allow_data_uri_images=settings.sanitize.allow_data_uri_images,
    )


def _clean_attributes(element: HtmlElement, tag: str, policy: SanitizePolicy) -> None:
    for name in list(element.attrib):
        if not policy.allows(tag, name.lower(), element.attrib[name]):
            del element.attrib[name]

    if tag == "a" and "href" in element.attrib:
        if element.get("rel") != "nofollow":
            element.set("rel", "nofollow")


def _clean_children(parent: HtmlElement, policy: SanitizePolicy) -> None:
    for child in list(parent):
        if not isinstance(child.tag, str):
            # Comments and processing instructions
            child.drop_tree()
            continue

        tag = child.tag.lower()
        if tag in policy.discard_content:
            child.drop_tree()
            continue

        _clean_children(child, policy)

        if tag not in policy.elements:
            child.drop_tag()
            continue

        _clean_attributes(child, tag, policy)
        if tag == "img" and "src" not in child.attrib:
            child.drop_tree()
        elif tag in _SKIP_IF_NO_ATTRS and not child.attrib:
            child.drop_tag()


def sanitize_html(html_content: str, policy: SanitizePolicy | None = None) -> str:
    """Apply the allow-list *policy* to an HTML fragment.

    Args:
        html_content: Unsanitised HTML fragment.
        policy: Policy to apply; defaults to ``get_policy()``.

    Returns:
        The sanitised fragment.
    """
    if not html_content or not html_content.strip():
        return html_content
    if policy is None:
        policy = get_policy()

    html_content = _CONTROL_CHARS.sub("\ufffd", html_content)
    try:
        container = lxml_html.fragment_fromstring(html_content, create_parent="div")
    except etree.ParserError:
        logger.warning("Output did not parse as HTML; escaping it as text")
        return html_module.escape(html_content, quote=False)

    _clean_children(container, policy)

    parts: list[str] = []
    if container.text:
        parts.append(html_module.escape(container.text, quote=False))
    parts.extend(lxml_html.tostring(child, encoding="unicode") for child in container)
    return "".join(parts)
