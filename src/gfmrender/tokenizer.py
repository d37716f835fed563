"""Pygments token stream to annotations.

Looks up a Pygments lexer for a fence language tag and turns its
unprocessed token stream into span annotations carrying the short
GitHub-style classes from ``CodeClassConfig``.  Tokens without a mapped
class (plain text, whitespace, errors) are left as literal text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pygments.lexers import get_lexer_by_name
from pygments.token import (
    Comment,
    Generic,
    Keyword,
    Literal,
    Name,
    Operator,
    Punctuation,
)
from pygments.util import ClassNotFound

from gfmrender.annotation import Annotation

if TYPE_CHECKING:
    from pygments.lexer import Lexer
    from pygments.token import _TokenType

    from gfmrender.config import CodeClassConfig, HighlightConfig

logger = logging.getLogger(__name__)


def find_lexer(lang: str, config: HighlightConfig) -> Lexer | None:
    """Return a lexer for the fence tag *lang*, or None when none matches.

    Configured aliases are consulted first (``Go-unformatted`` -> ``go``).
    The lexer keeps leading/trailing newlines so token offsets line up with
    the block text.
    """
    if not lang:
        return None
    name = config.language_aliases.get(lang, lang)
    try:
        return get_lexer_by_name(name, stripnl=False, ensurenl=False)
    except ClassNotFound:
        logger.debug("No lexer for fence language %r", lang)
        return None


def _class_table(classes: CodeClassConfig) -> dict[_TokenType, str]:
    return {
        Keyword.Type: classes.type,
        Keyword: classes.keyword,
        Comment: classes.comment,
        Literal.String: classes.string,
        Literal.Number: classes.decimal,
        Literal: classes.literal,
        Punctuation: classes.punctuation,
        Operator: classes.punctuation,
        Name.Tag: classes.tag,
        Name.Attribute: classes.html_attr_name,
        Name: classes.plaintext,
        Generic.Deleted: classes.deleted,
        Generic.Inserted: classes.inserted,
        Generic.Subheading: classes.subheading,
        Generic.Heading: classes.heading,
    }


def token_class(token_type: _TokenType, table: dict[_TokenType, str]) -> str | None:
    """Resolve the CSS class for *token_type*, walking up its parents."""
    current: _TokenType | None = token_type
    while current is not None:
        css = table.get(current)
        if css is not None:
            return css
        current = current.parent
    return None


def token_annotations(
    code: str,
    lexer: Lexer,
    classes: CodeClassConfig,
) -> list[Annotation] | None:
    """Tokenize *code* and return one span annotation per classed token.

    Returns:
        Annotations in source order, or None when the lexer raised.
    """
    table = _class_table(classes)
    annotations: list[Annotation] = []
    try:
        for index, token_type, value in lexer.get_tokens_unprocessed(code):
            if not value:
                continue
            css = token_class(token_type, table)
            if css is None:
                continue
            open_markup = f'<span class="{css}">'
            annotations.append(
                Annotation(index, index + len(value), open_markup, "</span>")
            )
    except Exception:
        logger.warning(
            "Lexer %s failed; rendering plain text", lexer.name, exc_info=True
        )
        return None
    return annotations
