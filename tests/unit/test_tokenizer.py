"""Tests for Pygments lexer lookup and token annotations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pygments.token import Keyword, Literal, Name, Text

from gfmrender.config import CodeClassConfig, HighlightConfig
from gfmrender.tokenizer import (
    _class_table,
    find_lexer,
    token_annotations,
    token_class,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


class _BrokenLexer:
    name = "Broken"

    def get_tokens_unprocessed(self, text: str) -> Iterator[tuple[int, Any, str]]:
        yield 0, Keyword, text[:1]
        raise RuntimeError("lexer crashed")


class TestFindLexer:
    """Fence tag to lexer lookup."""

    def test_known_language(self) -> None:
        assert find_lexer("python", HighlightConfig()) is not None

    def test_unknown_language(self) -> None:
        assert find_lexer("no-such-language", HighlightConfig()) is None

    def test_empty_tag(self) -> None:
        assert find_lexer("", HighlightConfig()) is None

    def test_alias(self) -> None:
        lexer = find_lexer("Go-unformatted", HighlightConfig())
        assert lexer is not None
        assert lexer.name == "Go"

    def test_custom_alias(self) -> None:
        config = HighlightConfig(language_aliases={"py3k": "python"})
        lexer = find_lexer("py3k", config)
        assert lexer is not None
        assert "python" in lexer.aliases


class TestTokenClass:
    """Token type to CSS class resolution walks parent types."""

    def test_subtype_inherits_parent_class(self) -> None:
        table = _class_table(CodeClassConfig())
        assert token_class(Keyword.Constant, table) == "k"

    def test_specific_entry_wins_over_parent(self) -> None:
        table = _class_table(CodeClassConfig())
        assert token_class(Keyword.Type, table) == "n"

    def test_strings_and_numbers(self) -> None:
        table = _class_table(CodeClassConfig())
        assert token_class(Literal.String.Double, table) == "s"
        assert token_class(Literal.Number.Integer, table) == "m"

    def test_names(self) -> None:
        table = _class_table(CodeClassConfig())
        assert token_class(Name.Tag, table) == "tag"
        assert token_class(Name.Function, table) == "n"

    def test_plain_text_unmapped(self) -> None:
        assert token_class(Text, _class_table(CodeClassConfig())) is None


class TestTokenAnnotations:
    """Span annotations from a lexer's token stream."""

    def test_keyword_span(self) -> None:
        code = "def f():\n    return 1\n"
        lexer = find_lexer("python", HighlightConfig())
        assert lexer is not None
        annotations = token_annotations(code, lexer, CodeClassConfig())
        assert annotations is not None
        spans = {(a.start, a.end, a.open_markup) for a in annotations}
        assert (0, 3, '<span class="k">') in spans

    def test_annotations_are_disjoint_and_in_bounds(self) -> None:
        code = 'x = "hi"  # note\nprint(x + 1)\n'
        lexer = find_lexer("python", HighlightConfig())
        assert lexer is not None
        annotations = token_annotations(code, lexer, CodeClassConfig())
        assert annotations
        for prev, ann in zip(annotations, annotations[1:], strict=False):
            assert prev.end <= ann.start
        assert all(0 <= a.start < a.end <= len(code) for a in annotations)

    def test_offsets_match_source_with_leading_newlines(self) -> None:
        code = "\n\nreturn\n"
        lexer = find_lexer("python", HighlightConfig())
        assert lexer is not None
        annotations = token_annotations(code, lexer, CodeClassConfig())
        assert annotations is not None
        keyword = next(a for a in annotations if a.open_markup == '<span class="k">')
        assert code[keyword.start : keyword.end] == "return"

    def test_lexer_failure_returns_none(self) -> None:
        lexer: Any = _BrokenLexer()
        assert token_annotations("code", lexer, CodeClassConfig()) is None
