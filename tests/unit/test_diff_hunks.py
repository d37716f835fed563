"""Tests for diff block line classification and hunk segmentation."""

from __future__ import annotations

from gfmrender.config import MarkupConfig
from gfmrender.diff_hunks import (
    LineKind,
    classify_line,
    coarse_annotations,
    segment_diff,
    split_diff_lines,
)


class TestClassifyLine:
    """Only the first character decides a line's kind."""

    def test_removed(self) -> None:
        assert classify_line("-old") is LineKind.REMOVED

    def test_added(self) -> None:
        assert classify_line("+new") is LineKind.ADDED

    def test_hunk_header(self) -> None:
        assert classify_line("@@ -1,2 +1,2 @@") is LineKind.HUNK_HEADER

    def test_context(self) -> None:
        assert classify_line(" unchanged") is LineKind.CONTEXT

    def test_empty_line_is_context(self) -> None:
        assert classify_line("") is LineKind.CONTEXT

    def test_file_header_lines_classified_by_first_char(self) -> None:
        assert classify_line("--- a/file") is LineKind.REMOVED
        assert classify_line("+++ b/file") is LineKind.ADDED


class TestSplitDiffLines:
    """Line offsets within the block."""

    def test_offsets(self) -> None:
        lines = split_diff_lines("-a\n-b\n+c\n+d\ne")
        assert [line.start for line in lines] == [0, 3, 6, 9, 12]
        assert [line.next_start for line in lines] == [3, 6, 9, 12, 13]

    def test_trailing_newline_gives_empty_last_line(self) -> None:
        lines = split_diff_lines("-a\n")
        assert [line.text for line in lines] == ["-a", ""]
        assert lines[-1].start == lines[-1].next_start == 3

    def test_end_excludes_newline(self) -> None:
        line = split_diff_lines("-abc\n")[0]
        assert (line.start, line.end, line.next_start) == (0, 4, 5)


class TestSegmentDiff:
    """Grouping of removed/added runs into change hunks."""

    def test_removed_then_added_then_context(self) -> None:
        seg = segment_diff("-a\n-b\n+c\n+d\ne")
        assert len(seg.hunks) == 1
        hunk = seg.hunks[0]
        assert hunk.old_range == (0, 6)
        assert hunk.new_range == (6, 12)
        assert [line.text for line in hunk.removed] == ["-a", "-b"]
        assert [line.text for line in hunk.added] == ["+c", "+d"]
        assert hunk.wants_fine_highlight

    def test_pure_deletion(self) -> None:
        hunk = segment_diff("-a\n-b\ne").hunks[0]
        assert hunk.old_range == (0, 6)
        assert hunk.new_range == (6, 6)
        assert not hunk.added
        assert hunk.wants_fine_highlight

    def test_pure_addition(self) -> None:
        hunk = segment_diff("+a\n+b\ne").hunks[0]
        assert hunk.old_range == (0, 0)
        assert hunk.new_range == (0, 6)
        assert hunk.wants_fine_highlight

    def test_unterminated_last_line(self) -> None:
        hunk = segment_diff("-a\n+b").hunks[0]
        assert hunk.old_range == (0, 3)
        assert hunk.new_range == (3, 5)

    def test_removed_after_added_starts_new_hunk(self) -> None:
        seg = segment_diff("-a\n+b\n-c\n+d\n")
        assert [(h.old_range, h.new_range) for h in seg.hunks] == [
            ((0, 3), (3, 6)),
            ((6, 9), (9, 12)),
        ]

    def test_context_only_has_no_hunks(self) -> None:
        seg = segment_diff(" a\n b\n")
        assert seg.hunks == ()
        assert len(seg.lines) == 3

    def test_file_header_pair_excluded_from_fine_highlight(self) -> None:
        """A ---/+++ pair closed by @@ keeps its block wrappers only."""
        source = "--- a/f\n+++ b/f\n@@ -1 +1 @@\n-x\n+y\n"
        seg = segment_diff(source)
        assert len(seg.hunks) == 2

        header, change = seg.hunks
        assert header.header_follows
        assert header.old_range == (0, 8)
        assert header.new_range == (8, 16)
        assert not header.wants_fine_highlight

        assert not change.header_follows
        assert change.old_range == (28, 31)
        assert change.new_range == (31, 34)
        assert seg.fine_hunks == (change,)


class TestCoarseAnnotations:
    """Block wrappers per hunk."""

    def test_two_wrappers_per_hunk(self) -> None:
        seg = segment_diff("-a\n+b\n")
        annotations = coarse_annotations(seg.hunks, MarkupConfig())
        assert [(a.start, a.end) for a in annotations] == [(0, 3), (3, 6)]
        assert annotations[0].open_markup == '<span class="gd input-block">'
        assert annotations[1].open_markup == '<span class="gi input-block">'
        assert all(a.close_markup == "</span>" for a in annotations)

    def test_empty_side_still_wrapped(self) -> None:
        seg = segment_diff("-a\n")
        annotations = coarse_annotations(seg.hunks, MarkupConfig())
        assert (annotations[1].start, annotations[1].end) == (3, 3)

    def test_custom_classes(self) -> None:
        seg = segment_diff("-a\n+b\n")
        markup = MarkupConfig(removed_block_class="old", added_block_class="new")
        annotations = coarse_annotations(seg.hunks, markup)
        assert annotations[0].open_markup == '<span class="old">'
        assert annotations[1].open_markup == '<span class="new">'
