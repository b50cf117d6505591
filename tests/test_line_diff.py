"""Tests for the line diff algorithm and line-number annotation."""

import pytest

from zarv.models.diff import DiffHunk, HunkKind
from zarv.utils.line_diff import annotate, diff_lines, split_lines

SAMPLE_TEXTS = [
    "",
    "single line",
    "a\nb\nc",
    "a\nb\nc\n",
    "z.object({\n  id: z.number(),\n  name: z.string()\n})",
]

CHANGED_PAIRS = [
    ("a\nb\nc\nd", "a\nB\nc\nD"),
    ("a\nb\nc", "c\nb\na"),
    ("x\ny", "x\ny\nx\ny"),
    ("one\ntwo\nthree\nfour\nfive", "zero\none\nthree\nfive\nsix"),
    ("", "only new"),
    ("only old", ""),
]


def _old_side(hunks: list[DiffHunk]) -> list[str]:
    return [line for h in hunks if h.kind is not HunkKind.ADDED for line in h.lines]


def _new_side(hunks: list[DiffHunk]) -> list[str]:
    return [line for h in hunks if h.kind is not HunkKind.REMOVED for line in h.lines]


class TestSplitLines:
    """Test splitting text into lines."""

    def test_empty_text_has_no_lines(self):
        assert split_lines("") == []

    def test_trailing_newline_is_not_a_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_blank_lines_are_kept(self):
        assert split_lines("a\n\nb") == ["a", "", "b"]

    def test_carriage_return_stays_in_content(self):
        assert split_lines("a\r\nb") == ["a\r", "b"]


class TestIdentity:
    """Identical texts produce a single unchanged hunk."""

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_identical_texts(self, text):
        # Given: The same text on both sides
        # When: Diffing
        hunks = diff_lines(text, text)
        result = annotate(hunks)

        # Then: One unchanged hunk holding every line, nothing counted
        assert len(hunks) == 1
        assert hunks[0].kind is HunkKind.UNCHANGED
        assert list(hunks[0].lines) == split_lines(text)
        assert result.additions == 0
        assert result.deletions == 0

    def test_trailing_newline_difference_is_no_change(self):
        hunks = diff_lines("a\nb\n", "a\nb")

        assert hunks == [DiffHunk(kind=HunkKind.UNCHANGED, lines=("a", "b"))]


class TestPureInsertionAndDeletion:
    """Diffs against an empty text."""

    def test_pure_insertion(self):
        # Given: Empty old text
        # When: Diffing against three lines
        hunks = diff_lines("", "a\nb\nc")
        result = annotate(hunks)

        # Then: One added hunk, new numbers 1..3, no old numbers
        assert hunks == [DiffHunk(kind=HunkKind.ADDED, lines=("a", "b", "c"))]
        assert result.additions == 3
        assert result.deletions == 0
        assert [line.old_number for line in result.lines] == [None, None, None]
        assert [line.new_number for line in result.lines] == [1, 2, 3]

    def test_pure_deletion(self):
        # Given: Three old lines
        # When: Diffing against empty text
        hunks = diff_lines("a\nb\nc", "")
        result = annotate(hunks)

        # Then: One removed hunk, old numbers 1..3, no new numbers
        assert hunks == [DiffHunk(kind=HunkKind.REMOVED, lines=("a", "b", "c"))]
        assert result.deletions == 3
        assert result.additions == 0
        assert [line.old_number for line in result.lines] == [1, 2, 3]
        assert [line.new_number for line in result.lines] == [None, None, None]


class TestChanges:
    """Diffs with changed lines."""

    def test_changed_middle_and_last_line(self):
        # Given: Second line changed and third line replaced
        old = "Line 1\nLine 2\nLine 3"
        new = "Line 1\nLine 2 changed\nLine 4"

        # When: Diffing
        hunks = diff_lines(old, new)
        result = annotate(hunks)

        # Then: Two removals and two additions; Line 1 appears once as 1/1
        assert result.additions == 2
        assert result.deletions == 2
        line_one = [line for line in result.lines if line.content == "Line 1"]
        assert len(line_one) == 1
        assert line_one[0].kind is HunkKind.UNCHANGED
        assert (line_one[0].old_number, line_one[0].new_number) == (1, 1)
        assert hunks == [
            DiffHunk(kind=HunkKind.UNCHANGED, lines=("Line 1",)),
            DiffHunk(kind=HunkKind.REMOVED, lines=("Line 2", "Line 3")),
            DiffHunk(kind=HunkKind.ADDED, lines=("Line 2 changed", "Line 4")),
        ]

    def test_removed_precedes_added_in_each_region(self):
        hunks = diff_lines("a\nb\nc\nd", "a\nB\nc\nD")

        assert [h.kind for h in hunks] == [
            HunkKind.UNCHANGED,
            HunkKind.REMOVED,
            HunkKind.ADDED,
            HunkKind.UNCHANGED,
            HunkKind.REMOVED,
            HunkKind.ADDED,
        ]
        assert [h.lines for h in hunks] == [("a",), ("b",), ("B",), ("c",), ("d",), ("D",)]

    def test_insertion_between_unchanged_lines(self):
        hunks = diff_lines("a\nc", "a\nb\nc")

        assert hunks == [
            DiffHunk(kind=HunkKind.UNCHANGED, lines=("a",)),
            DiffHunk(kind=HunkKind.ADDED, lines=("b",)),
            DiffHunk(kind=HunkKind.UNCHANGED, lines=("c",)),
        ]

    def test_line_numbers_across_regions(self):
        result = annotate(diff_lines("a\nc", "a\nb\nc"))

        assert [(line.old_number, line.new_number) for line in result.lines] == [
            (1, 1),
            (None, 2),
            (2, 3),
        ]

    @pytest.mark.parametrize("old,new", CHANGED_PAIRS)
    def test_hunks_reconstruct_both_sides(self, old, new):
        hunks = diff_lines(old, new)

        assert _old_side(hunks) == split_lines(old)
        assert _new_side(hunks) == split_lines(new)

    @pytest.mark.parametrize("old,new", CHANGED_PAIRS)
    def test_hunks_are_maximal_and_non_empty(self, old, new):
        hunks = diff_lines(old, new)

        assert all(h.lines for h in hunks)
        for previous, current in zip(hunks, hunks[1:]):
            assert previous.kind is not current.kind
            # An added run is never followed by a removed run
            assert not (previous.kind is HunkKind.ADDED and current.kind is HunkKind.REMOVED)

    def test_edit_script_is_minimal(self):
        # Longest common subsequence of the two sides is one, three, five
        result = annotate(diff_lines("one\ntwo\nthree\nfour\nfive", "zero\none\nthree\nfive\nsix"))

        assert result.deletions == 2
        assert result.additions == 2

    @pytest.mark.parametrize("old,new", CHANGED_PAIRS)
    def test_deterministic(self, old, new):
        assert diff_lines(old, new) == diff_lines(old, new)


class TestAnnotation:
    """Line-number presence on annotated lines."""

    @pytest.mark.parametrize("old,new", CHANGED_PAIRS + [(t, t) for t in SAMPLE_TEXTS])
    def test_every_line_has_a_number(self, old, new):
        result = annotate(diff_lines(old, new))

        for line in result.lines:
            assert line.old_number is not None or line.new_number is not None
            if line.kind is HunkKind.UNCHANGED:
                assert line.old_number is not None
                assert line.new_number is not None

    @pytest.mark.parametrize("old,new", CHANGED_PAIRS)
    def test_counts_match_line_kinds(self, old, new):
        result = annotate(diff_lines(old, new))

        assert result.additions == sum(1 for line in result.lines if line.kind is HunkKind.ADDED)
        assert result.deletions == sum(1 for line in result.lines if line.kind is HunkKind.REMOVED)

    def test_numbers_are_sequential_per_side(self):
        result = annotate(diff_lines("a\nb\nc\nd", "a\nB\nc\nD"))

        old_numbers = [line.old_number for line in result.lines if line.old_number is not None]
        new_numbers = [line.new_number for line in result.lines if line.new_number is not None]
        assert old_numbers == [1, 2, 3, 4]
        assert new_numbers == [1, 2, 3, 4]

    def test_empty_hunks_annotate_to_nothing(self):
        result = annotate([])

        assert result.lines == []
        assert result.additions == 0
        assert result.deletions == 0
