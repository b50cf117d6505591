"""Diff presentation: rows for the unified and split views."""

import difflib
import logging
from typing import Any

from zarv.exceptions import ZodParseError
from zarv.models.diff import (
    AnnotatedDiff,
    AnnotatedLine,
    DiffDisplayOptions,
    DiffHunk,
    DiffMode,
    DiffRow,
    FieldChange,
    HunkKind,
)
from zarv.utils.line_diff import annotate, diff_lines, split_lines
from zarv.utils.zod_parser import compare_structures, parse_schema

logger = logging.getLogger(__name__)

_MARKERS = {HunkKind.ADDED: "+", HunkKind.REMOVED: "-", HunkKind.UNCHANGED: " "}
_BARS = {HunkKind.ADDED: "green", HunkKind.REMOVED: "red", HunkKind.UNCHANGED: None}


def _to_row(line: AnnotatedLine) -> DiffRow:
    return DiffRow(
        marker=_MARKERS[line.kind],
        bar=_BARS[line.kind],
        old_number=line.old_number,
        new_number=line.new_number,
        content=line.content,
    )


class DiffView:
    """A computed diff of two texts, ready to render in either mode.

    Hunks and line numbers are computed once; switching modes with
    `with_mode` reuses them.
    """

    def __init__(
        self,
        old_text: str,
        new_text: str,
        options: DiffDisplayOptions,
        hunks: list[DiffHunk],
        annotated: AnnotatedDiff,
    ) -> None:
        self.old_text = old_text
        self.new_text = new_text
        self.options = options
        self.hunks = hunks
        self.annotated = annotated
        self._field_changes: list[FieldChange] | None = None
        self._structure_checked = False

    @property
    def mode(self) -> DiffMode:
        return self.options.mode

    @property
    def additions(self) -> int:
        return self.annotated.additions

    @property
    def deletions(self) -> int:
        return self.annotated.deletions

    @property
    def has_changes(self) -> bool:
        return self.additions > 0 or self.deletions > 0

    def unified_rows(self) -> list[DiffRow]:
        """Every line in order, with both number columns."""
        return [_to_row(line) for line in self.annotated.lines]

    def split_rows(self) -> tuple[list[DiffRow], list[DiffRow]]:
        """Old-side and new-side columns.

        The left column holds every line with an old number (unchanged and
        removed), the right column every line with a new number (unchanged
        and added). The columns are filtered independently: rows are not
        padded, so they only line up until the first change region whose
        removed and added line counts differ.
        """
        left = [_to_row(line) for line in self.annotated.lines if line.old_number is not None]
        right = [_to_row(line) for line in self.annotated.lines if line.new_number is not None]
        return left, right

    def with_mode(self, mode: DiffMode) -> "DiffView":
        """Same diff with another rendering mode, without recomputing it."""
        view = DiffView(
            self.old_text,
            self.new_text,
            self.options.model_copy(update={"mode": mode}),
            self.hunks,
            self.annotated,
        )
        view._field_changes = self._field_changes
        view._structure_checked = self._structure_checked
        return view

    def render(self, mode: DiffMode | None = None) -> dict[str, Any]:
        """Render the diff as a plain dictionary.

        Args:
            mode: Rendering mode (defaults to the view's mode)

        Returns:
            Header fields and counts, plus `rows` in unified mode or
            `left` and `right` in split mode
        """
        mode = mode or self.mode
        rendered: dict[str, Any] = {
            "title": self.options.title,
            "old_label": self.options.old_label,
            "new_label": self.options.new_label,
            "filename": self.options.filename,
            "mode": mode.value,
            "additions": self.additions,
            "deletions": self.deletions,
        }
        if mode is DiffMode.SPLIT:
            left, right = self.split_rows()
            rendered["left"] = [row.model_dump() for row in left]
            rendered["right"] = [row.model_dump() for row in right]
        else:
            rendered["rows"] = [row.model_dump() for row in self.unified_rows()]
        return rendered

    def to_patch(self) -> str:
        """Unified patch text for export; empty when nothing changed."""
        patch = difflib.unified_diff(
            split_lines(self.old_text),
            split_lines(self.new_text),
            fromfile=f"{self.options.old_label}/{self.options.filename}",
            tofile=f"{self.options.new_label}/{self.options.filename}",
            lineterm="",
        )
        return "\n".join(patch)

    def field_changes(self) -> list[FieldChange] | None:
        """Field-level changes between the two definitions.

        Returns:
            Changes sorted by path, or None if either text does not parse
        """
        if not self._structure_checked:
            self._structure_checked = True
            try:
                self._field_changes = compare_structures(
                    parse_schema(self.old_text), parse_schema(self.new_text)
                )
            except ZodParseError as e:
                logger.debug("Skipping structural diff: %s", e)
                self._field_changes = None
        return self._field_changes


class DiffService:
    """Builds diff views. Stateless and free of storage access."""

    def build_view(
        self,
        old_text: str,
        new_text: str,
        options: DiffDisplayOptions | None = None,
    ) -> DiffView:
        """Diff two texts.

        Args:
            old_text: Previous text
            new_text: Current text
            options: Header labels and mode (viewer defaults when omitted)

        Returns:
            DiffView holding the hunks and annotated lines
        """
        hunks = diff_lines(old_text, new_text)
        return DiffView(
            old_text,
            new_text,
            options or DiffDisplayOptions(),
            hunks,
            annotate(hunks),
        )
