"""Diff models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HunkKind(str, Enum):
    """Classification of a run of lines."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


class DiffMode(str, Enum):
    """Diff rendering mode."""

    UNIFIED = "unified"
    SPLIT = "split"


class DiffHunk(BaseModel):
    """Maximal contiguous run of lines sharing one classification."""

    model_config = ConfigDict(frozen=True)

    kind: HunkKind
    lines: tuple[str, ...] = ()


class AnnotatedLine(BaseModel):
    """One line of a diff with its old-side and new-side line numbers."""

    model_config = ConfigDict(frozen=True)

    kind: HunkKind
    content: str
    old_number: int | None = None
    new_number: int | None = None


class AnnotatedDiff(BaseModel):
    """Annotated lines plus aggregate line counts."""

    lines: list[AnnotatedLine] = Field(default_factory=list)
    additions: int = 0
    deletions: int = 0


class DiffDisplayOptions(BaseModel):
    """Header and mode options for a rendered diff."""

    title: str = "Diff Viewer"
    old_label: str = "Old Version"
    new_label: str = "New Version"
    filename: str = "schema.js"
    mode: DiffMode = DiffMode.UNIFIED


class DiffRow(BaseModel):
    """One rendered diff row.

    `bar` is the colour of the left indicator ("green", "red" or None) and
    `marker` the leading "+", "-" or " ".
    """

    marker: str
    bar: str | None = None
    old_number: int | None = None
    new_number: int | None = None
    content: str


class FieldChangeType(str, Enum):
    """Structural change of one field between two definitions."""

    FIELD_ADDED = "field_added"
    FIELD_REMOVED = "field_removed"
    TYPE_CHANGED = "type_changed"
    OPTIONALITY_CHANGED = "optionality_changed"


class FieldChange(BaseModel):
    """A field-level difference between two parsed definitions."""

    path: str
    change_type: FieldChangeType
    old_type: str | None = None
    new_type: str | None = None


class FieldSignature(BaseModel):
    """Type and optionality of one field of a parsed definition."""

    model_config = ConfigDict(frozen=True)

    type_name: str
    optional: bool = False
