"""Data models for zarv."""

from zarv.models.diff import (
    AnnotatedDiff,
    AnnotatedLine,
    DiffDisplayOptions,
    DiffHunk,
    DiffMode,
    DiffRow,
    FieldChange,
    FieldChangeType,
    FieldSignature,
    HunkKind,
)
from zarv.models.project import Project
from zarv.models.schema import (
    HttpMethod,
    SchemaEntity,
    SchemaUpdate,
    SchemaWriteResult,
)
from zarv.models.version import (
    SchemaSnapshot,
    SchemaVersion,
    VersionEntry,
    VersionHistory,
)

__all__ = [
    # Project models
    "Project",
    # Schema models
    "SchemaEntity",
    "SchemaUpdate",
    "SchemaWriteResult",
    "HttpMethod",
    # Version models
    "SchemaSnapshot",
    "SchemaVersion",
    "VersionEntry",
    "VersionHistory",
    # Diff models
    "HunkKind",
    "DiffMode",
    "DiffHunk",
    "AnnotatedLine",
    "AnnotatedDiff",
    "DiffDisplayOptions",
    "DiffRow",
    "FieldChange",
    "FieldChangeType",
    "FieldSignature",
]
