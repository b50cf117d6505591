"""Schema versioning models."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class SchemaSnapshot(BaseModel):
    """Copy of a schema's versioned fields."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    endpoint_url: str | None = None
    http_method: str | None = None
    definition: str


class SchemaVersion(BaseModel):
    """Immutable point-in-time snapshot of a schema."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    schema_id: str
    sequence: int | None = None
    name: str
    description: str | None = None
    endpoint_url: str | None = None
    http_method: str | None = None
    definition: str
    actor_id: str | None = None
    change_note: str | None = None
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def snapshot(self) -> SchemaSnapshot:
        """Versioned fields of this version."""
        return SchemaSnapshot(
            name=self.name,
            description=self.description,
            endpoint_url=self.endpoint_url,
            http_method=self.http_method,
            definition=self.definition,
        )


class VersionEntry(BaseModel):
    """A version as listed in a schema's history."""

    number: int  # 1 = oldest
    is_latest: bool
    version: SchemaVersion

    @property
    def label(self) -> str:
        return f"Version {self.number}"

    @property
    def summary(self) -> str:
        if self.version.change_note:
            return self.version.change_note
        return "Initial version" if self.number == 1 else "Updated schema"


class VersionHistory(BaseModel):
    """Version history for a schema, newest first."""

    schema_id: str
    total_versions: int
    entries: list[VersionEntry] = Field(default_factory=list)
