"""Schema entity models."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from zarv.models.version import SchemaSnapshot, SchemaVersion


class HttpMethod(str, Enum):
    """HTTP methods a schema's target endpoint can be tested with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


# Fields whose change produces a new version
VERSIONED_FIELDS = ("name", "description", "endpoint_url", "http_method", "definition")


class SchemaEntity(BaseModel):
    """Current state of a schema (one row per schema)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str
    name: str
    description: str | None = None
    endpoint_url: str | None = None
    http_method: HttpMethod | None = None
    definition: str = Field(min_length=1)
    last_request_body: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def snapshot(self) -> SchemaSnapshot:
        """Copy the versioned fields."""
        return SchemaSnapshot(
            name=self.name,
            description=self.description,
            endpoint_url=self.endpoint_url,
            http_method=self.http_method.value if self.http_method else None,
            definition=self.definition,
        )


class SchemaUpdate(BaseModel):
    """Schema update request.

    Only fields that are explicitly set are applied; use `model_fields_set`
    to distinguish "clear description" (None) from "leave unchanged".
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    endpoint_url: str | None = None
    http_method: HttpMethod | None = None
    definition: str | None = None


class SchemaWriteResult(BaseModel):
    """Outcome of a schema create or update.

    `warning` is set when the schema was saved but its history capture
    failed; `version` is then None.
    """

    entity: SchemaEntity
    version: SchemaVersion | None = None
    changed: bool = True
    warning: str | None = None

    @property
    def history_degraded(self) -> bool:
        return self.warning is not None
