"""Project models."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Project(BaseModel):
    """Project grouping a set of schemas."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str | None = None
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
