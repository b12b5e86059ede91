"""
Shared model fields.

Every persisted entity carries the same soft-delete envelope: a ``deleted``
flag plus the ISO timestamp of when it was set. Default queries exclude rows
whose flag is set; see ``app.db.repository`` for the lifecycle operations.
"""
from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlmodel import SQLModel, Field


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class SoftDeleteFields(SQLModel):
    """Soft-delete envelope mixed into every table model."""
    deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[str] = None


class TimestampFields(SQLModel):
    # Audit timestamps - automatically set to current UTC time
    created_at: str = Field(default_factory=utcnow_iso)
    updated_at: str = Field(default_factory=utcnow_iso)
