"""Pydantic schemas for Email Reminder Service.

Request and response bodies for the REST API.
"""

from pydantic import AliasChoices, BaseModel, Field, field_serializer
from datetime import datetime, timezone
from typing import Optional


def _utc_isoformat(v: Optional[datetime]) -> Optional[str]:
    # SQLite hands back naive datetimes; they are stored as UTC
    if v is None:
        return None
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    return v.isoformat()


class TrackedEmailCreate(BaseModel):
    """Schema for adding a tracked email.

    ``address`` may also be sent as ``email``. It is optional here so the
    endpoint can answer a missing value with 400 instead of a 422.
    """

    address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("address", "email"),
        description="Email address to track",
        examples=["ops@example.com"]
    )


class TrackedEmailResponse(BaseModel):
    """Schema for tracked email responses."""

    id: str = Field(..., description="Unique record ID")
    address: str = Field(..., description="Tracked email address")
    status: str = Field(..., description="UNSEEN or SEEN")
    created_at: datetime = Field(..., description="When the record was created")
    updated_at: datetime = Field(..., description="When the record was last updated")

    class Config:
        """Pydantic configuration"""
        from_attributes = True  # Enable ORM mode for SQLAlchemy models

        json_schema_extra = {
            "example": {
                "id": "abc-123-def-456",
                "address": "ops@example.com",
                "status": "UNSEEN",
                "created_at": "2025-10-25T10:30:00+00:00",
                "updated_at": "2025-10-25T10:30:00+00:00"
            }
        }

    # Always emit UTC offsets so clients don't read times as local
    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, v: datetime) -> str:
        return _utc_isoformat(v)

    @classmethod
    def from_record(cls, record) -> "TrackedEmailResponse":
        return cls(
            id=record.id,
            address=record.address,
            status=record.status.value,
            created_at=record.created_at,
            updated_at=record.updated_at
        )


class TrackedEmailCreated(BaseModel):
    """Body returned after a tracked email is added."""

    message: str = Field(..., description="Human-readable result")
    email: TrackedEmailResponse
