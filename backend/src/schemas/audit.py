"""
Audit trail schemas for API response serialization.

Provides the AuditInfo Pydantic model embedded in event responses to expose
user attribution data. User identities are opaque strings from the external
user directory.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


class AuditInfo(BaseModel):
    """
    Structured audit trail included in entity API responses.

    Attributes:
        created_at: Record creation timestamp
        created_by: Identity of the user who created the record
        updated_at: Last modification timestamp
        updated_by: Identity of the user who last modified the record
    """

    created_at: datetime = Field(..., description="Creation timestamp")
    created_by: str = Field(..., description="User who created the record")
    updated_at: datetime = Field(..., description="Last modification timestamp")
    updated_by: Optional[str] = Field(default=None, description="User who last modified the record")

    @field_serializer("created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "created_at": "2024-06-01T01:45:00Z",
                "created_by": "user-a",
                "updated_at": "2024-06-03T09:12:00Z",
                "updated_by": "staff-1",
            }
        },
    }
