"""
Pydantic schemas for task request API request/response validation.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.schemas.participation import ApprovalStatusType


class TaskRequestCreate(BaseModel):
    """
    Schema for creating a task request.

    Required:
        requested_to: User asked to take on the task
        title: Short title
        description: What is being asked

    Optional:
        deadline: Deadline date
        project_ref: Project reference
    """

    requested_to: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    deadline: Optional[date] = None
    project_ref: Optional[str] = Field(default=None, max_length=64)

    @field_validator("title", "description")
    @classmethod
    def validate_not_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "example": {
                "requested_to": "user-a",
                "title": "Flyers",
                "description": "Print 50 flyers for the town meeting",
                "deadline": "2024-06-08",
            }
        }
    }


class TaskRequestResponse(BaseModel):
    """Schema for task request API responses."""

    guid: str = Field(..., description="Task request GUID (tsk_xxx)")
    requested_by: str
    requested_to: str
    title: str
    description: str
    deadline: Optional[date] = None
    project_ref: Optional[str] = None
    status: ApprovalStatusType
    response_note: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at", "responded_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None

    model_config = {"from_attributes": True}


class TaskRequestListResponse(BaseModel):
    items: List[TaskRequestResponse]
    total: int
