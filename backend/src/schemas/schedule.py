"""
Pydantic schemas for personal schedule entries.

Entries are read-only through the API: they are derived from approved
participations.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer


class ScheduleEntryResponse(BaseModel):
    """Schema for schedule entry API responses."""

    guid: str = Field(..., description="Schedule entry GUID (sch_xxx)")
    user_id: str
    event_guid: str
    entry_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    title: str
    location_text: Optional[str] = None
    updated_at: datetime

    @field_serializer("updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        return v.isoformat() + "Z" if v else None

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "sch_01hgw2bbg0000000000000001",
                "user_id": "user-a",
                "event_guid": "evt_01hgw2bbg0000000000000001",
                "entry_date": "2024-06-10",
                "start_time": "10:00:00",
                "end_time": "12:00:00",
                "title": "Town Meeting",
                "location_text": "Community Hall",
                "updated_at": "2024-06-02T03:00:00Z",
            }
        },
    }


class ScheduleListResponse(BaseModel):
    items: List[ScheduleEntryResponse]
    total: int
