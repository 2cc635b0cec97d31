"""
Pydantic schemas for participation summaries and weekly compliance.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class ParticipationSummaryResponse(BaseModel):
    """
    Point summary for a user.

    this_month_* cover the current calendar month in the organization
    timezone; the remaining figures cover start_date..end_date, or all time
    when no range was given.
    """

    user_id: str
    this_month_count: int
    this_month_points: float
    total_count: int
    total_points: float
    participation_count: int
    preparation_count: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "user-a",
                "this_month_count": 2,
                "this_month_points": 1.5,
                "total_count": 9,
                "total_points": 7.0,
                "participation_count": 5,
                "preparation_count": 4,
            }
        }
    }


class YearlyPointsResponse(BaseModel):
    """Points for one calendar year against the annual target."""

    user_id: str
    year: int
    points: float
    participation_count: int
    preparation_count: int
    target: float
    remaining: float
    progress: float = Field(..., description="Percentage of the target reached, capped at 100")


class ComplianceStatusResponse(BaseModel):
    """
    Weekly compliance of a user.

    The cycle runs from cycle_start (inclusive) to cycle_end (exclusive),
    both expressed in the organization timezone.
    """

    user_id: str
    cycle_start: datetime
    cycle_end: datetime
    cycle_key: str = Field(..., description="YYYY-Www")
    has_participation: bool
    has_preparation: bool
    compliant: bool

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "user-a",
                "cycle_start": "2024-06-10T09:00:00+09:00",
                "cycle_end": "2024-06-17T09:00:00+09:00",
                "cycle_key": "2024-W24",
                "has_participation": True,
                "has_preparation": False,
                "compliant": False,
            }
        }
    }
