"""
Application settings configuration for CollabCal.

Centralized settings loaded from environment variables.
"""

from datetime import time
from functools import lru_cache
from typing import FrozenSet
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def _split_roles(value: str) -> FrozenSet[str]:
    return frozenset(r.strip().upper() for r in value.split(",") if r.strip())


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        COLLABCAL_ORG_TIMEZONE: IANA timezone of the organization (default: Asia/Tokyo)
        COLLABCAL_CYCLE_WEEKDAY: Weekday of the compliance cycle boundary, 0 = Monday (default: 0)
        COLLABCAL_CYCLE_TIME: Local time of the compliance cycle boundary, HH:MM (default: 09:00)
        COLLABCAL_ANNUAL_POINT_TARGET: Yearly participation point target (default: 10)
        COLLABCAL_EVENT_MANAGER_ROLES: Roles allowed to manage any event
        COLLABCAL_TASK_REQUESTER_ROLES: Roles allowed to create task requests
        COLLABCAL_ADMIN_ROLES: Roles allowed to delete any task request
    """

    org_timezone: str = Field(
        default="Asia/Tokyo",
        validation_alias="COLLABCAL_ORG_TIMEZONE",
        description="Single fixed organizational timezone used for dates and cycles",
    )

    cycle_weekday: int = Field(
        default=0,
        validation_alias="COLLABCAL_CYCLE_WEEKDAY",
        ge=0,
        le=6,
    )

    cycle_time: time = Field(
        default=time(9, 0),
        validation_alias="COLLABCAL_CYCLE_TIME",
        description="Local time-of-day at which a compliance cycle starts",
    )

    annual_point_target: float = Field(
        default=10.0,
        validation_alias="COLLABCAL_ANNUAL_POINT_TARGET",
        gt=0,
    )

    # Role names are issued by the upstream user directory
    event_manager_roles: str = Field(
        default="MASTER,SUPPORT,GOVERNMENT",
        validation_alias="COLLABCAL_EVENT_MANAGER_ROLES",
    )

    task_requester_roles: str = Field(
        default="SUPPORT,GOVERNMENT",
        validation_alias="COLLABCAL_TASK_REQUESTER_ROLES",
    )

    admin_roles: str = Field(
        default="MASTER",
        validation_alias="COLLABCAL_ADMIN_ROLES",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    @field_validator("org_timezone")
    @classmethod
    def validate_org_timezone(cls, v: str) -> str:
        """Validate that the timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Organization timezone as a tzinfo object."""
        return ZoneInfo(self.org_timezone)

    @property
    def event_manager_role_set(self) -> FrozenSet[str]:
        return _split_roles(self.event_manager_roles)

    @property
    def task_requester_role_set(self) -> FrozenSet[str]:
        return _split_roles(self.task_requester_roles)

    @property
    def admin_role_set(self) -> FrozenSet[str]:
        return _split_roles(self.admin_roles)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
