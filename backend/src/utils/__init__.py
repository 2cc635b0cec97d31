"""
Utility modules for CollabCal backend.

This package contains shared utilities used across the application:
- cycle: Weekly compliance cycle and calendar-month arithmetic
- logging_config: Logger setup for services, API and database layers
"""

from backend.src.utils.cycle import (
    cycle_bounds,
    cycle_key,
    event_instant,
    month_bounds,
)

__all__ = [
    "cycle_bounds",
    "cycle_key",
    "event_instant",
    "month_bounds",
]
