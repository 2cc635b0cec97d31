"""
Middleware components for the CollabCal backend.

This module provides:
- get_actor: FastAPI dependency extracting the caller from gateway headers
- require_auth: FastAPI dependency for requiring authentication
"""

from backend.src.middleware.auth import Actor, get_actor, require_auth

__all__ = [
    "Actor",
    "get_actor",
    "require_auth",
]
