"""
API v1 schemas module.
"""

from .meeting import (
    AutoJoinRequest,
    AutoJoinResponse,
    ProgressEventResponse,
    SessionStatusResponse,
    HealthCheckResponse,
)

__all__ = [
    "AutoJoinRequest",
    "AutoJoinResponse",
    "ProgressEventResponse",
    "SessionStatusResponse",
    "HealthCheckResponse",
]
