"""
API v1 endpoints module.
"""

from . import meetings, health

__all__ = ["meetings", "health"]
