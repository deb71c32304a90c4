"""
Browser hosts for the auto-join engine.
"""

from .zoom_joiner import ActiveJoin, ZoomAutoJoiner

__all__ = ["ActiveJoin", "ZoomAutoJoiner"]
