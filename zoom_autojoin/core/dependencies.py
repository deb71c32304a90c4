"""
Dependency injection for the auto-join API.
Provides the shared ZoomAutoJoiner to API endpoints.
"""

from typing import Optional, Any

_joiner_instance: Optional[Any] = None


def set_joiner_instance(instance) -> None:
    """Set the global joiner instance."""
    global _joiner_instance
    _joiner_instance = instance


async def get_joiner():
    """
    Dependency injection for ZoomAutoJoiner.

    Returns:
        ZoomAutoJoiner instance

    Raises:
        HTTPException: If the joiner is not initialized
    """
    from zoom_autojoin.core.exceptions import HTTPInternalServerError

    if _joiner_instance is None:
        raise HTTPInternalServerError("Auto-joiner not initialized")

    return _joiner_instance

