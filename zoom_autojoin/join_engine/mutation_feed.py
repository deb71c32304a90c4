"""
DOM mutation feed backed by an in-page MutationObserver.

The observer calls back into Python through a Playwright binding; the
binding cannot be removed once exposed, so closing the feed disconnects the
observer and turns later calls into no-ops.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from zoom_autojoin.config import get_logger
from .scripts import DISCONNECT_MUTATION_OBSERVER_JS, INSTALL_MUTATION_OBSERVER_JS


logger = get_logger("mutation_feed")

MutationCallback = Callable[[], Awaitable[None]]


class PlaywrightMutationFeed:
    """Notifies a coroutine whenever the page's body subtree changes."""

    def __init__(self, page: Any, binding_name: str, throttle_ms: int = 50):
        self._page = page
        self._binding_name = binding_name
        self._throttle_ms = throttle_ms
        self._callback: Optional[MutationCallback] = None
        self._closed = False
        self._bound = False
        self._reinstall_tasks: set = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def subscribe(self, callback: MutationCallback) -> None:
        """Expose the binding and install the observer on the current document."""
        if self._closed:
            return
        self._callback = callback

        if not self._bound:
            await self._page.expose_binding(self._binding_name, self._on_binding_call)
            self._bound = True
            self._page.on("domcontentloaded", self._on_navigation)

        await self._install()

    async def close(self) -> None:
        """Disconnect the observer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._callback = None

        if self._bound:
            try:
                self._page.remove_listener("domcontentloaded", self._on_navigation)
            except Exception as e:
                logger.debug(f"Could not remove navigation listener: {e}")

        for task in list(self._reinstall_tasks):
            task.cancel()

        try:
            await self._page.evaluate(DISCONNECT_MUTATION_OBSERVER_JS, self._binding_name)
        except Exception as e:
            # Page closed or navigated away; the observer is gone with it
            logger.debug(f"Mutation observer disconnect skipped: {e}")

    async def _install(self) -> None:
        try:
            installed = await self._page.evaluate(
                INSTALL_MUTATION_OBSERVER_JS,
                {"bindingName": self._binding_name, "throttleMs": self._throttle_ms},
            )
            if installed:
                logger.debug(f"Mutation observer installed ({self._binding_name})")
        except Exception as e:
            logger.debug(f"Mutation observer install failed, will retry on next load: {e}")

    def _on_navigation(self, *_: Any) -> None:
        if self._closed:
            return
        task = asyncio.ensure_future(self._install())
        self._reinstall_tasks.add(task)
        task.add_done_callback(self._reinstall_tasks.discard)

    async def _on_binding_call(self, source: Any = None, *args: Any) -> None:
        callback = self._callback
        if self._closed or callback is None:
            return
        await callback()
