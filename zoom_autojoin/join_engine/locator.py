"""
Locates auto-join target elements on the meeting page.

The document handle is anything exposing Playwright's query surface
(`Page`, `Frame`): `query_selector(selector)` and
`query_selector_all(selector)`, returning element handles with
`text_content()`.
"""

from __future__ import annotations

from typing import Any, Optional

from zoom_autojoin.config import get_logger
from zoom_autojoin.models import JoinTarget
from .strategies import DetectionStrategy, StrategyKind, StrategyTable, load_strategies


logger = get_logger("locator")


def normalize_text(text: Optional[str]) -> str:
    """Trim and lower-case text for comparison."""
    return (text or "").strip().lower()


def _css_for_id(element_id: str) -> str:
    escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
    return f'[id="{escaped}"]'


class PageActionLocator:
    """
    Finds the element for a join target using its ordered fallback strategies.

    "Not found" is the normal answer while the page is still loading, so
    misses return None and query errors are treated as misses.
    """

    def __init__(self, strategies: Optional[StrategyTable] = None):
        self._strategies = strategies if strategies is not None else load_strategies()

    def strategies_for(self, target: JoinTarget) -> tuple:
        return tuple(self._strategies.get(target, ()))

    async def find(self, target: JoinTarget, document: Any) -> Optional[Any]:
        """
        Return the first element matched by the target's strategies, or None.
        """
        for index, strategy in enumerate(self.strategies_for(target), start=1):
            try:
                element = await self._apply(strategy, document)
            except Exception as e:
                # Navigation in progress, closed page, bad selector...
                logger.debug(f"{target.value}: strategy {index} ({strategy.describe()}) raised: {e}")
                continue

            if element is not None:
                logger.info(f"Found {target.value} via strategy {index} ({strategy.describe()})")
                return element

            logger.debug(f"{target.value}: strategy {index} ({strategy.describe()}) no match")

        return None

    async def _apply(self, strategy: DetectionStrategy, document: Any) -> Optional[Any]:
        if strategy.kind is StrategyKind.ELEMENT_ID:
            return await document.query_selector(_css_for_id(strategy.value))

        if strategy.kind is StrategyKind.CSS:
            return await document.query_selector(strategy.value)

        if strategy.kind is StrategyKind.XPATH:
            return await document.query_selector(f"xpath={strategy.value}")

        return await self._scan_text(strategy, document)

    async def _scan_text(self, strategy: DetectionStrategy, document: Any) -> Optional[Any]:
        wanted = normalize_text(strategy.value)
        candidates = await document.query_selector_all(strategy.scope)

        for candidate in candidates:
            text = normalize_text(await candidate.text_content())
            if strategy.kind is StrategyKind.TEXT_EXACT and text == wanted:
                return candidate
            if strategy.kind is StrategyKind.TEXT_CONTAINS and wanted in text:
                return candidate

        return None
