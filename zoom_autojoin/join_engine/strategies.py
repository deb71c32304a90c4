"""
Zoom web client detection strategies for the auto-join targets.

Each target carries an ordered list of strategies. Later entries are
fallbacks for when Zoom changes its markup, which happens without notice,
so the table can be overridden from a JSON file (AUTOJOIN_STRATEGY_FILE)
without a code change.

File format:

    {
        "join_button": [
            {"kind": "css", "value": "button.preview-join-button"},
            {"kind": "text_exact", "value": "Join", "scope": "button"}
        ]
    }

Targets missing from the file keep their defaults.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.core.exceptions import ConfigurationError
from zoom_autojoin.models import JoinTarget


logger = get_logger("strategies")


class StrategyKind(str, Enum):
    """How a strategy locates its element."""
    ELEMENT_ID = "element_id"
    CSS = "css"
    XPATH = "xpath"
    TEXT_EXACT = "text_exact"
    TEXT_CONTAINS = "text_contains"


class DetectionStrategy(BaseModel):
    """One way of locating a target element."""
    model_config = ConfigDict(frozen=True)

    kind: StrategyKind
    value: str = Field(..., min_length=1)
    scope: str = Field(default="button", description="Candidate elements for text scans")

    @property
    def is_text_scan(self) -> bool:
        return self.kind in (StrategyKind.TEXT_EXACT, StrategyKind.TEXT_CONTAINS)

    def describe(self) -> str:
        if self.is_text_scan:
            return f"{self.kind.value}:{self.value!r} in {self.scope}"
        return f"{self.kind.value}:{self.value}"


StrategyTable = Dict[JoinTarget, Tuple[DetectionStrategy, ...]]


def _s(kind: StrategyKind, value: str, scope: str = "button") -> DetectionStrategy:
    return DetectionStrategy(kind=kind, value=value, scope=scope)


# =============================================================================
# DEFAULT STRATEGIES
# =============================================================================

ZOOM_STRATEGIES: StrategyTable = {
    # OneTrust cookie banner ("Accept Cookies")
    JoinTarget.COOKIE_CONSENT: (
        _s(StrategyKind.ELEMENT_ID, "onetrust-accept-btn-handler"),
        _s(StrategyKind.XPATH, '//button[@id="onetrust-accept-btn-handler"]'),
    ),

    # Terms of service / privacy "I Agree"
    JoinTarget.TERMS_AGREE: (
        _s(StrategyKind.ELEMENT_ID, "wc_agree1"),
        _s(StrategyKind.XPATH, '//button[@id="wc_agree1"]'),
    ),

    # Preview screen "Join"
    JoinTarget.JOIN_BUTTON: (
        _s(StrategyKind.CSS, "button.preview-join-button"),
        _s(StrategyKind.XPATH, "/html/body/div[2]/div[2]/div/div[1]/div/div[2]/button"),
        _s(StrategyKind.TEXT_EXACT, "join", scope='button[type="submit"]'),
        _s(StrategyKind.TEXT_EXACT, "join"),
    ),

    # In-meeting "Join Audio by Computer"
    JoinTarget.JOIN_AUDIO_BUTTON: (
        _s(StrategyKind.XPATH, '//button[text()="Join Audio by Computer"]'),
        _s(StrategyKind.XPATH, '//button[contains(text(), "Join Audio")]'),
        _s(StrategyKind.TEXT_CONTAINS, "join audio"),
        _s(StrategyKind.TEXT_CONTAINS, "join by computer"),
    ),
}


_FILE_ADAPTER = TypeAdapter(Dict[JoinTarget, List[DetectionStrategy]])


def parse_strategy_overrides(raw: str) -> StrategyTable:
    """Parse a JSON strategy document into a table (only the targets it names)."""
    try:
        parsed = _FILE_ADAPTER.validate_python(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid detection strategy document: {e}") from e

    table: StrategyTable = {}
    for target, strategies in parsed.items():
        if not strategies:
            raise ConfigurationError(f"No strategies configured for {target.value}")
        table[target] = tuple(strategies)
    return table


def load_strategies(path: Optional[str] = None) -> StrategyTable:
    """
    Get the effective strategy table.

    Args:
        path: JSON override file; defaults to settings.join.strategy_file.

    Returns:
        Defaults merged with any per-target overrides.
    """
    path = path or settings.join.strategy_file
    table = dict(ZOOM_STRATEGIES)
    if not path:
        return table

    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read strategy file {file_path}: {e}") from e

    overrides = parse_strategy_overrides(raw)
    table.update(overrides)
    logger.info(
        f"Loaded detection strategy overrides from {file_path} "
        f"for: {', '.join(t.value for t in overrides)}"
    )
    return table
