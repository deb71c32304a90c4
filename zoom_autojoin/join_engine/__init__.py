"""
Zoom web client auto-join engine.
"""

from .credentials import validate, build_join_url
from .engine import start_auto_join
from .locator import PageActionLocator, normalize_text
from .retry_scheduler import JoinSessionHandle, RetryScheduler, SchedulerConfig
from .sequencer import JoinSequencer, SequenceStepResult, SequencerState
from .strategies import DetectionStrategy, StrategyKind, ZOOM_STRATEGIES, load_strategies
from .tab_muter import KeyShortcut, TabAudioMuter, parse_shortcut

__all__ = [
    "validate",
    "build_join_url",
    "start_auto_join",
    "PageActionLocator",
    "normalize_text",
    "JoinSessionHandle",
    "RetryScheduler",
    "SchedulerConfig",
    "JoinSequencer",
    "SequenceStepResult",
    "SequencerState",
    "DetectionStrategy",
    "StrategyKind",
    "ZOOM_STRATEGIES",
    "load_strategies",
    "KeyShortcut",
    "TabAudioMuter",
    "parse_shortcut",
]
