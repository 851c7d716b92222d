"""Manager modules for PillarStreak.

Managers own state and coordinate between engines.
They are stateful, event-aware, and serialize their own writes.
"""

from .base_manager import BaseManager, get_event_signal
from .pillar_manager import PillarManager

__all__ = [
    "BaseManager",
    "PillarManager",
    "get_event_signal",
]
