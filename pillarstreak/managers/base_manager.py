"""Base manager class for PillarStreak managers."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any
import uuid

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable


def get_event_signal(instance_id: str, suffix: str) -> str:
    """Build an instance-scoped event signal name.

    Format: 'pillarstreak_{instance_id}_{suffix}'
    """
    return f"{const.DOMAIN}_{instance_id}_{suffix}"


class BaseManager:
    """Base class for PillarStreak managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen), returning an unsubscribe callable

    Listeners run synchronously in registration order. A listener that raises
    is logged and skipped; the remaining listeners still run.
    """

    def __init__(self, instance_id: str | None = None) -> None:
        """Initialize manager.

        Args:
            instance_id: Namespace for this manager's signals. Random if omitted.
        """
        self.instance_id = instance_id or uuid.uuid4().hex
        self._listeners: dict[str, list[Callable[[dict[str, Any]], Any]]] = (
            defaultdict(list)
        )

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to listeners.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_PILLAR_COMPLETED)
            **payload: Event data dict passed to listeners

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_EXPERIENCE_AWARDED,
                amount=50,
                source="pillar_completion",
            )
        """
        signal = get_event_signal(self.instance_id, suffix)
        const.LOGGER.debug(
            "Emitting event '%s' for instance %s with payload keys: %s",
            suffix,
            self.instance_id,
            list(payload.keys()),
        )
        for callback in list(self._listeners.get(signal, ())):
            try:
                callback(payload)
            except Exception:
                const.LOGGER.exception(
                    "Listener %r failed handling event '%s'", callback, suffix
                )

    def listen(
        self, suffix: str, callback: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]:
        """Subscribe to an instance-scoped event.

        Args:
            suffix: Signal suffix constant to listen for
            callback: Called with the payload dict when the event fires

        Returns:
            Callable that removes the subscription.

        Example:
            def _on_experience(payload: dict[str, Any]) -> None:
                profile.add_experience(payload["amount"])

            unsub = manager.listen(const.SIGNAL_SUFFIX_EXPERIENCE_AWARDED, _on_experience)
        """
        signal = get_event_signal(self.instance_id, suffix)
        self._listeners[signal].append(callback)
        const.LOGGER.debug(
            "Manager %s registered listener for event '%s' on instance %s",
            self.__class__.__name__,
            suffix,
            self.instance_id,
        )

        def _unsubscribe() -> None:
            listeners = self._listeners.get(signal, [])
            if callback in listeners:
                listeners.remove(callback)

        return _unsubscribe
