"""
Minimal subscription support for state owners (store, playback controller).

Subscribers are plain callables receiving ``(event, payload)``. They run
synchronously on the caller's thread after the state change is applied.
"""

from typing import Any, Callable

from loguru import logger

Listener = Callable[[str, Any], None]


class Observable:
    """Mixin that keeps a list of listeners and publishes events to them."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, event: str, payload: Any = None) -> None:
        # Iterate over a copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception(f"Listener failed while handling '{event}' event")
