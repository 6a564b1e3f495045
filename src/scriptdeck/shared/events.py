"""Observer registry used for every event the core publishes."""

import itertools
import threading
from typing import Callable, Dict, List, Tuple

from scriptdeck.domain.exceptions import SubscriberError
from scriptdeck.shared.logging import get_logger

logger = get_logger(__name__)

_token_counter = itertools.count(1)


class EventHook:
    """
    Multicast event with isolated delivery.

    Subscribers are kept in a token -> callback mapping. Publishing iterates
    a snapshot taken under the lock, so callbacks may subscribe or
    unsubscribe while an event is being delivered. A failing callback is
    logged and skipped; it never reaches the publisher.

    Usage:
        on_exited = EventHook("on_exited")
        token = on_exited.subscribe(lambda pid, code: ...)
        on_exited.publish(1234, 0)
        on_exited.unsubscribe(token)
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Callable[..., None]] = {}

    def subscribe(self, callback: Callable[..., None]) -> int:
        """
        Register a callback.

        Args:
            callback: Called with the event arguments on every publish

        Returns:
            Token to pass to unsubscribe
        """
        if not callable(callback):
            raise TypeError(f"{self.name}: subscriber must be callable, got {callback!r}")
        token = next(_token_counter)
        with self._lock:
            self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> bool:
        """Remove a subscriber; returns False if the token was unknown."""
        with self._lock:
            return self._subscribers.pop(token, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, *args) -> List[SubscriberError]:
        """
        Deliver an event to every subscriber.

        Args:
            *args: Event payload

        Returns:
            Errors raised by subscribers (already logged)
        """
        with self._lock:
            snapshot: List[Tuple[int, Callable[..., None]]] = list(self._subscribers.items())

        errors: List[SubscriberError] = []
        for token, callback in snapshot:
            try:
                callback(*args)
            except Exception as e:
                error = SubscriberError(f"{self.name} subscriber #{token} failed: {e}")
                error.__cause__ = e
                errors.append(error)
                logger.warning(str(error), exc_info=e)
        return errors
