"""Broadcast channel for repository change notifications."""

from threading import Lock
from typing import Callable, List

from git_worktree_sync.logging_config import get_logger

logger = get_logger(__name__)

Handler = Callable[..., None]


class Subscription:
    """Handle returned by ``ChangeNotifier.subscribe``."""

    def __init__(self, notifier: "ChangeNotifier", handler: Handler):
        self._notifier = notifier
        self.handler = handler

    def dispose(self) -> None:
        self._notifier.unsubscribe(self.handler)


class ChangeNotifier:
    """Synchronous in-order fan-out of events to subscribed handlers.

    Handlers receive only identities (the admin dir of the repository whose
    snapshot changed), never the snapshot itself; subscribers read current
    state from the watcher. A handler that raises is logged and skipped so
    it cannot stall the watcher or starve later handlers.
    """

    def __init__(self, name: str = "change"):
        self.name = name
        self._handlers: List[Handler] = []
        self._lock = Lock()

    def subscribe(self, handler: Handler) -> Subscription:
        """Register ``handler``; the same handler may be registered only once."""
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return Subscription(self, handler)

    def unsubscribe(self, handler: Handler) -> bool:
        """Remove ``handler``. Returns False if it was not subscribed."""
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def fire(self, *args) -> None:
        """Invoke every handler with ``args`` in subscription order."""
        # Copy so handlers may unsubscribe themselves while being called
        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception(f"{self.name} handler {handler!r} failed")
