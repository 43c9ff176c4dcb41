"""
Filesystem change notification sources.

The watch loop only depends on the NotificationSource interface; the
watchdog-backed implementation is the production one, tests inject their own.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ..errors import NotificationStreamFailed

logger = logging.getLogger(__name__)

# Access-only events; browsing the mirrored screenshots must not trigger passes
IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


@dataclass(frozen=True)
class ChangeEvent:
    """One raw change notification"""
    path: str
    kind: str  # watchdog event type: created, deleted, modified, moved, ...


EventCallback = Callable[[ChangeEvent], None]


class NotificationSource(ABC):
    """Delivers ChangeEvent values for a set of roots to a callback"""

    @abstractmethod
    def start(self, roots: Sequence[Path], callback: EventCallback) -> None:
        """
        Begin watching roots (recursively).

        The callback may be invoked from another thread.

        Raises:
            NotificationStreamFailed: The roots cannot be watched
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop watching; safe to call when not started"""
        pass

    @abstractmethod
    def is_alive(self) -> bool:
        """False once a started source can no longer deliver events"""
        pass


class _ForwardingEventHandler(FileSystemEventHandler):
    """Forward watchdog events to a callback as ChangeEvent values"""

    def __init__(self, callback: EventCallback):
        super().__init__()
        self._callback = callback

    def on_any_event(self, event) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        path = getattr(event, "dest_path", None) or event.src_path
        if isinstance(path, bytes):
            path = path.decode("utf-8", errors="replace")
        self._callback(ChangeEvent(path=path, kind=event.event_type))


class WatchdogSource(NotificationSource):
    """NotificationSource backed by a watchdog Observer"""

    def __init__(self, observer_factory: Callable[[], Observer] = Observer):
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self.roots: List[Path] = []

    def start(self, roots: Sequence[Path], callback: EventCallback) -> None:
        self.stop()

        # A stopped Observer thread cannot be restarted, so every
        # subscription gets a fresh one
        observer = self._observer_factory()
        handler = _ForwardingEventHandler(callback)
        try:
            for root in roots:
                logger.debug(f"[Watch] Scheduling observer for {root}")
                observer.schedule(handler, str(root), recursive=True)
            observer.start()
        except OSError as e:
            observer.stop()
            raise NotificationStreamFailed(f"Cannot watch {', '.join(map(str, roots))}: {e}") from e

        self._observer = observer
        self.roots = list(roots)

    def stop(self) -> None:
        if self._observer is None:
            return
        logger.debug("[Watch] Stopping observer")
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=5)
        self._observer = None
        self.roots = []

    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()
