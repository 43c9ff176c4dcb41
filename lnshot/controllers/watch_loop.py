"""
Continuous reconciliation.

Runs a reconciliation pass whenever the account screenshot storage changes.
Bursts of notifications are collapsed by a debounce window that restarts on
every new notification, and passes never overlap:

    IDLE -> DEBOUNCING -> RECONCILING -> IDLE   (STOPPED on shutdown)

Notifications arriving while a pass runs stay queued and lead to at most one
trailing pass.
"""

import asyncio
import functools
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..errors import NotificationStreamFailed, PlatformNotFound
from ..models import ReconciliationReport
from ..services.mirror_service import reconcile
from .notifications import ChangeEvent, NotificationSource, WatchdogSource

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0
HEALTH_CHECK_INTERVAL = 5.0


class WatchState(Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RECONCILING = "reconciling"
    STOPPED = "stopped"


class WatchLoop:
    """Debounced, non-overlapping reconciliation driven by change notifications"""

    def __init__(
        self,
        reconcile_pass: Callable[[], ReconciliationReport],
        source: NotificationSource,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        health_check_interval: float = HEALTH_CHECK_INTERVAL,
    ):
        self.reconcile_pass = reconcile_pass
        self.source = source
        self.debounce_seconds = debounce_seconds
        self.health_check_interval = health_check_interval
        self.state = WatchState.IDLE
        self.passes = 0
        self.last_report: Optional[ReconciliationReport] = None
        self._roots: List[Path] = []
        self._queue: Optional[asyncio.Queue] = None

    async def run(self, shutdown: asyncio.Event) -> None:
        """
        Run until shutdown is set.

        Raises:
            PlatformNotFound: The initial pass could not locate Steam
            NotificationStreamFailed: Change notifications stopped working
        """
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        def on_event(event: ChangeEvent) -> None:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)

        report = await self._reconcile(raise_errors=True)
        if report.error:
            self.state = WatchState.STOPPED
            raise PlatformNotFound(report.error)

        try:
            self._subscribe(report.watched_roots, on_event)

            while not shutdown.is_set():
                event = await self._next_event(shutdown, self.health_check_interval)
                if shutdown.is_set():
                    break
                if event is None:
                    self._check_source()
                    continue

                self.state = WatchState.DEBOUNCING
                logger.debug(f"[Watch] {event.kind} {event.path}; debouncing")
                if not await self._debounce(shutdown):
                    logger.info("[Watch] Shutdown requested; pending pass cancelled")
                    break

                report = await self._reconcile()
                if report is None:
                    continue
                if report.error:
                    logger.error(f"[Watch] Pass failed, keeping previous watches: {report.error}")
                elif set(report.watched_roots) != set(self._roots):
                    logger.info("[Watch] Account storage changed; re-subscribing")
                    self._subscribe(report.watched_roots, on_event)
        finally:
            self.source.stop()
            self.state = WatchState.STOPPED
            logger.info(f"[Watch] Stopped after {self.passes} passes")

    async def _reconcile(self, raise_errors: bool = False) -> Optional[ReconciliationReport]:
        self.state = WatchState.RECONCILING
        loop = asyncio.get_running_loop()
        try:
            # Runs to completion even if shutdown is requested meanwhile
            report = await loop.run_in_executor(None, self.reconcile_pass)
        except Exception as e:
            if raise_errors:
                raise
            logger.error(f"[Watch] Error in reconciliation pass: {e}")
            report = None
        finally:
            self.passes += 1
            self.state = WatchState.IDLE

        if report is not None:
            self.last_report = report
            logger.info(f"[Watch] Pass {self.passes}: {report.summary()}")
        return report

    async def _debounce(self, shutdown: asyncio.Event) -> bool:
        """Wait until no event arrives for a full window; False on shutdown"""
        while True:
            event = await self._next_event(shutdown, self.debounce_seconds)
            if shutdown.is_set():
                return False
            if event is None:
                return True
            logger.debug(f"[Watch] {event.kind} {event.path}; window restarted")

    async def _next_event(self, shutdown: asyncio.Event, timeout: float) -> Optional[ChangeEvent]:
        """Next queued event, or None on timeout or shutdown"""
        get_task = asyncio.ensure_future(self._queue.get())
        stop_task = asyncio.ensure_future(shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {get_task, stop_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (get_task, stop_task):
                if not task.done():
                    task.cancel()

        if get_task in done:
            return get_task.result()
        return None

    def _subscribe(self, roots: Sequence[Path], callback) -> None:
        existing = sorted({Path(r) for r in roots if Path(r).is_dir()})
        self.source.start(existing, callback)
        self._roots = list(roots)
        logger.info(f"[Watch] Watching {len(existing)} screenshot folders")

    def _check_source(self) -> None:
        if not self.source.is_alive():
            raise NotificationStreamFailed("Filesystem change notifications stopped")


async def watch(
    destination_root: Union[str, Path],
    pictures_folder_name: str,
    shutdown_signal: asyncio.Event,
    steam_path: Optional[str] = None,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    source: Optional[NotificationSource] = None,
) -> None:
    """
    Reconcile now, then again after every debounced change until shutdown.

    Raises:
        PlatformNotFound: Steam could not be located on the first pass
        NotificationStreamFailed: Change notifications stopped working
    """
    reconcile_pass = functools.partial(reconcile, destination_root, pictures_folder_name, steam_path)
    loop = WatchLoop(reconcile_pass, source or WatchdogSource(), debounce_seconds=debounce_seconds)
    await loop.run(shutdown_signal)
