# Controllers package
from .notifications import ChangeEvent, NotificationSource, WatchdogSource
from .watch_loop import WatchLoop, WatchState, watch

__all__ = [
    'ChangeEvent',
    'NotificationSource',
    'WatchdogSource',
    'WatchLoop',
    'WatchState',
    'watch',
]
