"""
lnshot: mirror Steam screenshot folders into your Pictures folder as
symbolic links named after accounts and games.
"""

__version__ = "0.2.0"

from .errors import (
    LnshotError,
    PlatformNotFound,
    AccountDiscoveryFailed,
    MetadataParseFailed,
    LinkConflict,
    FilesystemOperationFailed,
    NotificationStreamFailed,
)
from .models import Account, GameEntry, DesiredLink, ReconciliationReport
from .services.mirror_service import reconcile
from .controllers.watch_loop import watch

__all__ = [
    '__version__',
    'reconcile',
    'watch',
    'Account',
    'GameEntry',
    'DesiredLink',
    'ReconciliationReport',
    'LnshotError',
    'PlatformNotFound',
    'AccountDiscoveryFailed',
    'MetadataParseFailed',
    'LinkConflict',
    'FilesystemOperationFailed',
    'NotificationStreamFailed',
]
