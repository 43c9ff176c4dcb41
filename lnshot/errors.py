"""
Error taxonomy for lnshot.

Only PlatformNotFound and NotificationStreamFailed are fatal. Every other
error is raised by a helper, caught by the loop that iterates accounts,
titles or mutations, logged, and recorded in the report.
"""


class LnshotError(Exception):
    """Base class for all lnshot errors"""


class PlatformNotFound(LnshotError):
    """The Steam install root could not be located"""


class AccountDiscoveryFailed(LnshotError):
    """One account's storage could not be read; the account is skipped"""

    def __init__(self, account_id: int, reason: str):
        super().__init__(f"Account {account_id}: {reason}")
        self.account_id = account_id
        self.reason = reason


class MetadataParseFailed(LnshotError):
    """A title, manifest or config file could not be parsed"""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class LinkConflict(LnshotError):
    """A destination path is occupied by data lnshot does not own"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FilesystemOperationFailed(LnshotError):
    """A single filesystem mutation failed (permission denied, disk full, ...)"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class NotificationStreamFailed(LnshotError):
    """The filesystem change notification stream stopped working"""
