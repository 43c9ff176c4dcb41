"""
Catalogue builder.

Turns Steam's on-disk metadata into an ordered list of Account values, each
carrying the GameEntry values that have a screenshot directory. Nothing here
mutates the filesystem, and only PlatformNotFound (raised by discovery
before this module runs) is fatal.
"""

import os
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import AccountDiscoveryFailed, MetadataParseFailed
from ..models import Account, GameEntry, SteamInstall
from ..utils.paths import account_storage_root, shortcuts_vdf_path
from ..utils.shortcuts import Shortcut, load_shortcuts, find_shortcut
from ..utils.steam_user import discover_accounts
from ..utils.library import load_installed_apps

logger = logging.getLogger(__name__)

SCREENSHOTS_FOLDER = "screenshots"

_UNSAFE_CHARS = {"/", "\\", "\0", os.sep}


def sanitize_name(name: Optional[str], fallback: str) -> str:
    """
    Make a resolved name usable as a single path component.

    Separators and NUL become '_'; empty names, '.' and '..' fall back.
    """
    if name is None:
        return fallback
    cleaned = "".join("_" if ch in _UNSAFE_CHARS else ch for ch in name).strip()
    if cleaned in ("", ".", ".."):
        return fallback
    return cleaned


def resolve_display_name(
    screenshot_id: int,
    installed_apps: Dict[int, str],
    shortcuts: List[Shortcut],
) -> Tuple[str, str]:
    """
    Name a screenshot folder id.

    Installed apps use their install folder name, shortcuts their configured
    title, anything else the id itself.

    Returns:
        (display_name, kind) where kind is 'app', 'shortcut' or 'unknown'
    """
    fallback = str(screenshot_id)

    installdir = installed_apps.get(screenshot_id)
    if installdir:
        return sanitize_name(installdir, fallback), 'app'

    shortcut = find_shortcut(shortcuts, screenshot_id)
    if shortcut is not None and shortcut.app_name:
        return sanitize_name(shortcut.app_name, fallback), 'shortcut'

    return fallback, 'unknown'


def _load_account_shortcuts(install: SteamInstall, account_id: int) -> List[Shortcut]:
    path = shortcuts_vdf_path(install, account_id)
    try:
        return load_shortcuts(path)
    except MetadataParseFailed as e:
        logger.warning(f"[{account_id}] Error parsing shortcuts list: {e}")
    except OSError as e:
        logger.warning(f"[{account_id}] Could not read shortcuts list: {e}")
    return []


def scan_account(
    install: SteamInstall,
    account_id: int,
    display_name: str,
    installed_apps: Dict[int, str],
) -> Optional[Account]:
    """
    Build one Account from its screenshot storage.

    Returns None when the account has no screenshot storage at all.

    Raises:
        AccountDiscoveryFailed: The storage root exists but cannot be listed
    """
    storage_root = account_storage_root(install, account_id)
    if not storage_root.is_dir():
        logger.info(f"[{account_id}] User does not have a Steam screenshot folder")
        return None

    logger.debug(f"[{account_id}] Found Steam screenshot folder {storage_root}")

    try:
        children = sorted(storage_root.iterdir())
    except OSError as e:
        raise AccountDiscoveryFailed(account_id, f"cannot list {storage_root}: {e}") from e

    shortcuts = _load_account_shortcuts(install, account_id)
    account = Account(account_id=account_id, display_name=display_name, storage_root=storage_root)

    for child in children:
        try:
            entry = _scan_title(child, installed_apps, shortcuts)
        except MetadataParseFailed as e:
            logger.warning(f"[{account_id}] Dropping title: {e}")
            continue
        if entry is not None:
            logger.debug(f"[{account_id}; {entry.title_key:>20}] {entry.kind} -> {entry.display_name!r}")
            account.games.append(entry)

    account.games.sort(key=lambda g: (int(g.title_key), g.title_key))
    return account


def _scan_title(
    title_dir: Path,
    installed_apps: Dict[int, str],
    shortcuts: List[Shortcut],
) -> Optional[GameEntry]:
    if not title_dir.is_dir():
        return None

    try:
        screenshot_id = int(title_dir.name)
    except ValueError:
        raise MetadataParseFailed(str(title_dir), "folder name is not an app id")

    source = title_dir / SCREENSHOTS_FOLDER
    if not source.is_dir():
        return None

    name, kind = resolve_display_name(screenshot_id, installed_apps, shortcuts)
    return GameEntry(
        title_key=title_dir.name,
        display_name=name,
        screenshot_source_path=source,
        kind=kind,
    )


def build_catalogue(install: SteamInstall) -> List[Account]:
    """
    Discover every account and its screenshot directories.

    Per-account and per-title failures are logged and skipped.
    """
    installed_apps = load_installed_apps(install)
    accounts = []

    for account_id, persona_name in discover_accounts(install):
        display_name = sanitize_name(persona_name, str(account_id))
        logger.info(f"[{account_id}] Processing user {display_name!r}")

        try:
            account = scan_account(install, account_id, display_name, installed_apps)
        except AccountDiscoveryFailed as e:
            logger.error(f"[Catalogue] Skipping account: {e}")
            continue

        if account is not None:
            accounts.append(account)

    logger.info(
        f"[Catalogue] {len(accounts)} accounts, "
        f"{sum(len(a.games) for a in accounts)} screenshot folders"
    )
    return accounts
