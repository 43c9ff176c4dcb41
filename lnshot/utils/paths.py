"""lnshot file path constants and Steam/Pictures discovery."""

import os
import sys
import logging
from pathlib import Path
from typing import List, Optional

from ..errors import PlatformNotFound
from ..models import SteamInstall

logger = logging.getLogger(__name__)


# lnshot data directory
LNSHOT_DATA_DIR = os.path.expanduser("~/.local/share/lnshot")
SETTINGS_PATH = os.path.join(LNSHOT_DATA_DIR, "settings.json")

DEFAULT_PICTURES_DIRECTORY_NAME = "Steam Screenshots"

# Steam's app id for its own screenshot storage under userdata/<id>/
SCREENSHOTS_APP_ID = "760"


def steam_path_candidates() -> List[str]:
    """Known Steam install locations for the current OS, most likely first"""
    if sys.platform == "win32":
        program_files = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
        return [os.path.join(program_files, "Steam")]
    if sys.platform == "darwin":
        return [os.path.expanduser("~/Library/Application Support/Steam")]
    return [
        os.path.expanduser("~/.steam/steam"),
        os.path.expanduser("~/.local/share/Steam"),
        os.path.expanduser("~/.var/app/com.valvesoftware.Steam/.local/share/Steam"),
    ]


def _looks_like_steam(path: str) -> bool:
    return (
        os.path.isdir(os.path.join(path, "steamapps"))
        or os.path.isdir(os.path.join(path, "userdata"))
    )


def find_steam_install(steam_path: Optional[str] = None) -> SteamInstall:
    """
    Locate the Steam install root.

    Args:
        steam_path: Explicit install root; when given, no auto-detection happens

    Returns:
        SteamInstall for the discovered root

    Raises:
        PlatformNotFound: No candidate looks like a Steam install
    """
    candidates = [os.path.expanduser(steam_path)] if steam_path else steam_path_candidates()

    for path in candidates:
        if _looks_like_steam(path):
            root = Path(path).resolve()
            logger.debug(f"[Paths] Found Steam install at {root}")
            return SteamInstall(root=root)

    raise PlatformNotFound(
        "Failed to locate Steam on this computer (tried: " + ", ".join(candidates) + ")"
    )


def _xdg_pictures_dir(home: Path) -> Optional[Path]:
    """Read XDG_PICTURES_DIR from ~/.config/user-dirs.dirs"""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(home / ".config")
    user_dirs = Path(config_home) / "user-dirs.dirs"
    if not user_dirs.is_file():
        return None

    try:
        with open(user_dirs, 'r', encoding='utf-8', errors='ignore') as f:
            for line in f:
                line = line.strip()
                if not line.startswith("XDG_PICTURES_DIR="):
                    continue
                value = line.split("=", 1)[1].strip().strip('"')
                value = value.replace("$HOME", str(home))
                # xdg-user-dirs uses $HOME itself to mean "disabled"
                if value and Path(value) != home:
                    return Path(value)
    except OSError as e:
        logger.warning(f"[Paths] Could not read {user_dirs}: {e}")

    return None


def default_pictures_dir() -> Path:
    """The user's Pictures folder"""
    home = Path.home()
    if sys.platform not in ("win32", "darwin"):
        xdg = _xdg_pictures_dir(home)
        if xdg:
            return xdg
    return home / "Pictures"


def account_storage_root(install: SteamInstall, account_id: int) -> Path:
    """Per-account screenshot storage: userdata/<id>/760/remote"""
    return install.userdata / str(account_id) / SCREENSHOTS_APP_ID / "remote"


def shortcuts_vdf_path(install: SteamInstall, account_id: int) -> Path:
    return install.userdata / str(account_id) / "config" / "shortcuts.vdf"


def ensure_lnshot_dir() -> None:
    """Ensure the lnshot data directory exists."""
    os.makedirs(LNSHOT_DATA_DIR, exist_ok=True)
