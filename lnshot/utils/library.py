"""
Installed Steam app lookup.

Reads libraryfolders.vdf to find every Steam library, then each library's
appmanifest_<appid>.acf to map app ids to their install folder under
steamapps/common.
"""

import re
import logging
from pathlib import Path, PureWindowsPath
from typing import Dict, List

from ..errors import MetadataParseFailed
from ..models import SteamInstall
from .vdf import load_text_vdf, get_ci

logger = logging.getLogger(__name__)

APPMANIFEST_PATTERN = re.compile(r'^appmanifest_(\d+)\.acf$')


def _library_paths_from_vdf(data: dict) -> List[str]:
    """Extract library paths from both the nested and the legacy flat format"""
    folders = get_ci(data, 'libraryfolders', {})
    if not isinstance(folders, dict):
        return []

    paths = []
    for key, value in folders.items():
        if not key.isdigit():
            continue  # e.g. TimeNextStatsReport, ContentStatsID
        if isinstance(value, dict):
            path = value.get('path')
        else:
            path = value
        if path:
            paths.append(path)
    return paths


def find_library_folders(install: SteamInstall) -> List[Path]:
    """Every Steam library root, the install root first"""
    libraries = [install.root]

    for vdf_path in (install.root / "steamapps" / "libraryfolders.vdf",
                     install.config / "libraryfolders.vdf"):
        try:
            data = load_text_vdf(vdf_path)
        except FileNotFoundError:
            continue
        except (MetadataParseFailed, OSError) as e:
            logger.warning(f"[Library] Could not read {vdf_path}: {e}")
            continue

        for raw in _library_paths_from_vdf(data):
            path = Path(raw)
            if path not in libraries:
                libraries.append(path)
        break

    return libraries


def install_folder_name(installdir: str) -> str:
    """
    Final component of steamapps/common/<installdir>.

    installdir is normally a bare folder name, but some manifests carry a
    nested path with either separator.
    """
    return PureWindowsPath(installdir).name


def read_app_manifest(manifest_path: Path) -> Dict[str, str]:
    """
    Parse one appmanifest_<appid>.acf into its AppState table.

    Raises:
        MetadataParseFailed: The manifest is not valid or has no AppState
    """
    data = load_text_vdf(manifest_path)
    state = get_ci(data, 'AppState')
    if not isinstance(state, dict):
        raise MetadataParseFailed(str(manifest_path), "missing AppState")
    return state


def load_installed_apps(install: SteamInstall) -> Dict[int, str]:
    """
    Map app id -> install folder name for every installed Steam app.

    Unreadable library folders and manifests are logged and skipped.
    """
    apps: Dict[int, str] = {}

    for library in find_library_folders(install):
        steamapps = library / "steamapps"
        try:
            if not steamapps.is_dir():
                logger.debug(f"[Library] No steamapps folder in {library}")
                continue
            manifest_paths = sorted(steamapps.iterdir())
        except OSError as e:
            logger.warning(f"[Library] Cannot list {steamapps}: {e}")
            continue

        for manifest_path in manifest_paths:
            match = APPMANIFEST_PATTERN.match(manifest_path.name)
            if not match:
                continue

            try:
                state = read_app_manifest(manifest_path)
            except (MetadataParseFailed, OSError) as e:
                logger.warning(f"[Library] Skipping manifest: {e}")
                continue

            installdir = get_ci(state, 'installdir')
            if not installdir:
                logger.debug(f"[Library] {manifest_path.name} has no installdir")
                continue

            appid = int(match.group(1))
            apps.setdefault(appid, install_folder_name(installdir))

    logger.info(f"[Library] Found {len(apps)} installed apps")
    return apps
