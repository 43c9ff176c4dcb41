"""
Screenshot mirror service.

One reconciliation pass: discover Steam, build the catalogue, plan the
desired tree, and converge the destination directory onto it.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..errors import PlatformNotFound
from ..models import ReconciliationReport, SteamInstall
from ..utils.paths import find_steam_install
from .catalogue import build_catalogue
from .planner import plan_links
from .reconciler import reconcile_tree

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def run_pass(install: SteamInstall, destination: Path) -> ReconciliationReport:
    """Catalogue -> plan -> diff -> apply against an already discovered install"""
    accounts = build_catalogue(install)
    desired = plan_links(accounts)

    report = ReconciliationReport(
        watched_roots=[a.storage_root for a in accounts if a.storage_root is not None]
    )
    return reconcile_tree(destination, desired, [install.userdata], report)


def reconcile(
    destination_root: PathLike,
    pictures_folder_name: str,
    steam_path: Optional[str] = None,
) -> ReconciliationReport:
    """
    Mirror every account's Steam screenshot folders into
    <destination_root>/<pictures_folder_name>.

    Args:
        destination_root: Usually the user's Pictures folder
        pictures_folder_name: Name of the managed folder inside it
        steam_path: Steam install root; auto-detected when None

    Returns:
        ReconciliationReport; report.error is set when Steam cannot be found
    """
    destination = Path(destination_root).expanduser() / pictures_folder_name

    try:
        install = find_steam_install(steam_path)
    except PlatformNotFound as e:
        logger.error(f"[Mirror] {e}")
        return ReconciliationReport(destination=destination, error=str(e))

    logger.info(f"[Mirror] Reconciling {install.root} into {destination}")
    report = run_pass(install, destination)
    logger.info(f"[Mirror] Done: {report.summary()}")
    return report
