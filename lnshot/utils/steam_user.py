"""
Steam User Discovery Utilities

Lists every local Steam profile by combining Steam's loginusers.vdf (which
carries the PersonaName) with the numeric folders in userdata/.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..errors import MetadataParseFailed
from ..models import SteamInstall
from .vdf import load_text_vdf

logger = logging.getLogger(__name__)

# Account ids live in the lower 32 bits of a Steam64 id
ACCOUNT_ID_MASK = 0xFFFFFFFF


def steam64_to_account_id(steam64_id: int) -> int:
    """Convert a Steam64 id to the account id used as the userdata folder name"""
    return steam64_id & ACCOUNT_ID_MASK


def read_persona_names(install: SteamInstall) -> Dict[int, str]:
    """
    Map account id -> PersonaName from loginusers.vdf.

    Returns an empty dict when the file is missing or unreadable; the
    accounts are still discovered from userdata/ in that case.
    """
    loginusers_path = install.config / "loginusers.vdf"

    try:
        data = load_text_vdf(loginusers_path)
    except FileNotFoundError:
        logger.debug(f"[SteamUser] loginusers.vdf not found at {loginusers_path}")
        return {}
    except (MetadataParseFailed, OSError) as e:
        logger.warning(f"[SteamUser] Error reading loginusers.vdf: {e}")
        return {}

    users = data.get('users', {})
    if not isinstance(users, dict):
        logger.warning("[SteamUser] loginusers.vdf has no users table")
        return {}

    names = {}
    for steam64_id_str, user_info in users.items():
        try:
            account_id = steam64_to_account_id(int(steam64_id_str))
        except ValueError:
            logger.warning(f"[SteamUser] Invalid Steam64ID: {steam64_id_str}")
            continue

        name = user_info.get('PersonaName') if isinstance(user_info, dict) else None
        if isinstance(name, str) and name.strip():
            names[account_id] = name
        else:
            logger.debug(f"[SteamUser] No PersonaName for {steam64_id_str}")
            names.setdefault(account_id, None)

    return names


def list_userdata_accounts(install: SteamInstall) -> List[int]:
    """Numeric folders in userdata/, EXCLUDING the user 0 meta-directory"""
    try:
        if not install.userdata.is_dir():
            return []
        entries = sorted(install.userdata.iterdir())
    except OSError as e:
        # Accounts listed in loginusers.vdf are still tried
        logger.warning(f"[SteamUser] Cannot list {install.userdata}: {e}")
        return []

    account_ids = []
    for entry in entries:
        if not entry.name.isdigit() or not entry.is_dir():
            continue
        if entry.name == '0':
            logger.debug("[SteamUser] Skipping user 0 (meta-directory)")
            continue
        account_ids.append(int(entry.name))

    return account_ids


def discover_accounts(install: SteamInstall) -> List[Tuple[int, Optional[str]]]:
    """
    Every known account as (account_id, persona_name_or_None), ordered by id.
    """
    names = read_persona_names(install)
    account_ids = set(names) | set(list_userdata_accounts(install))
    return [(account_id, names.get(account_id)) for account_id in sorted(account_ids)]
