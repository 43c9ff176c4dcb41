# Utils package
from .paths import (
    find_steam_install,
    default_pictures_dir,
    account_storage_root,
    shortcuts_vdf_path,
    ensure_lnshot_dir,
    LNSHOT_DATA_DIR,
    SETTINGS_PATH,
    DEFAULT_PICTURES_DIRECTORY_NAME,
)
from .shortcuts import Shortcut, calculate_shortcut_id, load_shortcuts, find_shortcut
from .steam_user import discover_accounts, steam64_to_account_id
from .library import load_installed_apps

__all__ = [
    'find_steam_install',
    'default_pictures_dir',
    'account_storage_root',
    'shortcuts_vdf_path',
    'ensure_lnshot_dir',
    'LNSHOT_DATA_DIR',
    'SETTINGS_PATH',
    'DEFAULT_PICTURES_DIRECTORY_NAME',
    'Shortcut',
    'calculate_shortcut_id',
    'load_shortcuts',
    'find_shortcut',
    'discover_accounts',
    'steam64_to_account_id',
    'load_installed_apps',
]
