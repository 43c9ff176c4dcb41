"""VDF file utilities using the ValvePython vdf library"""

import logging
from pathlib import Path
from typing import Dict, Any

import vdf

from ..errors import MetadataParseFailed

logger = logging.getLogger(__name__)


def load_text_vdf(path: Path) -> Dict[str, Any]:
    """
    Load a text VDF/ACF file (loginusers.vdf, libraryfolders.vdf, appmanifest_*.acf).

    Raises:
        FileNotFoundError: The file does not exist
        MetadataParseFailed: The file exists but is not valid VDF
    """
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        text = f.read()
    try:
        return vdf.loads(text)
    except Exception as e:
        raise MetadataParseFailed(str(path), f"invalid VDF: {e}") from e


def load_shortcuts_vdf(path: Path) -> Dict[str, Any]:
    """
    Load and parse a binary shortcuts.vdf file.

    A missing file is an empty shortcut list, not an error.

    Raises:
        MetadataParseFailed: The file exists but is not valid binary VDF
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except FileNotFoundError:
        return {"shortcuts": {}}

    try:
        return vdf.binary_loads(data)
    except Exception as e:
        raise MetadataParseFailed(str(path), f"invalid binary VDF: {e}") from e


def get_ci(mapping: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive dict lookup; Steam writes both 'AppName' and 'appname'"""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for k, v in mapping.items():
        if str(k).lower() == lowered:
            return v
    return default
