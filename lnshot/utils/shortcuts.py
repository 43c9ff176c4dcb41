"""
Non-Steam shortcut helpers.

Screenshots of a non-Steam shortcut are stored under an id derived from the
shortcut, and Steam has used several derivations over the years. A folder id
matches a shortcut when it equals any of them.
"""

import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .vdf import load_shortcuts_vdf, get_ci

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Shortcut:
    """The fields of a shortcuts.vdf entry needed for naming"""
    appid: Optional[int]  # as stored: signed 32-bit
    app_name: str
    exe: str

    @property
    def appid_unsigned(self) -> int:
        return self.appid & 0xFFFFFFFF

    @property
    def legacy_id(self) -> int:
        return self.appid & 0x7FFFFF

    @property
    def bigpicture_id(self) -> int:
        return calculate_shortcut_id(self.exe, self.app_name)

    def matches(self, screenshot_id: int) -> bool:
        if screenshot_id == self.bigpicture_id:
            return True
        if self.appid is None:
            return False
        return screenshot_id in (self.legacy_id, self.appid_unsigned)


def calculate_shortcut_id(exe: str, app_name: str) -> int:
    """
    Compute the Steam Big Picture 64-bit shortcut id used by screenshots.

    CRC32 of exe + app name, top bit set, shifted into the upper half, with
    0x02000000 in the lower half.
    """
    crc = binascii.crc32((exe + app_name).encode('utf-8')) & 0xFFFFFFFF
    top_32 = crc | 0x80000000
    return (top_32 << 32) | 0x02000000


def parse_shortcuts(data: dict) -> List[Shortcut]:
    """Turn the raw nested shortcuts.vdf tree into typed Shortcut values"""
    raw = get_ci(data, 'shortcuts', {})
    if not isinstance(raw, dict):
        return []

    shortcuts = []
    for index, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        appid = get_ci(entry, 'appid')
        app_name = get_ci(entry, 'AppName', '')
        exe = get_ci(entry, 'Exe', '')
        if not isinstance(appid, int):
            logger.debug(f"[Shortcuts] Entry {index} ({app_name!r}) has no appid")
            appid = None
        shortcuts.append(Shortcut(appid=appid, app_name=str(app_name), exe=str(exe)))

    return shortcuts


def load_shortcuts(path: Path) -> List[Shortcut]:
    """
    Load typed shortcuts from a shortcuts.vdf file.

    Raises:
        MetadataParseFailed: The file exists but cannot be parsed
    """
    return parse_shortcuts(load_shortcuts_vdf(path))


def find_shortcut(shortcuts: List[Shortcut], screenshot_id: int) -> Optional[Shortcut]:
    for shortcut in shortcuts:
        if shortcut.matches(screenshot_id):
            return shortcut
    return None
