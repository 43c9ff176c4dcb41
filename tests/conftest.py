from __future__ import annotations

import os
from pathlib import Path
import sys
from typing import Dict, List, Optional

import pytest
import vdf

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

STEAM64_BASE = 76561197960265728


class FakeSteam:
    """A synthetic Steam install laid out like the real one"""

    def __init__(self, root: Path):
        self.root = root
        self.users: Dict[str, Dict[str, str]] = {}
        (root / "steamapps").mkdir(parents=True)
        (root / "config").mkdir()
        (root / "userdata").mkdir()

    def add_user(self, account_id: int, persona: Optional[str] = None, remote: bool = True) -> Path:
        info = {"AccountName": f"user{account_id}", "MostRecent": "0"}
        if persona is not None:
            info["PersonaName"] = persona
        self.users[str(STEAM64_BASE + account_id)] = info
        (self.root / "config" / "loginusers.vdf").write_text(vdf.dumps({"users": self.users}))

        user_dir = self.root / "userdata" / str(account_id)
        (user_dir / "config").mkdir(parents=True, exist_ok=True)
        remote_dir = user_dir / "760" / "remote"
        if remote:
            remote_dir.mkdir(parents=True, exist_ok=True)
        return remote_dir

    def add_app(self, appid: int, installdir: str, name: Optional[str] = None, library: Optional[Path] = None) -> Path:
        steamapps = (library or self.root) / "steamapps"
        steamapps.mkdir(parents=True, exist_ok=True)
        manifest = steamapps / f"appmanifest_{appid}.acf"
        manifest.write_text(vdf.dumps({"AppState": {
            "appid": str(appid),
            "name": name or installdir,
            "installdir": installdir,
        }}))
        return manifest

    def add_screenshots(self, account_id: int, screenshot_id, folder: str = "screenshots") -> Path:
        source = self.root / "userdata" / str(account_id) / "760" / "remote" / str(screenshot_id) / folder
        source.mkdir(parents=True, exist_ok=True)
        return source

    def write_shortcuts(self, account_id: int, entries: List[dict]) -> Path:
        path = self.root / "userdata" / str(account_id) / "config" / "shortcuts.vdf"
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"shortcuts": {str(i): entry for i, entry in enumerate(entries)}}
        path.write_bytes(vdf.binary_dumps(data))
        return path

    def write_library_folders(self, paths: List[Path]) -> None:
        folders = {str(i): {"path": str(p), "apps": {}} for i, p in enumerate([self.root] + paths)}
        (self.root / "steamapps" / "libraryfolders.vdf").write_text(vdf.dumps({"libraryfolders": folders}))


@pytest.fixture
def steam(tmp_path: Path) -> FakeSteam:
    return FakeSteam(tmp_path / "Steam")


@pytest.fixture
def install(steam: FakeSteam):
    from lnshot.models import SteamInstall
    return SteamInstall(root=steam.root)


@pytest.fixture
def pictures(tmp_path: Path) -> Path:
    path = tmp_path / "Pictures"
    path.mkdir()
    return path


@pytest.fixture
def deny_listing(monkeypatch):
    """Make Path.iterdir fail with EACCES for the directories passed to it"""
    denied = set()
    real_iterdir = Path.iterdir

    def iterdir(self):
        if os.path.normpath(self) in denied or os.path.realpath(self) in denied:
            raise PermissionError(13, "Permission denied", str(self))
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)

    def deny(path: Path) -> None:
        denied.add(os.path.normpath(path))
        denied.add(os.path.realpath(path))

    return deny
