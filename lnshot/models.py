"""
Data model shared by the catalogue, planner and reconciler.

Everything here is rebuilt on every reconciliation pass; nothing is persisted.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path, PurePath
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class SteamInstall:
    """Result of platform discovery, threaded explicitly through a pass"""
    root: Path

    @property
    def userdata(self) -> Path:
        return self.root / "userdata"

    @property
    def config(self) -> Path:
        return self.root / "config"


@dataclass
class GameEntry:
    """One title (installed app or shortcut) with a screenshot directory"""
    title_key: str  # numeric screenshot folder id, as text
    display_name: str
    screenshot_source_path: Path
    kind: str = "unknown"  # 'app', 'shortcut' or 'unknown'


@dataclass
class Account:
    """One local Steam profile"""
    account_id: int
    display_name: str
    storage_root: Optional[Path] = None
    games: List[GameEntry] = field(default_factory=list)


@dataclass(frozen=True)
class DesiredLink:
    """
    One entry of the target tree.

    ``target_path`` is None for an account directory and the real screenshot
    directory for a game link.
    """
    relative_path: PurePath
    target_path: Optional[Path] = None

    @property
    def is_directory(self) -> bool:
        return self.target_path is None


class EntryKind(Enum):
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    FILE = "file"
    ABSENT = "absent"


@dataclass
class ExistingEntry:
    """Observed state of one path below the destination root"""
    relative_path: PurePath
    kind: EntryKind
    link_target: Optional[Path] = None
    children: List["ExistingEntry"] = field(default_factory=list)
    readable: bool = True


class MutationKind(Enum):
    MAKE_DIR = "make_dir"
    MAKE_LINK = "make_link"
    REMOVE_LINK = "remove_link"
    REMOVE_DIR = "remove_dir"


@dataclass(frozen=True)
class Mutation:
    kind: MutationKind
    relative_path: PurePath
    target_path: Optional[Path] = None


@dataclass
class EntryProblem:
    """A per-entry conflict or failure recorded in the report"""
    path: str
    reason: str


@dataclass
class ReconciliationReport:
    """Outcome of one reconciliation pass"""
    destination: Optional[Path] = None
    created: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    created_dirs: List[str] = field(default_factory=list)
    removed_dirs: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    conflicts: List[EntryProblem] = field(default_factory=list)
    failures: List[EntryProblem] = field(default_factory=list)
    watched_roots: List[Path] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.conflicts and not self.failures

    @property
    def mutation_count(self) -> int:
        return (
            len(self.created) + len(self.removed)
            + len(self.created_dirs) + len(self.removed_dirs)
        )

    def summary(self) -> str:
        if self.error:
            return f"failed: {self.error}"
        return (
            f"{len(self.created)} created, {len(self.removed)} removed, "
            f"{len(self.unchanged)} unchanged, {len(self.conflicts)} conflicts, "
            f"{len(self.failures)} failures"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['destination'] = str(self.destination) if self.destination else None
        data['watched_roots'] = [str(p) for p in self.watched_roots]
        return data
