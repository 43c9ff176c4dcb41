"""
Reconciler.

Compares the desired tree from the planner with what is actually inside the
destination directory, produces an ordered list of mutations, and applies
them one filesystem call at a time.

Safety rules:
- Only symbolic links pointing inside a managed root are treated as ours.
- Plain files, plain directories and foreign links are never modified; when
  they sit where a link or account directory should go, they are reported as
  conflicts.
- A stale account directory is removed only when every child was one of our
  links removed in the same pass.
"""

import os
import logging
from pathlib import Path, PurePath
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..errors import FilesystemOperationFailed, LinkConflict
from ..models import (
    DesiredLink,
    EntryKind,
    EntryProblem,
    ExistingEntry,
    Mutation,
    MutationKind,
    ReconciliationReport,
)

logger = logging.getLogger(__name__)

OwnershipCheck = Callable[[Path], bool]


def read_link_target(link: Path) -> Path:
    """Absolute, normalized target of a symbolic link"""
    raw = os.readlink(link)
    if not os.path.isabs(raw):
        raw = os.path.join(os.path.dirname(link), raw)
    return Path(os.path.normpath(raw))


def same_target(a: Path, b: Path) -> bool:
    if os.path.normpath(a) == os.path.normpath(b):
        return True
    return os.path.realpath(a) == os.path.realpath(b)


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False


def make_ownership_check(managed_roots: Sequence[Path]) -> OwnershipCheck:
    """
    Build a predicate telling whether a link target is inside a managed root.

    Both the literal and the fully resolved forms are compared, so links
    made through a symlinked Steam path (~/.steam/steam) still count.
    """
    literal = [os.path.normpath(r) for r in managed_roots]
    resolved = [os.path.realpath(r) for r in managed_roots]

    def is_owned(target: Path) -> bool:
        target_literal = os.path.normpath(target)
        if any(_is_within(target_literal, r) for r in literal):
            return True
        target_resolved = os.path.realpath(target)
        return any(_is_within(target_resolved, r) for r in resolved)

    return is_owned


def classify(root: Path, relative_path: PurePath) -> ExistingEntry:
    path = root / relative_path
    try:
        if path.is_symlink():
            return ExistingEntry(relative_path, EntryKind.SYMLINK, link_target=read_link_target(path))
        if path.is_dir():
            return ExistingEntry(relative_path, EntryKind.DIRECTORY)
        if path.exists():
            return ExistingEntry(relative_path, EntryKind.FILE)
    except OSError as e:
        # Listed but not stat-able; never touched, and a conflict if wanted
        logger.warning(f"[Reconciler] Cannot inspect {path}: {e}")
        return ExistingEntry(relative_path, EntryKind.FILE, readable=False)
    return ExistingEntry(relative_path, EntryKind.ABSENT)


def scan_destination(root: Path) -> List[ExistingEntry]:
    """
    Observe the top two levels of the destination directory.

    Raises:
        FilesystemOperationFailed: The destination root cannot be listed
    """
    try:
        names = sorted(p.name for p in root.iterdir())
    except OSError as e:
        raise FilesystemOperationFailed(str(root), f"cannot list destination: {e}") from e

    entries = []
    for name in names:
        entry = classify(root, PurePath(name))
        if entry.kind == EntryKind.DIRECTORY:
            try:
                child_names = sorted(p.name for p in (root / name).iterdir())
            except OSError as e:
                logger.warning(f"[Reconciler] Cannot list {root / name}: {e}")
                entry.readable = False
                child_names = []
            entry.children = [classify(root, PurePath(name, c)) for c in child_names]
        entries.append(entry)

    return entries


def _describe(entry: ExistingEntry) -> str:
    if not entry.readable and entry.kind != EntryKind.DIRECTORY:
        return "an entry that cannot be inspected"
    if entry.kind == EntryKind.SYMLINK:
        return f"a link to {entry.link_target} not created by lnshot"
    return f"a {entry.kind.value}"


class MutationPlan:
    """Ordered mutations plus what was found already correct or conflicting"""

    def __init__(self):
        self.removals: List[Mutation] = []
        self.creations: List[Mutation] = []
        self.unchanged: List[PurePath] = []
        self.conflicts: List[LinkConflict] = []

    @property
    def mutations(self) -> List[Mutation]:
        # Removals first so a replaced link is gone before it is recreated
        return self.removals + self.creations

    def conflict(self, path: PurePath, reason: str) -> None:
        logger.warning(f"[Reconciler] Conflict at {path}: {reason}; skipping")
        self.conflicts.append(LinkConflict(str(path), reason))


def plan_mutations(
    existing: Sequence[ExistingEntry],
    desired: Sequence[DesiredLink],
    is_owned: OwnershipCheck,
) -> MutationPlan:
    """
    Diff the observed tree against the desired one.

    Pure: the result depends only on the arguments.
    """
    plan = MutationPlan()
    wanted: Dict[PurePath, DesiredLink] = {d.relative_path: d for d in desired}
    present_dirs: Set[PurePath] = set()
    blocked_dirs: Set[PurePath] = set()
    handled_links: Set[PurePath] = set()

    def owned_link(entry: ExistingEntry) -> bool:
        return entry.kind == EntryKind.SYMLINK and is_owned(entry.link_target)

    for entry in existing:
        rel = entry.relative_path
        want = wanted.get(rel)

        if want is None:
            _plan_stale_top_level(entry, plan, owned_link)
            continue

        if entry.kind == EntryKind.DIRECTORY:
            if not entry.readable:
                plan.conflict(rel, "directory cannot be listed")
                blocked_dirs.add(rel)
                continue
            present_dirs.add(rel)
            for child in entry.children:
                _plan_child(child, wanted, plan, owned_link, handled_links)
        elif owned_link(entry):
            # An old link where an account directory now belongs
            plan.removals.append(Mutation(MutationKind.REMOVE_LINK, rel))
        else:
            plan.conflict(rel, f"account directory is occupied by {_describe(entry)}")
            blocked_dirs.add(rel)

    for link in desired:
        rel = link.relative_path
        if link.is_directory:
            if rel not in present_dirs and rel not in blocked_dirs:
                plan.creations.append(Mutation(MutationKind.MAKE_DIR, rel))
        elif rel.parent in blocked_dirs or rel in handled_links:
            continue
        else:
            plan.creations.append(Mutation(MutationKind.MAKE_LINK, rel, link.target_path))

    return plan


def _plan_stale_top_level(entry: ExistingEntry, plan: MutationPlan, owned_link) -> None:
    if owned_link(entry):
        plan.removals.append(Mutation(MutationKind.REMOVE_LINK, entry.relative_path))
        return

    if entry.kind != EntryKind.DIRECTORY or not entry.readable or not entry.children:
        return

    stale_links = [c for c in entry.children if owned_link(c)]
    for child in stale_links:
        plan.removals.append(Mutation(MutationKind.REMOVE_LINK, child.relative_path))

    if len(stale_links) == len(entry.children):
        plan.removals.append(Mutation(MutationKind.REMOVE_DIR, entry.relative_path))


def _plan_child(
    child: ExistingEntry,
    wanted: Dict[PurePath, DesiredLink],
    plan: MutationPlan,
    owned_link,
    handled_links: Set[PurePath],
) -> None:
    rel = child.relative_path
    want = wanted.get(rel)

    if want is None:
        if owned_link(child):
            plan.removals.append(Mutation(MutationKind.REMOVE_LINK, rel))
        return

    if child.kind == EntryKind.SYMLINK and same_target(child.link_target, want.target_path):
        plan.unchanged.append(rel)
        handled_links.add(rel)
    elif owned_link(child):
        # Links are never retargeted in place; remove, then recreate below
        plan.removals.append(Mutation(MutationKind.REMOVE_LINK, rel))
    else:
        plan.conflict(rel, f"path is occupied by {_describe(child)}")
        handled_links.add(rel)


def _apply_one(root: Path, mutation: Mutation) -> None:
    path = root / mutation.relative_path
    if mutation.kind == MutationKind.MAKE_DIR:
        os.mkdir(path)
    elif mutation.kind == MutationKind.MAKE_LINK:
        os.symlink(mutation.target_path, path, target_is_directory=True)
    elif mutation.kind == MutationKind.REMOVE_LINK:
        if not path.is_symlink():
            raise FilesystemOperationFailed(str(mutation.relative_path), "no longer a link")
        os.unlink(path)
    elif mutation.kind == MutationKind.REMOVE_DIR:
        os.rmdir(path)


def apply_mutations(
    root: Path,
    mutations: Sequence[Mutation],
    report: ReconciliationReport,
) -> None:
    """
    Apply mutations in order, recording each outcome in the report.

    A failed mutation is recorded and skipped; the rest still run. Links
    whose account directory could not be created are skipped.
    """
    failed_dirs: Set[PurePath] = set()

    for mutation in mutations:
        rel = mutation.relative_path
        label = rel.as_posix()

        if mutation.kind == MutationKind.MAKE_LINK and rel.parent in failed_dirs:
            report.failures.append(EntryProblem(label, "account directory could not be created"))
            continue

        try:
            _apply_one(root, mutation)
        except FilesystemOperationFailed as e:
            logger.error(f"[Reconciler] {mutation.kind.value} failed: {e}")
            report.failures.append(EntryProblem(label, e.reason))
            continue
        except OSError as e:
            logger.error(f"[Reconciler] {mutation.kind.value} {root / rel} failed: {e}")
            report.failures.append(EntryProblem(label, e.strerror or str(e)))
            if mutation.kind == MutationKind.MAKE_DIR:
                failed_dirs.add(rel)
            continue

        if mutation.kind == MutationKind.MAKE_LINK:
            logger.info(f"[Reconciler] Linked {label} -> {mutation.target_path}")
            report.created.append(label)
        elif mutation.kind == MutationKind.REMOVE_LINK:
            logger.info(f"[Reconciler] Removed link {label}")
            report.removed.append(label)
        elif mutation.kind == MutationKind.MAKE_DIR:
            logger.debug(f"[Reconciler] Created directory {label}")
            report.created_dirs.append(label)
        else:
            logger.info(f"[Reconciler] Removed empty directory {label}")
            report.removed_dirs.append(label)


def reconcile_tree(
    root: Path,
    desired: Sequence[DesiredLink],
    managed_roots: Sequence[Path],
    report: Optional[ReconciliationReport] = None,
) -> ReconciliationReport:
    """
    Converge the destination directory onto the desired tree.

    Args:
        root: Destination directory (created if absent)
        desired: Planner output
        managed_roots: Link targets inside these roots are treated as ours
        report: Report to fill in; a new one is created when omitted

    Returns:
        The report, with per-entry conflicts and failures aggregated
    """
    if report is None:
        report = ReconciliationReport()
    report.destination = root

    if root.is_symlink() and not root.is_dir():
        report.conflicts.append(EntryProblem(str(root), "destination is a dangling link"))
        return report
    if root.exists() and not root.is_dir():
        report.conflicts.append(EntryProblem(str(root), "destination is not a directory"))
        return report

    if not root.exists():
        try:
            os.makedirs(root)
        except OSError as e:
            logger.error(f"[Reconciler] Cannot create {root}: {e}")
            report.failures.append(EntryProblem(str(root), e.strerror or str(e)))
            return report
        logger.info(f"[Reconciler] Created destination {root}")
        report.created_dirs.append(".")

    try:
        existing = scan_destination(root)
    except FilesystemOperationFailed as e:
        report.failures.append(EntryProblem(e.path, e.reason))
        return report

    plan = plan_mutations(existing, desired, make_ownership_check(managed_roots))
    report.unchanged.extend(p.as_posix() for p in plan.unchanged)
    report.conflicts.extend(EntryProblem(PurePath(c.path).as_posix(), c.reason) for c in plan.conflicts)

    apply_mutations(root, plan.mutations, report)
    return report
