"""
Tests for the reconciler: convergence, idempotence and the rule that nothing
lnshot did not create is ever modified.
"""
from __future__ import annotations

import os
from pathlib import Path, PurePath

import pytest

from lnshot.models import DesiredLink, EntryKind, MutationKind
from lnshot.services.reconciler import (
    make_ownership_check,
    plan_mutations,
    reconcile_tree,
    scan_destination,
)


@pytest.fixture
def src(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    (root / "100" / "screenshots").mkdir(parents=True)
    (root / "200" / "ss").mkdir(parents=True)
    return root


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    return tmp_path / "Pictures" / "Steam Screenshots"


def _scenario(src: Path):
    return [
        DesiredLink(PurePath("Ticky")),
        DesiredLink(PurePath("Ticky/Hardspace Shipbreaker"), src / "100" / "screenshots"),
        DesiredLink(PurePath("Ticky/200"), src / "200" / "ss"),
    ]


def test_creates_links(src, dest) -> None:
    report = reconcile_tree(dest, _scenario(src), [src])

    assert sorted(report.created) == ["Ticky/200", "Ticky/Hardspace Shipbreaker"]
    assert report.removed == []
    assert report.conflicts == []
    assert report.ok
    assert os.readlink(dest / "Ticky" / "Hardspace Shipbreaker") == str(src / "100" / "screenshots")
    assert os.readlink(dest / "Ticky" / "200") == str(src / "200" / "ss")
    assert (dest / "Ticky").is_dir() and not (dest / "Ticky").is_symlink()


def test_second_run_makes_no_mutations(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])
    report = reconcile_tree(dest, _scenario(src), [src])

    assert report.mutation_count == 0
    assert sorted(report.unchanged) == ["Ticky/200", "Ticky/Hardspace Shipbreaker"]


def test_stale_link_is_removed(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])
    report = reconcile_tree(dest, _scenario(src)[:2], [src])

    assert report.removed == ["Ticky/200"]
    assert not os.path.lexists(dest / "Ticky" / "200")
    assert (dest / "Ticky" / "Hardspace Shipbreaker").is_symlink()


def test_emptied_account_directory_is_removed(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])
    report = reconcile_tree(dest, [], [src])

    assert sorted(report.removed) == ["Ticky/200", "Ticky/Hardspace Shipbreaker"]
    assert report.removed_dirs == ["Ticky"]
    assert not (dest / "Ticky").exists()


def test_account_directory_with_user_files_is_kept(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])
    (dest / "Ticky" / "notes.txt").write_text("mine")

    report = reconcile_tree(dest, [], [src])

    assert len(report.removed) == 2
    assert report.removed_dirs == []
    assert (dest / "Ticky" / "notes.txt").read_text() == "mine"


def test_plain_file_at_link_path_is_a_conflict(src, dest) -> None:
    (dest / "Ticky").mkdir(parents=True)
    (dest / "Ticky" / "200").write_text("user data")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [c.path for c in report.conflicts] == ["Ticky/200"]
    assert report.created == ["Ticky/Hardspace Shipbreaker"]
    assert (dest / "Ticky" / "200").read_text() == "user data"


def test_plain_directory_at_link_path_is_a_conflict(src, dest) -> None:
    (dest / "Ticky" / "200").mkdir(parents=True)
    (dest / "Ticky" / "200" / "shot.png").write_bytes(b"png")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [c.path for c in report.conflicts] == ["Ticky/200"]
    assert (dest / "Ticky" / "200" / "shot.png").exists()


def test_foreign_link_is_never_replaced(src, dest, tmp_path) -> None:
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    (dest / "Ticky").mkdir(parents=True)
    (dest / "Ticky" / "200").symlink_to(elsewhere)
    (dest / "Ticky" / "unrelated").symlink_to(elsewhere)

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [c.path for c in report.conflicts] == ["Ticky/200"]
    assert os.readlink(dest / "Ticky" / "200") == str(elsewhere)
    assert os.readlink(dest / "Ticky" / "unrelated") == str(elsewhere)


def test_file_at_account_path_blocks_its_links(src, dest) -> None:
    dest.mkdir(parents=True)
    (dest / "Ticky").write_text("not a folder")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [c.path for c in report.conflicts] == ["Ticky"]
    assert report.created == []
    assert (dest / "Ticky").read_text() == "not a folder"


def test_owned_link_with_new_target_is_recreated(src, dest) -> None:
    (dest / "Ticky").mkdir(parents=True)
    (dest / "Ticky" / "200").symlink_to(src / "100" / "screenshots")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert "Ticky/200" in report.removed
    assert "Ticky/200" in report.created
    assert os.readlink(dest / "Ticky" / "200") == str(src / "200" / "ss")


def test_dangling_owned_link_is_removed(src, dest) -> None:
    (dest / "Ticky").mkdir(parents=True)
    (dest / "Ticky" / "300").symlink_to(src / "300" / "screenshots")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert report.removed == ["Ticky/300"]
    assert not os.path.lexists(dest / "Ticky" / "300")


def test_destination_that_is_a_file_is_reported(src, tmp_path) -> None:
    dest = tmp_path / "Steam Screenshots"
    dest.write_text("oops")

    report = reconcile_tree(dest, _scenario(src), [src])

    assert len(report.conflicts) == 1
    assert report.created == []
    assert dest.read_text() == "oops"


def test_failed_mutation_does_not_abort_the_pass(src, dest, monkeypatch) -> None:
    real_symlink = os.symlink

    def flaky_symlink(target, link, target_is_directory=False):
        if Path(link).name == "200":
            raise PermissionError(13, "Permission denied")
        return real_symlink(target, link, target_is_directory=target_is_directory)

    monkeypatch.setattr(os, "symlink", flaky_symlink)

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [f.path for f in report.failures] == ["Ticky/200"]
    assert report.created == ["Ticky/Hardspace Shipbreaker"]
    assert not report.ok


def test_plan_orders_removals_before_directory_removal(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])

    plan = plan_mutations(scan_destination(dest), [], make_ownership_check([src]))

    kinds = [m.kind for m in plan.mutations]
    assert kinds == [MutationKind.REMOVE_LINK, MutationKind.REMOVE_LINK, MutationKind.REMOVE_DIR]


def test_plan_orders_directory_before_links(src, dest) -> None:
    dest.mkdir(parents=True)

    plan = plan_mutations(scan_destination(dest), _scenario(src), make_ownership_check([src]))

    assert [m.kind for m in plan.mutations] == [
        MutationKind.MAKE_DIR,
        MutationKind.MAKE_LINK,
        MutationKind.MAKE_LINK,
    ]


def test_scan_destination_classifies_entries(src, dest) -> None:
    reconcile_tree(dest, _scenario(src), [src])
    (dest / "readme.txt").write_text("hi")

    entries = {e.relative_path.as_posix(): e for e in scan_destination(dest)}

    assert entries["readme.txt"].kind == EntryKind.FILE
    assert entries["Ticky"].kind == EntryKind.DIRECTORY
    children = {c.relative_path.as_posix(): c for c in entries["Ticky"].children}
    assert children["Ticky/200"].kind == EntryKind.SYMLINK
    assert children["Ticky/200"].link_target == src / "200" / "ss"


def test_ownership_check(src, tmp_path) -> None:
    is_owned = make_ownership_check([src])
    assert is_owned(src / "1" / "screenshots")
    assert not is_owned(tmp_path / "srcfoo" / "1")
    assert not is_owned(tmp_path / "elsewhere")


def test_entry_that_cannot_be_inspected_is_a_conflict(src, dest, monkeypatch) -> None:
    (dest / "Ticky").mkdir(parents=True)
    (dest / "Ticky" / "200").write_text("user data")
    locked = dest / "Ticky" / "200"
    real_is_symlink = Path.is_symlink

    def is_symlink(self):
        if self == locked:
            raise PermissionError(13, "Permission denied", str(self))
        return real_is_symlink(self)

    monkeypatch.setattr(Path, "is_symlink", is_symlink)

    report = reconcile_tree(dest, _scenario(src), [src])

    assert [c.path for c in report.conflicts] == ["Ticky/200"]
    assert report.created == ["Ticky/Hardspace Shipbreaker"]
    assert report.failures == []
    assert locked.read_text() == "user data"
