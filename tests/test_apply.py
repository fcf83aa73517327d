from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

from syncprep.analyzer import analyze
from syncprep.apply import apply_plan, remove_empty_dirs
from syncprep.models import REMOVE, Action, Plan


def _write(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def test_apply_scenario(tmp_path: Path) -> None:
    _write(tmp_path / "notes.txt", "notes")
    _write(tmp_path / ".DS_Store", "junk")
    _write(tmp_path / "Reports:Q1" / "q1.txt", "data")

    result = apply_plan(analyze(tmp_path))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["Reports_Q1", "notes.txt"]
    assert (tmp_path / "Reports_Q1" / "q1.txt").read_text() == "data"
    assert result.failed == []
    counters = result.counters
    assert (counters.files_removed, counters.files_renamed, counters.dirs_renamed) == (1, 0, 1)


def test_nested_renames_apply_child_first(tmp_path: Path) -> None:
    _write(tmp_path / "top:1" / "mid:2" / "leaf:3.txt", "leaf")

    result = apply_plan(analyze(tmp_path))

    assert (tmp_path / "top_1" / "mid_2" / "leaf_3.txt").read_text() == "leaf"
    assert len(result.applied) == 3
    assert result.failed == []


def test_collision_never_overwrites(tmp_path: Path) -> None:
    _write(tmp_path / "report_.txt", "first")
    _write(tmp_path / "report:.txt", "second")

    apply_plan(analyze(tmp_path))

    assert (tmp_path / "report_.txt").read_text() == "first"
    assert (tmp_path / "report__1.txt").read_text() == "second"


def test_junk_directory_removed_recursively(tmp_path: Path) -> None:
    _write(tmp_path / "__MACOSX" / "._photo.jpg")
    _write(tmp_path / "keep.txt")

    apply_plan(analyze(tmp_path))

    assert not (tmp_path / "__MACOSX").exists()
    assert (tmp_path / "keep.txt").exists()


def test_vanished_junk_is_skipped_silently(tmp_path: Path) -> None:
    _write(tmp_path / ".DS_Store")
    plan = analyze(tmp_path)
    (tmp_path / ".DS_Store").unlink()

    result = apply_plan(plan)

    assert result.applied == []
    assert result.failed == []


def test_duplicate_removals_handled_once(tmp_path: Path) -> None:
    _write(tmp_path / "Thumbs.db")
    action = Action(kind=REMOVE, path=tmp_path / "Thumbs.db", reason="Windows thumbnail cache")
    plan = Plan(root=tmp_path, actions=[action, action])

    result = apply_plan(plan)

    assert result.applied == [action]
    assert result.failed == []


def test_failed_rename_is_recorded_and_run_continues(tmp_path: Path) -> None:
    _write(tmp_path / "a?.txt", "a")
    _write(tmp_path / "b?.txt", "b")
    plan = analyze(tmp_path)
    _write(tmp_path / "a_.txt", "late arrival")
    seen: list[tuple[str, str | None]] = []

    result = apply_plan(
        plan,
        on_result=lambda action, error: seen.append((action.path.name, error)),
    )

    assert [a.path.name for a, _ in result.failed] == ["a?.txt"]
    assert (tmp_path / "a_.txt").read_text() == "late arrival"
    assert (tmp_path / "a?.txt").exists()
    assert (tmp_path / "b_.txt").read_text() == "b"
    assert [name for name, _ in seen] == ["a?.txt", "b?.txt"]
    assert seen[0][1] is not None and seen[1][1] is None


def test_vanished_rename_source_is_recorded(tmp_path: Path) -> None:
    _write(tmp_path / "gone?.txt")
    plan = analyze(tmp_path)
    (tmp_path / "gone?.txt").unlink()

    result = apply_plan(plan)

    assert len(result.failed) == 1
    assert result.counters.files_renamed == 0


def test_empty_dirs_removed_at_renamed_location(tmp_path: Path) -> None:
    (tmp_path / "Reports:Q1").mkdir()
    _write(tmp_path / "only-junk" / ".DS_Store")
    _write(tmp_path / "full" / "keep.txt")
    plan = analyze(tmp_path)

    apply_plan(plan)
    result = remove_empty_dirs(plan)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["full"]
    assert len(result.applied) == 2


def test_empty_dir_no_longer_empty_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "later").mkdir()
    plan = analyze(tmp_path)
    _write(tmp_path / "later" / "new.txt")

    result = remove_empty_dirs(plan)

    assert len(result.failed) == 1
    assert (tmp_path / "later" / "new.txt").exists()


def test_apply_leaves_empty_dirs_alone(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    _write(tmp_path / ".DS_Store")

    apply_plan(analyze(tmp_path))

    assert (tmp_path / "empty").is_dir()
    shutil.rmtree(tmp_path / "empty")


def test_failures_are_not_logged_as_warnings(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    _write(tmp_path / "gone?.txt")
    plan = analyze(tmp_path)
    (tmp_path / "gone?.txt").unlink()
    caplog.set_level(logging.DEBUG, logger="syncprep.apply")

    result = apply_plan(plan)

    assert len(result.failed) == 1
    assert [r.levelno for r in caplog.records] == [logging.DEBUG]
