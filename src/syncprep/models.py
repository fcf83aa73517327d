from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

REMOVE = "remove"
RENAME_FILE = "rename_file"
RENAME_DIR = "rename_dir"
LENGTH_WARNING = "length_warning"
EMPTY_DIR = "empty_dir"


@dataclass(frozen=True)
class JunkPattern:
    pattern: str  # exact name or fnmatch glob, case-sensitive
    reason: str
    files_only: bool = False


@dataclass(frozen=True)
class Action:
    kind: str  # one of REMOVE, RENAME_FILE, RENAME_DIR, LENGTH_WARNING, EMPTY_DIR
    path: Path
    reason: str
    destination: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RunCounters:
    files_removed: int = 0
    files_renamed: int = 0
    dirs_renamed: int = 0
    warnings: int = 0

    def add(self, action: Action) -> None:
        if action.kind == REMOVE:
            self.files_removed += 1
        elif action.kind == RENAME_FILE:
            self.files_renamed += 1
        elif action.kind == RENAME_DIR:
            self.dirs_renamed += 1
        elif action.kind == LENGTH_WARNING:
            self.warnings += 1


@dataclass(frozen=True)
class Plan:
    root: Path
    actions: list[Action]
    total_files: int = 0
    total_dirs: int = 0

    def of_kind(self, *kinds: str) -> list[Action]:
        return [a for a in self.actions if a.kind in kinds]

    @property
    def removals(self) -> list[Action]:
        return self.of_kind(REMOVE)

    @property
    def renames(self) -> list[Action]:
        return self.of_kind(RENAME_FILE, RENAME_DIR)

    @property
    def warnings(self) -> list[Action]:
        return self.of_kind(LENGTH_WARNING)

    @property
    def empty_dirs(self) -> list[Action]:
        return self.of_kind(EMPTY_DIR)

    @property
    def counters(self) -> RunCounters:
        counters = RunCounters()
        for action in self.actions:
            counters.add(action)
        return counters

    @property
    def has_changes(self) -> bool:
        return bool(self.removals or self.renames)

    @property
    def is_empty(self) -> bool:
        return not self.actions


@dataclass
class ApplyResult:
    applied: list[Action] = field(default_factory=list)
    failed: list[tuple[Action, str]] = field(default_factory=list)

    @property
    def counters(self) -> RunCounters:
        counters = RunCounters()
        for action in self.applied:
            counters.add(action)
        return counters
