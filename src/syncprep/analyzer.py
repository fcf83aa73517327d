from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from syncprep.models import (
    EMPTY_DIR,
    LENGTH_WARNING,
    REMOVE,
    RENAME_DIR,
    RENAME_FILE,
    Action,
    JunkPattern,
    Plan,
)
from syncprep.sanitize import rename_reason, sanitize_dir_name, sanitize_name

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 245
MAX_PATH_LENGTH = 5000
MAX_OFFICE_PATH_LENGTH = 215
OFFICE_EXTENSIONS = {"doc", "docx", "xls", "xlsx", "xlsm", "ppt", "pptx", "rtf"}

_MAC_METADATA = "Mac folder metadata"
_THUMBNAIL_CACHE = "Windows thumbnail cache"
_TEMP_FILE = "temp file"
_LOCK_FILE = "lock file"
_SERVICE_METADATA = "sync service metadata"

JUNK_PATTERNS = [
    JunkPattern(".DS_Store", _MAC_METADATA),
    JunkPattern("._.DS_Store", _MAC_METADATA),
    JunkPattern(".Spotlight-V100", "Spotlight index"),
    JunkPattern(".Trashes", "Mac trash folder"),
    JunkPattern(".fseventsd", "Mac file system event log"),
    JunkPattern("__MACOSX", "Mac archive metadata"),
    JunkPattern(".TemporaryItems", "Mac temporary items"),
    JunkPattern(".VolumeIcon.icns", "Mac volume icon"),
    JunkPattern(".com.apple.timemachine.donotpresent", "Time Machine marker"),
    JunkPattern(".AppleDouble", "Mac resource fork folder"),
    JunkPattern(".LSOverride", "Mac Launch Services override"),
    JunkPattern(".DocumentRevisions-V100", "Mac document versions store"),
    JunkPattern("Thumbs.db", _THUMBNAIL_CACHE),
    JunkPattern("Thumbs.db:encryptable", _THUMBNAIL_CACHE),
    JunkPattern("ehthumbs.db", _THUMBNAIL_CACHE),
    JunkPattern("ehthumbs_vista.db", _THUMBNAIL_CACHE),
    JunkPattern("desktop.ini", "Windows folder settings"),
    JunkPattern("$RECYCLE.BIN", "Windows recycle bin"),
    JunkPattern("System Volume Information", "Windows system folder"),
    JunkPattern("._*", "resource fork", files_only=True),
    JunkPattern(".~*", _TEMP_FILE, files_only=True),
    JunkPattern("~$*", _TEMP_FILE, files_only=True),
    JunkPattern("~*.$$$", _TEMP_FILE, files_only=True),
    JunkPattern("~*.tmp", _TEMP_FILE, files_only=True),
    JunkPattern("~*.ac$", _TEMP_FILE, files_only=True),
    JunkPattern("~*.sv$", _TEMP_FILE, files_only=True),
    JunkPattern("*.dwl", _LOCK_FILE, files_only=True),
    JunkPattern("*.dwl1", _LOCK_FILE, files_only=True),
    JunkPattern("*.dwl2", _LOCK_FILE, files_only=True),
    JunkPattern(".spotlight-*", "spotlight index"),
    JunkPattern("*._attribs_", _SERVICE_METADATA, files_only=True),
    JunkPattern("*._rights_", _SERVICE_METADATA, files_only=True),
    JunkPattern("*._egn_", _SERVICE_METADATA, files_only=True),
    JunkPattern("*_egnmeta", _SERVICE_METADATA, files_only=True),
    JunkPattern("_egn_.*", _SERVICE_METADATA, files_only=True),
    JunkPattern(".smbdelete*", "smb marker", files_only=True),
]


def analyze(root: Path) -> Plan:
    """Build the full action plan for ``root`` without touching the tree.

    Later phases treat planned junk as already gone, so a folder holding only
    ``.DS_Store`` shows up as empty and junk is never renamed or measured.
    """
    root = root.resolve()
    junk = list(find_junk(root))
    skip = {action.path for action in junk}
    renames = plan_renames(root, skip)
    warnings = list(check_lengths(root, skip))
    renamed = {action.path: action.destination.name for action in renames if action.destination}
    empty = list(find_empty_dirs(root, skip, renamed))
    total_files, total_dirs = count_entries(root)
    return Plan(
        root=root,
        actions=junk + renames + warnings + empty,
        total_files=total_files,
        total_dirs=total_dirs,
    )


def count_entries(root: Path) -> tuple[int, int]:
    """Count files and folders below ``root``, the root itself excluded."""
    files = 0
    dirs = 0
    for _, dirnames, filenames in _walk(root):
        files += len(filenames)
        dirs += len(dirnames)
    return files, dirs


def match_junk(name: str, is_dir: bool = False) -> JunkPattern | None:
    for pattern in JUNK_PATTERNS:
        if pattern.files_only and is_dir:
            continue
        if fnmatch.fnmatchcase(name, pattern.pattern):
            return pattern
    return None


def find_junk(root: Path) -> Iterator[Action]:
    for current, dirnames, filenames in _walk(root):
        for name in list(dirnames):
            pattern = _junk_pattern(name, is_dir=True)
            if pattern is None:
                continue
            # removed recursively, nothing below it needs reporting
            dirnames.remove(name)
            yield _junk_action(current / name, pattern, is_dir=True)
        for name in filenames:
            pattern = _junk_pattern(name, is_dir=False)
            if pattern is not None:
                yield _junk_action(current / name, pattern, is_dir=False)


def _junk_pattern(name: str, is_dir: bool) -> JunkPattern | None:
    # a name that only turns into junk once cleaned, e.g. "Thumbs.db "
    return match_junk(name, is_dir) or match_junk(sanitize_name(name), is_dir)


def _junk_action(path: Path, pattern: JunkPattern, is_dir: bool) -> Action:
    return Action(
        kind=REMOVE,
        path=path,
        reason=pattern.reason,
        details={"is_dir": is_dir},
    )


def plan_renames(root: Path, skip: set[Path] | None = None) -> list[Action]:
    """Plan renames for every non-compliant name under ``root``.

    Files come first, then directories, each deepest-first. Executed in this
    order, no rename ever runs under an ancestor that was already renamed.
    """
    files: list[Path] = []
    dirs: list[Path] = []
    for current, dirnames, filenames in _walk(root, skip):
        dirs.extend(current / name for name in dirnames)
        files.extend(current / name for name in filenames)

    claimed: dict[Path, set[str]] = {}
    actions: list[Action] = []
    for path in _deepest_first(root, files):
        action = _plan_rename(path, RENAME_FILE, sanitize_name(path.name), claimed)
        if action is not None:
            actions.append(action)
    for path in _deepest_first(root, dirs):
        action = _plan_rename(path, RENAME_DIR, sanitize_dir_name(path.name), claimed)
        if action is not None:
            actions.append(action)
    return actions


def _plan_rename(
    path: Path,
    kind: str,
    new_name: str,
    claimed: dict[Path, set[str]],
) -> Action | None:
    if new_name == path.name:
        return None
    taken = claimed.get(path.parent)
    if taken is None:
        taken = set(os.listdir(path.parent))
        claimed[path.parent] = taken
    if new_name in taken:
        new_name = disambiguate(new_name, taken, keep_extension=kind == RENAME_FILE)
    taken.add(new_name)
    return Action(
        kind=kind,
        path=path,
        reason=rename_reason(path.name),
        destination=path.parent / new_name,
    )


def disambiguate(name: str, taken: set[str], keep_extension: bool = True) -> str:
    """Append ``_<n>`` to ``name`` until it is not in ``taken``."""
    stem, ext = os.path.splitext(name) if keep_extension else (name, "")
    counter = 1
    while f"{stem}_{counter}{ext}" in taken:
        counter += 1
    return f"{stem}_{counter}{ext}"


def check_lengths(root: Path, skip: set[Path] | None = None) -> Iterator[Action]:
    for current, dirnames, filenames in _walk(root, skip):
        for name in dirnames + filenames:
            yield from _length_warnings(root, current / name)


def _length_warnings(root: Path, path: Path) -> Iterator[Action]:
    rel_path = path.relative_to(root).as_posix()
    name_length = len(path.name)
    path_length = len(rel_path)
    if name_length > MAX_NAME_LENGTH:
        yield _warning(
            path,
            "name",
            name_length,
            f"name is {name_length} characters (limit {MAX_NAME_LENGTH})",
        )
    if path_length > MAX_PATH_LENGTH:
        yield _warning(
            path,
            "path",
            path_length,
            f"path is {path_length} characters (limit {MAX_PATH_LENGTH})",
        )
    extension = path.suffix.lower().lstrip(".")
    if extension in OFFICE_EXTENSIONS and path_length > MAX_OFFICE_PATH_LENGTH:
        yield _warning(
            path,
            "office",
            path_length,
            f"Office path is {path_length} characters (limit {MAX_OFFICE_PATH_LENGTH})",
        )


def _warning(path: Path, check: str, length: int, reason: str) -> Action:
    return Action(
        kind=LENGTH_WARNING,
        path=path,
        reason=reason,
        details={"check": check, "length": length},
    )


def find_empty_dirs(
    root: Path,
    skip: set[Path] | None = None,
    renamed: dict[Path, str] | None = None,
) -> Iterator[Action]:
    renamed = renamed or {}
    for current, dirnames, filenames in _walk(root, skip):
        if current == root or dirnames or filenames:
            continue
        yield Action(
            kind=EMPTY_DIR,
            path=current,
            reason="empty folder",
            destination=final_location(root, current, renamed),
        )


def final_location(root: Path, path: Path, renamed: dict[Path, str]) -> Path:
    """Where ``path`` ends up once every planned rename has run."""
    location = root
    original = root
    for part in path.relative_to(root).parts:
        original = original / part
        location = location / renamed.get(original, part)
    return location


def _walk(
    root: Path,
    skip: Iterable[Path] | None = None,
) -> Iterator[tuple[Path, list[str], list[str]]]:
    skipped = set(skip or ())
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        current = Path(dirpath)
        dirnames[:] = sorted(name for name in dirnames if current / name not in skipped)
        yield current, dirnames, sorted(name for name in filenames if current / name not in skipped)


def _walk_error(error: OSError) -> None:
    logger.debug("Cannot read %s: %s", error.filename, error.strerror)


def _deepest_first(root: Path, paths: list[Path]) -> list[Path]:
    return sorted(paths, key=lambda p: (-len(p.relative_to(root).parts), p.as_posix()))
