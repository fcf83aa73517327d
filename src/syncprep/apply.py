from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Optional

from syncprep.models import REMOVE, Action, ApplyResult, Plan

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Action, Optional[str]], None]


def apply_plan(plan: Plan, on_result: ResultCallback | None = None) -> ApplyResult:
    """Remove junk, then rename files, then rename directories.

    A failed action is recorded and skipped. A junk path that is already gone
    is skipped without being recorded.
    """
    result = ApplyResult()
    handled: set[Path] = set()
    for action in plan.removals + plan.renames:
        if action.path in handled:
            continue
        handled.add(action.path)
        if action.kind == REMOVE and not os.path.lexists(action.path):
            logger.debug("Already gone: %s", action.path)
            continue
        _run(action, _execute, result, on_result)
    return result


def remove_empty_dirs(plan: Plan, on_result: ResultCallback | None = None) -> ApplyResult:
    result = ApplyResult()
    targets = sorted(
        plan.empty_dirs,
        key=lambda a: (-len(_location(a).parts), _location(a).as_posix()),
    )
    for action in targets:
        _run(action, lambda a: _location(a).rmdir(), result, on_result)
    return result


def _run(
    action: Action,
    operation: Callable[[Action], None],
    result: ApplyResult,
    on_result: ResultCallback | None,
) -> None:
    try:
        operation(action)
    except OSError as exc:
        logger.debug("Skipped %s: %s", action.path, exc)
        error: str | None = exc.strerror or str(exc)
        result.failed.append((action, error))
    else:
        error = None
        result.applied.append(action)
    if on_result is not None:
        on_result(action, error)


def _execute(action: Action) -> None:
    if action.kind == REMOVE:
        _remove(action.path)
    else:
        _rename(action.path, action.destination)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _rename(src: Path, dst: Path | None) -> None:
    if dst is None:
        raise ValueError(f"Rename without destination: {src}")
    if not os.path.lexists(src):
        raise FileNotFoundError(errno.ENOENT, "Source vanished", str(src))
    if os.path.lexists(dst):
        raise FileExistsError(errno.EEXIST, "Destination exists", str(dst))
    os.rename(src, dst)


def _location(action: Action) -> Path:
    return action.destination or action.path
