"""Filename rules of the sync service: illegal characters, edge spaces, trailing periods."""

from __future__ import annotations

import re
import time
from typing import Callable

ILLEGAL_CHARS = '\\:"<>|*?'
RESERVED_DIR_NAMES = {".data", ".tmp"}

_ILLEGAL_RE = re.compile(r'[\\:"<>|*?]')


def sanitize_name(name: str, clock: Callable[[], float] = time.time) -> str:
    """Return ``name`` rewritten to satisfy the naming rules.

    Operates on a single path component. Falls back to ``_renamed_<epoch>``
    when nothing is left.
    """
    cleaned = _ILLEGAL_RE.sub("_", name)
    while True:
        stripped = cleaned.strip().rstrip(".")
        if stripped == cleaned:
            break
        cleaned = stripped
    if not cleaned:
        cleaned = f"_renamed_{int(clock())}"
    return cleaned


def sanitize_dir_name(name: str, clock: Callable[[], float] = time.time) -> str:
    cleaned = sanitize_name(name, clock=clock)
    if cleaned in RESERVED_DIR_NAMES:
        cleaned = "_" + cleaned
    return cleaned


def has_illegal_chars(name: str) -> bool:
    return _ILLEGAL_RE.search(name) is not None


def rename_reason(name: str) -> str:
    if has_illegal_chars(name):
        return "has illegal character(s)"
    if name != name.strip():
        return "starts or ends with a space"
    if name.endswith("."):
        return "ends with a period"
    if name in RESERVED_DIR_NAMES:
        return "reserved folder name"
    return "invalid name"
