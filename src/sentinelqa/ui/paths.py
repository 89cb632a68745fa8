"""Hierarchical element paths (``Panel/Form/Submit``)."""

from __future__ import annotations

import re

SEPARATOR = "/"

_INDEXED_SEGMENT = re.compile(r"^(?P<name>.*)\[(?P<index>\d+)\]$")


def join_path(prefix: str, name: str) -> str:
    """Append *name* to *prefix*.  An empty name adds no segment."""
    if not name:
        return prefix
    if not prefix:
        return name
    return f"{prefix}{SEPARATOR}{name}"


def split_path(path: str) -> list[str]:
    return [segment for segment in path.strip().split(SEPARATOR) if segment]


def trailing_segment(path: str) -> str:
    """Last segment of *path* with any ``[n]`` duplicate index removed."""
    segments = split_path(path)
    if not segments:
        return ""
    match = _INDEXED_SEGMENT.match(segments[-1])
    return match.group("name") if match else segments[-1]


def unique_path(path: str, seen: dict[str, int]) -> str:
    """Return *path*, or ``path[n]`` if it was already handed out.

    *seen* counts how often each base path has occurred in the current
    snapshot and is updated in place.
    """
    count = seen.get(path, 0) + 1
    seen[path] = count
    if count == 1:
        return path
    candidate = f"{path}[{count}]"
    while candidate in seen:
        count += 1
        candidate = f"{path}[{count}]"
    seen[path] = count
    seen[candidate] = 1
    return candidate
