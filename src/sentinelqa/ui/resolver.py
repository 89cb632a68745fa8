"""Element path resolution across both UI paradigms.

Every call re-walks the live trees; nothing is cached between calls.  Both
paradigms share one path counter (Toolkit walked first), so a path is
unique across the whole UI: a Legacy ``HUD/Submit`` that collides with a
Toolkit ``HUD/Submit`` is ``HUD/Submit[2]``.

Resolution order:
    1. Exact path, in either paradigm.
    2. Bare name (no ``/``), depth-first in the Toolkit tree.
    3. Legacy scene path, then the trailing name segment breadth-first
       across canvases.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Any

from sentinelqa.ui.adapters import ControlEntry, UIControl, walk_controls, wrap_control
from sentinelqa.ui.paths import trailing_segment
from sentinelqa.ui.scene import Scene

RootProvider = Callable[[], Any]
SceneProvider = Callable[[], "Scene | None"]


class ElementResolver:
    """Finds controls by path in the Toolkit root and the Legacy scene."""

    def __init__(
        self,
        root_provider: RootProvider | None = None,
        scene_provider: SceneProvider | None = None,
    ) -> None:
        self._root_provider = root_provider
        self._scene_provider = scene_provider

    def toolkit_roots(self) -> list[Any]:
        root = self._root_provider() if self._root_provider is not None else None
        return [root] if root is not None else []

    def scene(self) -> Scene | None:
        return self._scene_provider() if self._scene_provider is not None else None

    def legacy_roots(self) -> list[Any]:
        scene = self.scene()
        return scene.canvases() if scene is not None else []

    def walk(self) -> tuple[list[ControlEntry], list[ControlEntry]]:
        """Walk Toolkit then Legacy with one path counter."""
        seen: dict[str, int] = {}
        toolkit_entries = walk_controls(self.toolkit_roots(), seen)
        legacy_entries = walk_controls(self.legacy_roots(), seen)
        return toolkit_entries, legacy_entries

    def resolve(self, path: str) -> UIControl | None:
        path = (path or "").strip().strip("/")
        if not path:
            return None
        toolkit_entries, legacy_entries = self.walk()
        for entry in (*toolkit_entries, *legacy_entries):
            if entry.named and entry.path == path:
                return entry.control

        # A slashed path names a location; only bare names match by name in the Toolkit tree
        if "/" not in path:
            name = trailing_segment(path)
            for entry in toolkit_entries:
                if entry.named and entry.control.name == name:
                    return entry.control
        return self._resolve_legacy(path, legacy_entries)

    def _resolve_legacy(self, path: str, entries: list[ControlEntry]) -> UIControl | None:
        by_target = {id(entry.control.target): entry for entry in entries}
        scene = self.scene()
        node = scene.find(path) if scene is not None else None
        if node is not None:
            entry = by_target.get(id(node))
            return entry.control if entry is not None else wrap_control(node, node.scene_path)

        name = trailing_segment(path)
        queue = deque(self.legacy_roots())
        while queue:
            node = queue.popleft()
            if node.name == name:
                return by_target[id(node)].control
            queue.extend(node.children)
        return None
