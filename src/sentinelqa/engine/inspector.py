"""SentinelQA UI Inspector -- read-only discovery of UI elements.

Produces the JSON hierarchy the model reads through ``query_ui`` and the
per-element state behind ``check_element_state``.  Both paradigms are
walked on every call; descriptors are never cached.

An element is listed when it is one of the interactive kinds and is
interactable (pointer-pickable, displayed and visible).  Text elements with
non-empty text are listed read-only (``"interactable": false``) so the model
can ground itself on labels and messages.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from sentinelqa.ui.adapters import INTERACTIVE_KINDS, LEGACY, TEXT, TOOLKIT, ControlEntry, UIControl
from sentinelqa.ui.resolver import ElementResolver

logger = logging.getLogger("sentinelqa.engine.inspector")

NO_UI_ERROR = "No UI found (no Toolkit root or Legacy canvas present)"


@dataclasses.dataclass
class ElementDescriptor:
    name: str
    type: str
    ui_system: str
    path: str
    text: str
    enabled: bool
    visible: bool | None = None
    interactable: bool = True
    state: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_control(cls, control: UIControl, interactable: bool = True, with_visibility: bool = False) -> ElementDescriptor:
        return cls(
            name=control.name,
            type=control.type_name,
            ui_system=control.ui_system,
            path=control.path,
            text=control.text,
            enabled=control.enabled,
            visible=control.is_displayed() if with_visibility else None,
            interactable=interactable,
            state=control.extra_state(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "ui_system": self.ui_system,
            "path": self.path,
            "text": self.text,
            "enabled": self.enabled,
        }
        if self.visible is not None:
            data["visible"] = self.visible
        if not self.interactable:
            data["interactable"] = False
        data.update(self.state)
        return data


@dataclasses.dataclass
class UISnapshot:
    ui_type: str  # Toolkit | Legacy | Both
    legacy_root_count: int
    elements: list[ElementDescriptor]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ui_type": self.ui_type,
            "legacy_root_count": self.legacy_root_count,
            "element_count": len(self.elements),
            "elements": [e.to_dict() for e in self.elements],
        }


class UIInspector:
    def __init__(self, resolver: ElementResolver, log: logging.Logger | None = None) -> None:
        self._resolver = resolver
        self._log = log or logger

    @property
    def resolver(self) -> ElementResolver:
        return self._resolver

    # -- Public API ----------------------------------------------------------

    def snapshot(self) -> UISnapshot | None:
        """Walk both paradigms.  Returns None when neither is present."""
        toolkit_roots = self._resolver.toolkit_roots()
        canvases = self._resolver.legacy_roots()
        if not toolkit_roots and not canvases:
            return None

        toolkit_entries, legacy_entries = self._resolver.walk()
        elements = self._collect(toolkit_entries)
        elements.extend(self._collect(legacy_entries, skip_inactive=True))

        if toolkit_roots and canvases:
            ui_type = "Both"
        else:
            ui_type = TOOLKIT if toolkit_roots else LEGACY
        self._log.debug("Inspected %s UI: %d element(s)", ui_type, len(elements))
        return UISnapshot(ui_type=ui_type, legacy_root_count=len(canvases), elements=elements)

    def get_ui_hierarchy(self) -> str:
        snapshot = self.snapshot()
        if snapshot is None:
            return json.dumps({"error": NO_UI_ERROR})
        return json.dumps(snapshot.to_dict(), ensure_ascii=False)

    def element_exists(self, path: str) -> bool:
        return self._resolver.resolve(path) is not None

    def describe(self, path: str) -> ElementDescriptor | None:
        control = self._resolver.resolve(path)
        if control is None:
            return None
        return ElementDescriptor.from_control(control, interactable=control.is_interactable(), with_visibility=True)

    def get_element_state(self, path: str) -> str:
        descriptor = self.describe(path)
        if descriptor is None:
            return json.dumps({"error": "Element not found", "path": path}, ensure_ascii=False)
        data = descriptor.to_dict()
        data.pop("interactable", None)
        return json.dumps(data, ensure_ascii=False)

    # -- Internals -----------------------------------------------------------

    @staticmethod
    def _collect(entries: list[ControlEntry], skip_inactive: bool = False) -> list[ElementDescriptor]:
        found: list[ElementDescriptor] = []
        for entry in entries:
            control = entry.control
            if not entry.named:
                continue
            if skip_inactive and not control.is_displayed():
                continue
            kind = control.kind
            if kind in INTERACTIVE_KINDS and control.is_interactable():
                found.append(ElementDescriptor.from_control(control))
            elif kind == TEXT and control.text and control.is_displayed():
                found.append(ElementDescriptor.from_control(control, interactable=False))
        return found
