"""Uniform capability set over the Toolkit and Legacy UI paradigms.

The inspector and interactor never branch on concrete widget classes.  They
wrap every node with :func:`wrap_control`, which probes the object's
capabilities and returns a :class:`ToolkitControl` or a
:class:`LegacyControl`.  Both expose the same surface: ``kind``,
``is_interactable()``, ``text``, ``set_text()``, ``invoke_click()``,
``scroll_by()`` and a few read-only state accessors.

Scroll convention, shared by both adapters: ``delta`` is in pixels and a
positive value scrolls toward the end of the content.

:func:`walk_controls` is the single traversal used for discovery and path
resolution, so the paths shown to the model always resolve to the same
nodes.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Any, ClassVar

from sentinelqa.errors import ActionUnsupportedError
from sentinelqa.ui import scene as legacy
from sentinelqa.ui import toolkit
from sentinelqa.ui.paths import join_path, unique_path

# Control kinds
BUTTON = "button"
TEXT_FIELD = "text_field"
TOGGLE = "toggle"
SCROLL_VIEW = "scroll_view"
DROPDOWN = "dropdown"
SLIDER = "slider"
TEXT = "text"

INTERACTIVE_KINDS = frozenset({BUTTON, TEXT_FIELD, TOGGLE, SCROLL_VIEW, DROPDOWN, SLIDER})

TOOLKIT = "Toolkit"
LEGACY = "Legacy"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class UIControl:
    """Capability set shared by both paradigms.

    Mutating operations raise :class:`ActionUnsupportedError` when the
    target lacks the capability or cannot currently be interacted with.
    """

    ui_system: ClassVar[str] = ""

    def __init__(self, target: Any, path: str = "") -> None:
        self.target = target
        self.path = path

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path or self.name!r}, kind={self.kind!r})"

    @property
    def name(self) -> str:
        return getattr(self.target, "name", "") or ""

    @property
    def kind(self) -> str | None:
        return None

    @property
    def type_name(self) -> str:
        return type(self.target).__name__

    @property
    def enabled(self) -> bool:
        return True

    @property
    def text(self) -> str:
        return ""

    def is_displayed(self) -> bool:
        return True

    def is_interactable(self) -> bool:
        return False

    def extra_state(self) -> dict[str, Any]:
        return {}

    def child_targets(self) -> list[Any]:
        return []

    def set_text(self, text: str) -> None:
        raise self._unsupported("type into", f"{self.type_name} is not a text input")

    def invoke_click(self) -> None:
        raise self._unsupported("click", f"{self.type_name} is not clickable")

    def scroll_by(self, delta: float) -> float:
        raise self._unsupported("scroll", f"{self.type_name} is not a scrollable container")

    def _unsupported(self, action: str, reason: str) -> ActionUnsupportedError:
        return ActionUnsupportedError(self.path or self.name, action, reason)


# ---------------------------------------------------------------------------
# Toolkit adapter
# ---------------------------------------------------------------------------

class ToolkitControl(UIControl):
    ui_system = TOOLKIT

    @property
    def kind(self) -> str | None:
        return getattr(type(self.target), "control_kind", None)

    @property
    def enabled(self) -> bool:
        return bool(getattr(self.target, "enabled_in_hierarchy", True))

    @property
    def text(self) -> str:
        el = self.target
        if self.kind in (TEXT_FIELD, DROPDOWN):
            return str(el.value or "")
        if isinstance(el, toolkit.TextElement):
            return el.text or ""
        return str(getattr(el, "label", "") or "")

    def is_displayed(self) -> bool:
        return bool(self.target.displayed and self.target.visible)

    def is_interactable(self) -> bool:
        return self.target.picking_mode is toolkit.PickingMode.POSITION and self.is_displayed()

    def extra_state(self) -> dict[str, Any]:
        el = self.target
        kind = self.kind
        if kind == TOGGLE:
            return {"is_on": bool(el.value)}
        if kind == SLIDER:
            return {"value": el.value, "min": el.low_value, "max": el.high_value}
        if kind == DROPDOWN:
            return {"choices": list(el.choices)}
        if kind == SCROLL_VIEW:
            return {"scroll_offset": el.scroll_offset}
        return {}

    def child_targets(self) -> list[Any]:
        return self.target.children()

    def invoke_click(self) -> None:
        el = self.target
        if not self.is_interactable():
            raise self._unsupported("click", "element is not interactable (hidden or ignores pointer)")
        if not self.enabled:
            raise self._unsupported("click", "element is disabled")
        center = el.world_bound.center
        for event_type in (toolkit.POINTER_DOWN, toolkit.POINTER_UP, toolkit.CLICK):
            el.send_event(toolkit.UIEvent(event_type, el, position=center))

    def set_text(self, text: str) -> None:
        if self.kind != TEXT_FIELD:
            raise self._unsupported("type into", f"{self.type_name} is not a text input")
        if not self.enabled:
            raise self._unsupported("type into", "element is disabled")
        self.target.value = text

    def scroll_by(self, delta: float) -> float:
        if self.kind != SCROLL_VIEW:
            raise self._unsupported("scroll", f"{self.type_name} is not a scrollable container")
        view = self.target
        upper = view.max_scroll_offset
        offset = view.scroll_offset + delta
        offset = max(offset, 0.0) if upper is None else _clamp(offset, 0.0, upper)
        view.scroll_offset = offset
        return offset


# ---------------------------------------------------------------------------
# Legacy adapter
# ---------------------------------------------------------------------------

# Component type -> (kind, type name), in detection priority order
_LEGACY_WIDGETS: tuple[tuple[type[legacy.Component], str, str], ...] = (
    (legacy.ButtonComponent, BUTTON, "Button"),
    (legacy.InputFieldComponent, TEXT_FIELD, "InputField"),
    (legacy.ToggleComponent, TOGGLE, "Toggle"),
    (legacy.SliderComponent, SLIDER, "Slider"),
    (legacy.DropdownComponent, DROPDOWN, "Dropdown"),
    (legacy.ScrollRectComponent, SCROLL_VIEW, "ScrollRect"),
    (legacy.TextComponent, TEXT, "Text"),
)


class LegacyControl(UIControl):
    ui_system = LEGACY

    def _widget(self) -> tuple[legacy.Component | None, str | None, str]:
        for component_type, kind, type_name in _LEGACY_WIDGETS:
            component = self.target.get_component(component_type)
            if component is not None:
                return component, kind, type_name
        return None, None, "GameObject"

    @property
    def kind(self) -> str | None:
        return self._widget()[1]

    @property
    def type_name(self) -> str:
        return self._widget()[2]

    @property
    def enabled(self) -> bool:
        component = self._widget()[0]
        if isinstance(component, legacy.Selectable):
            return component.interactable
        return True

    @property
    def text(self) -> str:
        component, kind, _ = self._widget()
        if kind in (TEXT_FIELD, TEXT):
            return component.text or ""
        if kind == DROPDOWN:
            return component.caption
        if kind in (BUTTON, TOGGLE):
            label = self.target.get_component_in_children(legacy.TextComponent)
            return label.text if label is not None else ""
        return ""

    def is_displayed(self) -> bool:
        return self.target.active_in_hierarchy

    def is_interactable(self) -> bool:
        return self.target.active_in_hierarchy and self.target.raycast_target

    def extra_state(self) -> dict[str, Any]:
        component, kind, _ = self._widget()
        if kind == TOGGLE:
            return {"is_on": component.is_on}
        if kind == SLIDER:
            return {"value": component.value, "min": component.min_value, "max": component.max_value}
        if kind == DROPDOWN:
            return {"choices": list(component.options)}
        if kind == SCROLL_VIEW:
            return {"vertical_normalized_position": component.vertical_normalized_position}
        return {}

    def child_targets(self) -> list[Any]:
        return list(self.target.children)

    def invoke_click(self) -> None:
        node = self.target
        if not node.active_in_hierarchy:
            raise self._unsupported("click", "element is inactive")

        button = node.get_component(legacy.ButtonComponent)
        if button is not None and button.interactable:
            button.click()
            return
        toggle = node.get_component(legacy.ToggleComponent)
        if toggle is not None and toggle.interactable:
            toggle.is_on = not toggle.is_on
            return
        handler = node.get_component(legacy.PointerClickHandler)
        if handler is not None:
            handler.on_pointer_click({"button": "left", "click_count": 1, "target": node.name})
            return

        if button is not None or toggle is not None:
            raise self._unsupported("click", "element is disabled")
        raise self._unsupported("click", "no clickable component")

    def set_text(self, text: str) -> None:
        field = self.target.get_component(legacy.InputFieldComponent)
        if field is None:
            raise self._unsupported("type into", f"{self.type_name} is not a text input")
        if not field.interactable or not self.target.active_in_hierarchy:
            raise self._unsupported("type into", "element is disabled")
        field.text = text
        for handler in list(field.on_value_changed):
            handler(text)

    def scroll_by(self, delta: float) -> float:
        rect = self.target.get_component(legacy.ScrollRectComponent)
        if rect is None:
            raise self._unsupported("scroll", f"{self.type_name} is not a scrollable container")
        scrollable = rect.content_height - rect.viewport_height
        if scrollable <= 0:
            return rect.vertical_normalized_position
        # Normalised position is 1 at the top, so scrolling down decreases it
        position = rect.vertical_normalized_position - delta / scrollable
        rect.vertical_normalized_position = _clamp(position, 0.0, 1.0)
        return rect.vertical_normalized_position


# ---------------------------------------------------------------------------
# Capability probe and traversal
# ---------------------------------------------------------------------------

def wrap_control(obj: Any, path: str = "") -> UIControl:
    """Pick the adapter for *obj* by what it can do, not by its class."""
    if isinstance(obj, UIControl):
        return obj
    if callable(getattr(obj, "get_component", None)):
        return LegacyControl(obj, path)
    if callable(getattr(obj, "send_event", None)):
        return ToolkitControl(obj, path)
    raise TypeError(f"Unsupported UI object: {obj!r}")


@dataclasses.dataclass
class ControlEntry:
    """One node visited by :func:`walk_controls`."""

    path: str
    control: UIControl
    named: bool


def walk_controls(roots: Iterable[Any], seen: dict[str, int] | None = None) -> list[ControlEntry]:
    """Depth-first preorder walk over every node below *roots*.

    Paths accumulate ancestor names; unnamed nodes add no segment and get
    their parent's path with ``named=False``.  Repeated paths among named
    nodes are made unique as ``name[2]``, ``name[3]`` and so on.  Pass the
    same *seen* counter to several walks to keep paths unique across them.
    """
    entries: list[ControlEntry] = []
    if seen is None:
        seen = {}
    stack: list[tuple[Any, str]] = [(root, "") for root in reversed(list(roots))]
    while stack:
        target, prefix = stack.pop()
        control = wrap_control(target)
        named = bool(control.name)
        path = unique_path(join_path(prefix, control.name), seen) if named else prefix
        control.path = path
        entries.append(ControlEntry(path, control, named))
        for child in reversed(control.child_targets()):
            stack.append((child, path))
    return entries
