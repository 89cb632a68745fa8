"""YAML UI layouts -- declarative Toolkit trees and Legacy scenes.

Layouts let the CLI (and tests) drive a realistic UI without a host
application.  A layout has an optional ``toolkit`` root element and an
optional ``legacy`` list of scene roots::

    name: Login screen
    toolkit:
      name: root
      children:
        - {type: text_field, name: Username}
        - type: button
          name: Submit
          text: Log in
          on_click:
            - when: {field: Username, equals: admin}
              show: Welcome
              set_text: {target: Status, text: Signed in}
        - {type: label, name: Welcome, text: Hello admin, display: none}
    legacy:
      - name: HUD
        canvas: true
        children:
          - {name: Play, widget: button, label: Play}

Click behaviours (``on_click``) are a list of actions; each may carry a
``when`` condition on another element's text and any of ``show``, ``hide``
and ``set_text``.  Targets are looked up by name at click time, first in the
Toolkit tree and then in the scene.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from sentinelqa.ui import scene as legacy
from sentinelqa.ui import toolkit


class LayoutError(ValueError):
    """Raised when a layout file cannot be parsed into a UI."""

    pass


_TOOLKIT_TYPES: dict[str, type[toolkit.VisualElement]] = {
    "container": toolkit.VisualElement,
    "label": toolkit.Label,
    "button": toolkit.Button,
    "text_field": toolkit.TextField,
    "toggle": toolkit.Toggle,
    "scroll_view": toolkit.ScrollView,
    "dropdown": toolkit.DropdownField,
    "slider": toolkit.Slider,
}

_LEGACY_WIDGETS = ("button", "input_field", "toggle", "slider", "dropdown", "scroll_rect", "text")


@dataclasses.dataclass
class UILayout:
    name: str
    root: toolkit.VisualElement | None = None
    scene: legacy.Scene | None = None
    source: Path | None = None

    def root_provider(self) -> toolkit.VisualElement | None:
        return self.root

    def scene_provider(self) -> legacy.Scene | None:
        return self.scene

    def find_toolkit(self, name: str) -> toolkit.VisualElement | None:
        return self.root.query(name) if self.root is not None else None

    def find_legacy(self, name: str) -> legacy.SceneNode | None:
        if self.scene is None:
            return None
        for root in self.scene.roots:
            for node in root.iter_tree():
                if node.name == name:
                    return node
        return None

    def read_text(self, name: str) -> str | None:
        element = self.find_toolkit(name)
        if element is not None:
            if isinstance(element, (toolkit.TextField, toolkit.DropdownField)):
                return str(element.value)
            if isinstance(element, toolkit.TextElement):
                return element.text
            return None
        node = self.find_legacy(name)
        if node is not None:
            field = node.get_component(legacy.InputFieldComponent)
            if field is not None:
                return field.text
            text = node.get_component_in_children(legacy.TextComponent)
            if text is not None:
                return text.text
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_layout(path: Path) -> UILayout:
    """Load a layout YAML file."""
    if not path.is_file():
        raise LayoutError(f"Layout file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise LayoutError(f"Invalid YAML in {path}: {exc}") from exc
    layout = build_layout(data)
    layout.source = path
    if not layout.name:
        layout.name = path.stem
    return layout


def build_layout(data: dict[str, Any]) -> UILayout:
    """Build a layout from an already-parsed mapping."""
    if not isinstance(data, dict):
        raise LayoutError("Layout must be a mapping with 'toolkit' and/or 'legacy' keys")
    if "toolkit" not in data and "legacy" not in data:
        raise LayoutError("Layout defines no UI: add a 'toolkit' root and/or 'legacy' nodes")

    layout = UILayout(name=str(data.get("name", "")))
    if data.get("toolkit") is not None:
        layout.root = _build_toolkit(data["toolkit"], layout)
    if data.get("legacy") is not None:
        nodes = data["legacy"]
        if isinstance(nodes, dict):
            nodes = [nodes]
        if not isinstance(nodes, list):
            raise LayoutError("'legacy' must be a list of scene nodes")
        layout.scene = legacy.Scene([_build_legacy(node, layout) for node in nodes])
    return layout


# ---------------------------------------------------------------------------
# Toolkit
# ---------------------------------------------------------------------------

def _build_toolkit(spec: dict[str, Any], layout: UILayout) -> toolkit.VisualElement:
    if not isinstance(spec, dict):
        raise LayoutError(f"Toolkit element must be a mapping, got: {spec!r}")
    type_name = str(spec.get("type", "container"))
    element_type = _TOOLKIT_TYPES.get(type_name)
    if element_type is None:
        raise LayoutError(f"Unknown toolkit element type: {type_name!r}")

    kwargs: dict[str, Any] = {
        "enabled": bool(spec.get("enabled", True)),
        "display": toolkit.Display(spec.get("display", "flex")),
        "visibility": toolkit.Visibility(spec.get("visibility", "visible")),
    }
    if "picking_mode" in spec:
        kwargs["picking_mode"] = toolkit.PickingMode(spec["picking_mode"])
    if "bound" in spec:
        kwargs["world_bound"] = toolkit.Rect(*[float(v) for v in spec["bound"]])

    name = str(spec.get("name", ""))
    if element_type in (toolkit.Label, toolkit.Button):
        element = element_type(name, str(spec.get("text", "")), **kwargs)
    elif element_type is toolkit.TextField:
        element = element_type(name, str(spec.get("value", "")), label=str(spec.get("label", "")), **kwargs)
    elif element_type is toolkit.Toggle:
        element = element_type(name, bool(spec.get("value", False)), label=str(spec.get("label", "")), **kwargs)
    elif element_type is toolkit.DropdownField:
        element = element_type(name, spec.get("choices"), spec.get("value"), **kwargs)
    elif element_type is toolkit.Slider:
        element = element_type(
            name,
            float(spec.get("value", 0.0)),
            low_value=float(spec.get("low", 0.0)),
            high_value=float(spec.get("high", 1.0)),
            **kwargs,
        )
    elif element_type is toolkit.ScrollView:
        element = element_type(
            name,
            content_height=spec.get("content_height"),
            viewport_height=spec.get("viewport_height"),
            **kwargs,
        )
    else:
        element = element_type(name, **kwargs)

    if spec.get("on_click"):
        handler = _click_handler(spec["on_click"], layout)
        if isinstance(element, toolkit.Button):
            element.on_clicked(handler)
        else:
            element.register_callback(toolkit.CLICK, lambda _event: handler())

    for child in spec.get("children") or []:
        element.add(_build_toolkit(child, layout))
    return element


# ---------------------------------------------------------------------------
# Legacy
# ---------------------------------------------------------------------------

def _build_legacy(spec: dict[str, Any], layout: UILayout) -> legacy.SceneNode:
    if not isinstance(spec, dict) or not spec.get("name"):
        raise LayoutError(f"Legacy node needs a mapping with a 'name': {spec!r}")

    node = legacy.SceneNode(
        str(spec["name"]),
        active=bool(spec.get("active", True)),
        raycast_target=bool(spec.get("raycast_target", True)),
    )
    if spec.get("canvas"):
        node.add_component(legacy.Canvas())

    widget = spec.get("widget")
    interactable = bool(spec.get("interactable", True))
    if widget is not None and widget not in _LEGACY_WIDGETS:
        raise LayoutError(f"Unknown legacy widget: {widget!r}")
    if widget == "button":
        button = node.add_component(legacy.ButtonComponent(interactable))
        if spec.get("on_click"):
            button.on_click.append(_click_handler(spec["on_click"], layout))
    elif widget == "input_field":
        node.add_component(legacy.InputFieldComponent(str(spec.get("text", "")), interactable))
    elif widget == "toggle":
        node.add_component(legacy.ToggleComponent(bool(spec.get("is_on", False)), interactable))
    elif widget == "slider":
        node.add_component(
            legacy.SliderComponent(
                float(spec.get("value", 0.0)),
                float(spec.get("min", 0.0)),
                float(spec.get("max", 1.0)),
                interactable,
            )
        )
    elif widget == "dropdown":
        node.add_component(legacy.DropdownComponent(spec.get("options"), int(spec.get("value", 0)), interactable))
    elif widget == "scroll_rect":
        node.add_component(
            legacy.ScrollRectComponent(
                float(spec.get("content_height", 2000.0)),
                float(spec.get("viewport_height", 1000.0)),
            )
        )
    elif widget == "text":
        node.add_component(legacy.TextComponent(str(spec.get("text", ""))))

    if widget != "button" and spec.get("on_click"):
        handler = _click_handler(spec["on_click"], layout)
        node.add_component(legacy.PointerClickHandler(lambda _data: handler()))

    if "label" in spec:
        label = legacy.SceneNode("Text", raycast_target=False)
        label.add_component(legacy.TextComponent(str(spec["label"])))
        node.add_child(label)

    for child in spec.get("children") or []:
        node.add_child(_build_legacy(child, layout))
    return node


# ---------------------------------------------------------------------------
# Click behaviours
# ---------------------------------------------------------------------------

def _click_handler(actions: Any, layout: UILayout) -> Callable[[], None]:
    if isinstance(actions, dict):
        actions = [actions]
    if not isinstance(actions, list):
        raise LayoutError(f"on_click must be a list of actions: {actions!r}")
    for action in actions:
        if not isinstance(action, dict):
            raise LayoutError(f"on_click action must be a mapping: {action!r}")

    def handler() -> None:
        for action in actions:
            if _condition_holds(action.get("when"), layout):
                _apply(action, layout)

    return handler


def _condition_holds(condition: dict[str, Any] | None, layout: UILayout) -> bool:
    if not condition:
        return True
    value = layout.read_text(str(condition.get("field", "")))
    if "equals" in condition:
        return value == str(condition["equals"])
    if "not_equals" in condition:
        return value != str(condition["not_equals"])
    if condition.get("empty") is not None:
        return (not value) == bool(condition["empty"])
    return True


def _apply(action: dict[str, Any], layout: UILayout) -> None:
    for name in _names(action.get("show")):
        _set_shown(name, True, layout)
    for name in _names(action.get("hide")):
        _set_shown(name, False, layout)
    set_text = action.get("set_text")
    if set_text:
        _write_text(str(set_text.get("target", "")), str(set_text.get("text", "")), layout)


def _names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def _set_shown(name: str, shown: bool, layout: UILayout) -> None:
    element = layout.find_toolkit(name)
    if element is not None:
        if shown:
            element.show()
        else:
            element.hide()
        return
    node = layout.find_legacy(name)
    if node is not None:
        node.set_active(shown)


def _write_text(name: str, text: str, layout: UILayout) -> None:
    element = layout.find_toolkit(name)
    if isinstance(element, toolkit.TextField):
        element.value = text
    elif isinstance(element, toolkit.TextElement):
        element.text = text
    elif element is None:
        node = layout.find_legacy(name)
        if node is None:
            return
        field = node.get_component(legacy.InputFieldComponent)
        if field is not None:
            field.text = text
            return
        label = node.get_component_in_children(legacy.TextComponent)
        if label is not None:
            label.text = text
