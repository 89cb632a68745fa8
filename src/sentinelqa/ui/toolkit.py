"""Toolkit -- retained-mode element tree.

A ``VisualElement`` tree in which every node carries its own style state
(picking mode, display, visibility), a world-space bounding box and a set of
event callbacks.  Controls are subclasses that declare a ``control_kind``.
The tree is plain in-process state: an application (or a YAML layout, see
:mod:`sentinelqa.ui.layout`) builds it and SentinelQA drives it through
:mod:`sentinelqa.ui.adapters`.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Callable, Iterator
from typing import Any, ClassVar


class PickingMode(str, enum.Enum):
    POSITION = "position"
    IGNORE = "ignore"


class Display(str, enum.Enum):
    FLEX = "flex"
    NONE = "none"


class Visibility(str, enum.Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


# Event types dispatched through send_event()
POINTER_DOWN = "pointer_down"
POINTER_UP = "pointer_up"
CLICK = "click"
CHANGE = "change"


@dataclasses.dataclass
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 30.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclasses.dataclass
class UIEvent:
    """An event delivered to an element's callbacks."""

    type: str
    target: VisualElement
    position: tuple[float, float] | None = None
    previous_value: Any = None
    new_value: Any = None


EventCallback = Callable[[UIEvent], None]


class VisualElement:
    """Base node of the Toolkit tree.  Plain elements are layout containers."""

    control_kind: ClassVar[str | None] = None

    def __init__(
        self,
        name: str = "",
        *,
        picking_mode: PickingMode = PickingMode.POSITION,
        display: Display = Display.FLEX,
        visibility: Visibility = Visibility.VISIBLE,
        enabled: bool = True,
        world_bound: Rect | None = None,
    ) -> None:
        self.name = name
        self.picking_mode = picking_mode
        self.display = display
        self.visibility = visibility
        self.enabled_self = enabled
        self.world_bound = world_bound or Rect()
        self.parent: VisualElement | None = None
        self._children: list[VisualElement] = []
        self._callbacks: dict[str, list[EventCallback]] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # -- Tree ----------------------------------------------------------------

    def add(self, child: VisualElement) -> VisualElement:
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self._children.append(child)
        return child

    def remove(self, child: VisualElement) -> None:
        self._children.remove(child)
        child.parent = None

    def children(self) -> list[VisualElement]:
        return list(self._children)

    def ancestors(self) -> Iterator[VisualElement]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def query(self, name: str) -> VisualElement | None:
        """Return the first element named *name* in depth-first order, self included."""
        stack: list[VisualElement] = [self]
        while stack:
            node = stack.pop()
            if node.name == name:
                return node
            stack.extend(reversed(node._children))
        return None

    # -- Resolved style ------------------------------------------------------

    @property
    def displayed(self) -> bool:
        """``display: none`` on any ancestor removes the element from layout."""
        if self.display is not Display.FLEX:
            return False
        return all(a.display is Display.FLEX for a in self.ancestors())

    @property
    def visible(self) -> bool:
        if self.visibility is not Visibility.VISIBLE:
            return False
        return all(a.visibility is Visibility.VISIBLE for a in self.ancestors())

    @property
    def enabled_in_hierarchy(self) -> bool:
        return self.enabled_self and all(a.enabled_self for a in self.ancestors())

    def show(self) -> None:
        self.display = Display.FLEX
        self.visibility = Visibility.VISIBLE

    def hide(self) -> None:
        self.display = Display.NONE

    # -- Events --------------------------------------------------------------

    def register_callback(self, event_type: str, callback: EventCallback) -> None:
        self._callbacks.setdefault(event_type, []).append(callback)

    def send_event(self, event: UIEvent) -> None:
        """Deliver *event* to this element's callbacks, then run its default action."""
        for callback in list(self._callbacks.get(event.type, ())):
            callback(event)
        self.execute_default_action(event)

    def execute_default_action(self, event: UIEvent) -> None:
        pass


class TextElement(VisualElement):
    """Element that displays a string."""

    def __init__(self, name: str = "", text: str = "", **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.text = text


class Label(TextElement):
    control_kind = "text"

    def __init__(self, name: str = "", text: str = "", **kwargs: Any) -> None:
        kwargs.setdefault("picking_mode", PickingMode.IGNORE)
        super().__init__(name, text, **kwargs)


class Button(TextElement):
    control_kind = "button"

    def __init__(self, name: str = "", text: str = "", **kwargs: Any) -> None:
        super().__init__(name, text, **kwargs)
        self._clicked: list[Callable[[], None]] = []

    def on_clicked(self, handler: Callable[[], None]) -> None:
        self._clicked.append(handler)

    def execute_default_action(self, event: UIEvent) -> None:
        if event.type == CLICK and self.enabled_in_hierarchy:
            for handler in list(self._clicked):
                handler()


class _ValueElement(VisualElement):
    """Element holding a value that raises CHANGE events when it changes."""

    def __init__(self, name: str = "", value: Any = None, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        previous = self._value
        if previous == new_value:
            return
        self._value = new_value
        self.send_event(UIEvent(CHANGE, self, previous_value=previous, new_value=new_value))

    def set_value_without_notify(self, new_value: Any) -> None:
        self._value = new_value


class TextField(_ValueElement):
    control_kind = "text_field"

    def __init__(self, name: str = "", value: str = "", *, label: str = "", **kwargs: Any) -> None:
        super().__init__(name, value, **kwargs)
        self.label = label


class Toggle(_ValueElement):
    control_kind = "toggle"

    def __init__(self, name: str = "", value: bool = False, *, label: str = "", **kwargs: Any) -> None:
        super().__init__(name, bool(value), **kwargs)
        self.label = label

    def execute_default_action(self, event: UIEvent) -> None:
        if event.type == CLICK and self.enabled_in_hierarchy:
            self.value = not self.value


class DropdownField(_ValueElement):
    control_kind = "dropdown"

    def __init__(
        self,
        name: str = "",
        choices: list[str] | None = None,
        value: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.choices = list(choices or [])
        if value is None and self.choices:
            value = self.choices[0]
        super().__init__(name, value or "", **kwargs)


class Slider(_ValueElement):
    control_kind = "slider"

    def __init__(
        self,
        name: str = "",
        value: float = 0.0,
        *,
        low_value: float = 0.0,
        high_value: float = 1.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, float(value), **kwargs)
        self.low_value = low_value
        self.high_value = high_value


class ScrollView(VisualElement):
    """Scrollable container.  ``scroll_offset`` is the vertical offset in pixels."""

    control_kind = "scroll_view"

    def __init__(
        self,
        name: str = "",
        *,
        content_height: float | None = None,
        viewport_height: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.scroll_offset = 0.0
        self.content_height = content_height
        self.viewport_height = viewport_height if viewport_height is not None else self.world_bound.height

    @property
    def max_scroll_offset(self) -> float | None:
        """Largest reachable offset, or None when the content size is unknown."""
        if self.content_height is None:
            return None
        return max(self.content_height - self.viewport_height, 0.0)
