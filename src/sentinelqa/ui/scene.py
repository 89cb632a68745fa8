"""Legacy scene graph -- widgets as components on generic scene nodes.

A ``SceneNode`` has a name, an active flag, children and a list of
components.  Interactive widgets are discovered by component presence
(``node.get_component(ButtonComponent)``), never by the node's own type.
Only nodes under a ``Canvas`` take part in UI discovery.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

C = TypeVar("C", bound="Component")


class Component:
    """Behaviour attached to a scene node."""

    def __init__(self) -> None:
        self.node: SceneNode | None = None


class Canvas(Component):
    """Marks the root of a legacy UI hierarchy."""


class TextComponent(Component):
    def __init__(self, text: str = "") -> None:
        super().__init__()
        self.text = text


class Selectable(Component):
    def __init__(self, interactable: bool = True) -> None:
        super().__init__()
        self.interactable = interactable


class ButtonComponent(Selectable):
    def __init__(self, interactable: bool = True) -> None:
        super().__init__(interactable)
        self.on_click: list[Callable[[], None]] = []

    def click(self) -> None:
        for handler in list(self.on_click):
            handler()


class InputFieldComponent(Selectable):
    def __init__(self, text: str = "", interactable: bool = True) -> None:
        super().__init__(interactable)
        self.text = text
        self.on_value_changed: list[Callable[[str], None]] = []


class ToggleComponent(Selectable):
    def __init__(self, is_on: bool = False, interactable: bool = True) -> None:
        super().__init__(interactable)
        self._is_on = is_on
        self.on_value_changed: list[Callable[[bool], None]] = []

    @property
    def is_on(self) -> bool:
        return self._is_on

    @is_on.setter
    def is_on(self, value: bool) -> None:
        if value == self._is_on:
            return
        self._is_on = value
        for handler in list(self.on_value_changed):
            handler(value)


class SliderComponent(Selectable):
    def __init__(
        self,
        value: float = 0.0,
        min_value: float = 0.0,
        max_value: float = 1.0,
        interactable: bool = True,
    ) -> None:
        super().__init__(interactable)
        self.value = value
        self.min_value = min_value
        self.max_value = max_value


class DropdownComponent(Selectable):
    def __init__(self, options: list[str] | None = None, value: int = 0, interactable: bool = True) -> None:
        super().__init__(interactable)
        self.options = list(options or [])
        self.value = value

    @property
    def caption(self) -> str:
        if 0 <= self.value < len(self.options):
            return self.options[self.value]
        return ""


class ScrollRectComponent(Component):
    """Scrollable area.  ``vertical_normalized_position`` is 1 at the top, 0 at the bottom."""

    def __init__(self, content_height: float = 2000.0, viewport_height: float = 1000.0) -> None:
        super().__init__()
        self.vertical_normalized_position = 1.0
        self.content_height = content_height
        self.viewport_height = viewport_height


class PointerClickHandler(Component):
    """Generic click receiver for nodes without a button."""

    def __init__(self, callback: Callable[[dict[str, Any]], None] | None = None) -> None:
        super().__init__()
        self._callback = callback

    def on_pointer_click(self, event_data: dict[str, Any]) -> None:
        if self._callback is not None:
            self._callback(event_data)


class SceneNode:
    def __init__(
        self,
        name: str,
        *,
        active: bool = True,
        raycast_target: bool = True,
        components: list[Component] | None = None,
    ) -> None:
        self.name = name
        self.active_self = active
        self.raycast_target = raycast_target
        self.parent: SceneNode | None = None
        self.children: list[SceneNode] = []
        self.components: list[Component] = []
        for component in components or []:
            self.add_component(component)

    def __repr__(self) -> str:
        return f"SceneNode(name={self.name!r})"

    def add_child(self, child: SceneNode) -> SceneNode:
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def add_component(self, component: C) -> C:
        component.node = self
        self.components.append(component)
        return component

    def get_component(self, component_type: type[C]) -> C | None:
        for component in self.components:
            if isinstance(component, component_type):
                return component
        return None

    def get_component_in_children(self, component_type: type[C]) -> C | None:
        """Breadth-first search of this node and its descendants."""
        queue: deque[SceneNode] = deque([self])
        while queue:
            node = queue.popleft()
            found = node.get_component(component_type)
            if found is not None:
                return found
            queue.extend(node.children)
        return None

    @property
    def active_in_hierarchy(self) -> bool:
        node: SceneNode | None = self
        while node is not None:
            if not node.active_self:
                return False
            node = node.parent
        return True

    def set_active(self, active: bool) -> None:
        self.active_self = active

    @property
    def scene_path(self) -> str:
        names = []
        node: SceneNode | None = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return "/".join(reversed(names))

    def iter_tree(self) -> Iterator[SceneNode]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class Scene:
    """A set of root nodes, the legacy paradigm's top-level container."""

    def __init__(self, roots: list[SceneNode] | None = None) -> None:
        self.roots: list[SceneNode] = list(roots or [])

    def add_root(self, node: SceneNode) -> SceneNode:
        self.roots.append(node)
        return node

    def canvases(self) -> list[SceneNode]:
        """Active top-level canvas nodes, in scene order.

        A canvas nested inside another canvas belongs to its parent's
        hierarchy and is not listed separately.
        """
        found = []
        for root in self.roots:
            stack = [(root, False)]
            while stack:
                node, under_canvas = stack.pop()
                is_canvas = node.get_component(Canvas) is not None
                if is_canvas and not under_canvas and node.active_in_hierarchy:
                    found.append(node)
                stack.extend((child, under_canvas or is_canvas) for child in reversed(node.children))
        return found

    def find(self, path: str) -> SceneNode | None:
        """Find an active node by scene path (``Root/Child``) or by bare name."""
        if not path:
            return None
        if "/" not in path:
            for root in self.roots:
                for node in root.iter_tree():
                    if node.name == path and node.active_in_hierarchy:
                        return node
            return None

        first, *rest = path.strip("/").split("/")
        for root in self.roots:
            if root.name != first:
                continue
            node: SceneNode | None = root
            for segment in rest:
                node = next((c for c in node.children if c.name == segment), None)
                if node is None:
                    break
            if node is not None and node.active_in_hierarchy:
                return node
        return None
