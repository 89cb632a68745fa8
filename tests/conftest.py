"""Shared fixtures for SentinelQA unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from sentinelqa.engine.gateway import LLMRequest, LLMResponse
from sentinelqa.engine.messages import ToolCall
from sentinelqa.ui import scene as legacy
from sentinelqa.ui import toolkit


# ---------------------------------------------------------------------------
# Scripted gateway: replays queued responses and records every request
# ---------------------------------------------------------------------------

class ScriptedGateway:
    def __init__(self, responses: list[LLMResponse] | None = None, default: LLMResponse | None = None) -> None:
        self.responses = list(responses or [])
        self.default = default or LLMResponse(content="")
        self.requests: list[LLMRequest] = []

    def queue(self, *responses: LLMResponse) -> ScriptedGateway:
        self.responses.extend(responses)
        return self

    def queue_calls(self, *calls: ToolCall, content: str = "") -> ScriptedGateway:
        """Queue a response requesting *calls*."""
        self.responses.append(LLMResponse(content=content, tool_calls=list(calls), input_tokens=100, output_tokens=20))
        return self

    def queue_text(self, content: str) -> ScriptedGateway:
        self.responses.append(LLMResponse(content=content, input_tokens=100, output_tokens=20))
        return self

    async def complete(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return self.default


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


# ---------------------------------------------------------------------------
# Fixture: Toolkit login panel
# ---------------------------------------------------------------------------

@pytest.fixture
def toolkit_root() -> toolkit.VisualElement:
    """LoginPanel with fields, a toggle, buttons, labels and a scroll view.

    Clicking Submit shows the hidden Welcome label.
    """
    root = toolkit.VisualElement("LoginPanel")
    root.add(toolkit.Label("Title", "Sign in"))
    root.add(toolkit.TextField("Username", label="Username"))
    root.add(toolkit.TextField("Password", label="Password"))
    root.add(toolkit.Toggle("RememberMe", label="Remember me"))

    welcome = toolkit.Label("Welcome", "Welcome back", display=toolkit.Display.NONE)
    submit = toolkit.Button("Submit", "Log in")
    submit.on_clicked(welcome.show)
    root.add(submit)
    root.add(toolkit.Button("Delete", "Delete account", enabled=False))
    root.add(welcome)

    results = toolkit.ScrollView("Results", content_height=1000.0, viewport_height=200.0)
    results.add(toolkit.Label("Row1", "First result"))
    root.add(results)
    return root


# ---------------------------------------------------------------------------
# Fixture: Legacy HUD scene
# ---------------------------------------------------------------------------

def _legacy_button(name: str, label: str, interactable: bool = True) -> legacy.SceneNode:
    node = legacy.SceneNode(name)
    node.add_component(legacy.ButtonComponent(interactable))
    text = legacy.SceneNode("Text", raycast_target=False)
    text.add_component(legacy.TextComponent(label))
    node.add_child(text)
    return node


@pytest.fixture
def legacy_scene() -> legacy.Scene:
    """HUD canvas with a button, an input, a toggle and a scroll rect.

    ``SettingsPanel`` starts inactive; clicking ``SettingsButton`` activates it.
    A non-canvas root holds ``Orphan``, which is not part of the UI.
    """
    hud = legacy.SceneNode("HUD")
    hud.add_component(legacy.Canvas())

    settings_panel = legacy.SceneNode("SettingsPanel", active=False)
    settings_panel.add_child(_legacy_button("CloseButton", "Close"))

    settings_button = _legacy_button("SettingsButton", "Settings")
    settings_button.get_component(legacy.ButtonComponent).on_click.append(lambda: settings_panel.set_active(True))
    hud.add_child(settings_button)

    name_input = legacy.SceneNode("NameInput")
    name_input.add_component(legacy.InputFieldComponent("Player1"))
    hud.add_child(name_input)

    music = legacy.SceneNode("MusicToggle")
    music.add_component(legacy.ToggleComponent(is_on=True))
    hud.add_child(music)

    credits = legacy.SceneNode("Credits")
    credits.add_component(legacy.ScrollRectComponent(content_height=2000.0, viewport_height=1000.0))
    hud.add_child(credits)

    hud.add_child(_legacy_button("LockedButton", "Locked", interactable=False))
    hud.add_child(settings_panel)

    world = legacy.SceneNode("World")
    world.add_child(_legacy_button("Orphan", "Not on a canvas"))
    return legacy.Scene([hud, world])


# ---------------------------------------------------------------------------
# Fixture: temporary project directory with .sentinelqa/ structure
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create a temporary .sentinelqa/ project directory."""
    project_dir = tmp_path / ".sentinelqa"
    for sub in ("reports", "layouts"):
        (project_dir / sub).mkdir(parents=True)

    config_data = {
        "provider": "custom",
        "budget": 1.00,
        "max_iterations": 3,
        "screenshot_mode": "headless",
        "settle_seconds": 0,
    }
    (project_dir / "config.yaml").write_text(yaml.dump(config_data, default_flow_style=False), encoding="utf-8")
    return project_dir


@pytest.fixture
def sample_layout_yaml() -> str:
    """A layout where clicking Submit with Username 'admin' shows Welcome."""
    return """\
name: Login
toolkit:
  name: LoginPanel
  children:
    - {type: text_field, name: Username}
    - type: button
      name: Submit
      text: Log in
      on_click:
        - when: {field: Username, equals: admin}
          show: Welcome
          set_text: {target: Status, text: Signed in}
        - when: {field: Username, not_equals: admin}
          show: Error
    - {type: label, name: Welcome, text: Welcome back, display: none}
    - {type: label, name: Error, text: Invalid user, display: none}
    - {type: label, name: Status, text: Signed out}
"""
