"""Unit tests for sentinelqa.ui.layout -- YAML layouts and click behaviours."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from sentinelqa.engine.interactor import UIInteractor
from sentinelqa.ui import scene as legacy
from sentinelqa.ui import toolkit
from sentinelqa.ui.layout import LayoutError, UILayout, build_layout, load_layout
from sentinelqa.ui.resolver import ElementResolver

EXAMPLE_LAYOUTS = Path(__file__).resolve().parents[1] / "examples" / "layouts"


def _make_interactor(layout: UILayout) -> UIInteractor:
    return UIInteractor(ElementResolver(layout.root_provider, layout.scene_provider), settle_seconds=0)


def _write_layout(tmp_path: Path, content: str, name: str = "layout.yaml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# 1. Loading
# ---------------------------------------------------------------------------

class TestLoadLayout:
    def test_loads_toolkit_tree(self, tmp_path: Path, sample_layout_yaml: str):
        path = _write_layout(tmp_path, sample_layout_yaml)
        layout = load_layout(path)

        assert layout.name == "Login"
        assert layout.source == path
        assert layout.scene is None
        assert layout.root.name == "LoginPanel"
        assert isinstance(layout.find_toolkit("Submit"), toolkit.Button)
        assert layout.find_toolkit("Welcome").displayed is False

    def test_name_defaults_to_file_stem(self, tmp_path: Path):
        layout = load_layout(_write_layout(tmp_path, "toolkit: {name: Root}\n", "my-screen.yaml"))
        assert layout.name == "my-screen"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(LayoutError, match="not found"):
            load_layout(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(LayoutError, match="Invalid YAML"):
            load_layout(_write_layout(tmp_path, "toolkit: [unclosed\n"))

    @pytest.mark.parametrize(
        "data, message",
        [
            (["not", "a", "mapping"], "mapping"),
            ({"name": "empty"}, "defines no UI"),
            ({"toolkit": {"type": "spaceship"}}, "Unknown toolkit element type"),
            ({"legacy": [{"widget": "button"}]}, "needs a mapping with a 'name'"),
            ({"legacy": [{"name": "X", "widget": "joystick"}]}, "Unknown legacy widget"),
            ({"legacy": "HUD"}, "must be a list"),
            ({"toolkit": {"name": "B", "type": "button", "on_click": "show Welcome"}}, "on_click"),
        ],
    )
    def test_invalid_structures(self, data, message):
        with pytest.raises(LayoutError, match=message):
            build_layout(data)

    def test_shipped_examples_load(self):
        login = load_layout(EXAMPLE_LAYOUTS / "sample-login.yaml")
        menu = load_layout(EXAMPLE_LAYOUTS / "game-menu.yaml")
        assert login.root is not None
        assert [c.name for c in menu.scene.canvases()] == ["MenuCanvas"]


# ---------------------------------------------------------------------------
# 2. Toolkit click behaviours
# ---------------------------------------------------------------------------

class TestToolkitBehaviours:
    def test_condition_met_shows_and_sets_text(self, tmp_path: Path, sample_layout_yaml: str):
        layout = load_layout(_write_layout(tmp_path, sample_layout_yaml))
        interactor = _make_interactor(layout)

        async def scenario() -> None:
            await interactor.type_text("Username", "admin")
            await interactor.click("Submit")

        asyncio.run(scenario())

        assert layout.find_toolkit("Welcome").displayed is True
        assert layout.find_toolkit("Error").displayed is False
        assert layout.read_text("Status") == "Signed in"

    def test_other_branch_when_condition_fails(self, tmp_path: Path, sample_layout_yaml: str):
        layout = load_layout(_write_layout(tmp_path, sample_layout_yaml))
        interactor = _make_interactor(layout)

        async def scenario() -> None:
            await interactor.type_text("Username", "mallory")
            await interactor.click("Submit")

        asyncio.run(scenario())

        assert layout.find_toolkit("Welcome").displayed is False
        assert layout.find_toolkit("Error").displayed is True
        assert layout.read_text("Status") == "Signed out"

    def test_empty_condition_and_hide(self):
        layout = build_layout(
            {
                "toolkit": {
                    "name": "Root",
                    "children": [
                        {"type": "text_field", "name": "Query"},
                        {
                            "type": "button",
                            "name": "Go",
                            "on_click": {"when": {"field": "Query", "empty": True}, "hide": ["Hint", "Go"]},
                        },
                        {"type": "label", "name": "Hint", "text": "Type something"},
                    ],
                }
            }
        )
        assert asyncio.run(_make_interactor(layout).click("Go")) is True
        assert layout.find_toolkit("Hint").displayed is False
        assert layout.find_toolkit("Go").displayed is False

    def test_element_kwargs(self):
        layout = build_layout(
            {
                "toolkit": {
                    "name": "Root",
                    "children": [
                        {"type": "slider", "name": "Volume", "value": 0.5, "low": 0, "high": 10},
                        {"type": "dropdown", "name": "Size", "choices": ["S", "M"], "value": "M"},
                        {"type": "button", "name": "Off", "enabled": False},
                        {"type": "scroll_view", "name": "List", "content_height": 900, "viewport_height": 300},
                    ],
                }
            }
        )
        assert layout.find_toolkit("Volume").high_value == 10.0
        assert layout.read_text("Size") == "M"
        assert layout.find_toolkit("Off").enabled is False
        assert layout.find_toolkit("List").max_scroll_offset == 600


# ---------------------------------------------------------------------------
# 3. Legacy scenes
# ---------------------------------------------------------------------------

class TestLegacyLayout:
    def test_widgets_become_components(self):
        layout = load_layout(EXAMPLE_LAYOUTS / "game-menu.yaml")
        assert layout.find_legacy("PlayerName").get_component(legacy.InputFieldComponent).text == "Player1"
        assert layout.find_legacy("MusicToggle").get_component(legacy.ToggleComponent).is_on is True
        assert layout.find_legacy("Quality").get_component(legacy.DropdownComponent).caption == "Medium"
        assert layout.find_legacy("SettingsPanel").active_self is False

    def test_label_adds_non_raycast_text_child(self):
        layout = load_layout(EXAMPLE_LAYOUTS / "game-menu.yaml")
        play = layout.find_legacy("PlayButton")
        label = play.children[0]
        assert label.name == "Text"
        assert label.raycast_target is False
        assert layout.read_text("PlayButton") == "Play"

    def test_button_toggles_panels(self):
        layout = load_layout(EXAMPLE_LAYOUTS / "game-menu.yaml")
        interactor = _make_interactor(layout)

        assert asyncio.run(interactor.click("SettingsButton")) is True

        assert layout.find_legacy("MainMenu").active_self is False
        assert layout.find_legacy("SettingsPanel").active_self is True
        assert asyncio.run(interactor.type_text("PlayerName", "Nova")) is True
        assert layout.read_text("PlayerName") == "Nova"

    def test_single_mapping_is_accepted(self):
        layout = build_layout({"legacy": {"name": "HUD", "canvas": True}})
        assert [root.name for root in layout.scene.roots] == ["HUD"]

    def test_on_click_on_plain_node_adds_pointer_handler(self):
        layout = build_layout(
            {
                "legacy": [
                    {
                        "name": "HUD",
                        "canvas": True,
                        "children": [
                            {"name": "Tile", "on_click": {"set_text": {"target": "Score", "text": "1"}}},
                            {"name": "Score", "widget": "text", "text": "0"},
                        ],
                    }
                ]
            }
        )
        assert asyncio.run(_make_interactor(layout).click("HUD/Tile")) is True
        assert layout.read_text("Score") == "1"
