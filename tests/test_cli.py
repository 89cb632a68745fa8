"""Unit tests for sentinelqa.cli -- init, inspect, run and report commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from sentinelqa import __version__
from sentinelqa.cli.app import app
from sentinelqa.cli.init_cmd import _SAMPLE_CONFIG, _SAMPLE_LAYOUT, _copy_example_or_inline
from sentinelqa.cli.run import _build_config, build_loop
from sentinelqa.config import SentinelConfig, SentinelConfigError, ServiceProvider
from sentinelqa.engine.messages import ToolCall
from sentinelqa.ui.layout import build_layout, load_layout

runner = CliRunner()


@pytest.fixture
def project(tmp_project_dir: Path, sample_layout_yaml: str, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A .sentinelqa project with a login layout; cwd is its parent."""
    (tmp_project_dir / "layouts" / "login.yaml").write_text(sample_layout_yaml, encoding="utf-8")
    monkeypatch.chdir(tmp_project_dir.parent)
    return tmp_project_dir


# ---------------------------------------------------------------------------
# 1. sentinelqa --version / init
# ---------------------------------------------------------------------------

class TestInit:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_creates_project(self, tmp_path: Path):
        result = runner.invoke(app, ["init", "--dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        project_dir = tmp_path / ".sentinelqa"
        assert (project_dir / "reports").is_dir()
        assert (project_dir / "config.yaml").is_file()
        assert load_layout(project_dir / "layouts" / "sample-login.yaml").root.name == "LoginPanel"

    def test_init_refuses_existing_without_force(self, tmp_path: Path):
        (tmp_path / ".sentinelqa").mkdir()
        assert runner.invoke(app, ["init", "--dir", str(tmp_path)]).exit_code == 2
        assert runner.invoke(app, ["init", "--dir", str(tmp_path), "--force"]).exit_code == 0

    def test_sample_config_is_loadable(self, tmp_path: Path):
        assert isinstance(yaml.safe_load(_SAMPLE_CONFIG), dict)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(_SAMPLE_CONFIG, encoding="utf-8")
        assert SentinelConfig.from_file(config_file).provider is ServiceProvider.ANTHROPIC

    def test_inline_layout_fallback(self, tmp_path: Path):
        dest = _copy_example_or_inline(tmp_path, "does-not-exist.yaml", _SAMPLE_LAYOUT)
        assert dest.read_text(encoding="utf-8") == _SAMPLE_LAYOUT
        assert build_layout(yaml.safe_load(_SAMPLE_LAYOUT)).root is not None


# ---------------------------------------------------------------------------
# 2. sentinelqa inspect
# ---------------------------------------------------------------------------

class TestInspect:
    def test_json_output(self, project: Path):
        result = runner.invoke(app, ["inspect", "-l", str(project / "layouts" / "login.yaml"), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["ui_type"] == "Toolkit"
        assert "LoginPanel/Submit" in [e["path"] for e in data["elements"]]

    def test_table_output(self, project: Path):
        layout = str(project / "layouts" / "login.yaml")
        result = runner.invoke(app, ["inspect", "-l", layout], env={"COLUMNS": "200"})
        assert result.exit_code == 0, result.output
        assert "LoginPanel/Username" in result.output

    def test_missing_layout_exits_2(self, project: Path):
        assert runner.invoke(app, ["inspect", "-l", "nope.yaml"]).exit_code == 2


# ---------------------------------------------------------------------------
# 3. sentinelqa run
# ---------------------------------------------------------------------------

class TestRun:
    def test_offline_run_fails_at_max_iterations(self, project: Path):
        result = runner.invoke(
            app,
            ["run", "Log in as admin", "-l", str(project / "layouts" / "login.yaml"), "--provider", "custom", "-n", "2"],
        )

        assert result.exit_code == 1, result.output
        results = list((project / "reports").glob("sentinel-result-*.json"))
        assert len(results) == 1
        data = json.loads(results[0].read_text(encoding="utf-8"))
        assert data["success"] is False
        assert data["iterations"] == 2
        assert data["summary"] == "Max iterations reached (2) without completion"

        ledger = (project / "costs.jsonl").read_text(encoding="utf-8").splitlines()
        assert json.loads(ledger[-1])["goal"] == "Log in as admin"

    def test_missing_layout_exits_2(self, project: Path):
        result = runner.invoke(app, ["run", "x", "-l", "nope.yaml", "--provider", "custom"])
        assert result.exit_code == 2

    def test_unknown_provider_exits_2(self, project: Path):
        result = runner.invoke(app, ["run", "x", "-l", "nope.yaml", "--provider", "mystery"])
        assert result.exit_code == 2

    def test_missing_api_key_exits_2(self, project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setattr(Path, "home", lambda: project.parent / "fakehome")
        result = runner.invoke(
            app, ["run", "x", "-l", str(project / "layouts" / "login.yaml"), "--provider", "anthropic"]
        )
        assert result.exit_code == 2

    def test_build_config_overrides(self, project: Path):
        config = _build_config(project, "openai", "gpt-4o", 7, 0.5, True)
        assert config.provider is ServiceProvider.OPENAI
        assert config.model_name == "gpt-4o"
        assert config.max_iterations == 7
        assert config.budget == 0.5
        assert config.screenshot_mode == "headless"

    @pytest.mark.parametrize("max_iterations, budget", [(0, None), (None, -1.0)])
    def test_build_config_rejects_bad_limits(self, project: Path, max_iterations, budget):
        with pytest.raises(SentinelConfigError):
            _build_config(project, None, None, max_iterations, budget, None)

    def test_scripted_login_passes(self, project: Path, gateway):
        gateway.queue_calls(ToolCall("start_test", {"testName": "Admin login"}))
        gateway.queue_text("Started")
        gateway.queue_calls(ToolCall("type_text", {"elementPath": "Username", "text": "admin"}))
        gateway.queue_text("Typed")
        gateway.queue_calls(ToolCall("click", {"elementPath": "LoginPanel/Submit"}))
        gateway.queue_text("Clicked")
        gateway.queue_calls(ToolCall("wait_for_element", {"elementPath": "Welcome", "timeout": 1}))
        gateway.queue_text("Welcome visible")
        gateway.queue_calls(ToolCall("finish_test", {"success": True, "summary": "Admin signed in"}))

        config = SentinelConfig.for_project(project)
        layout = load_layout(project / "layouts" / "login.yaml")
        loop, _ = build_loop(config, layout, gateway=gateway)

        result = asyncio.run(loop.run_test("Log in as admin"))

        assert result.success is True
        assert result.iterations == 5
        assert layout.read_text("Status") == "Signed in"
        report = Path(result.report_path).read_text(encoding="utf-8")
        assert "# Test Report: Admin login" in report
        assert "wait_for_element(Welcome, 1s)" in report


# ---------------------------------------------------------------------------
# 4. sentinelqa report
# ---------------------------------------------------------------------------

def _write_report(reports_dir: Path, name: str, passed: bool) -> Path:
    path = reports_dir / f"TestReport_{name}_20250301_120000.md"
    status = "✅ PASSED" if passed else "❌ FAILED"
    path.write_text(
        f"# Test Report: {name}\n\n**Status**: {status}\n**Duration**: 3.20s\n\n## Summary\ndone\n",
        encoding="utf-8",
    )
    return path


class TestReport:
    def test_list_reports(self, project: Path):
        _write_report(project / "reports", "Login", True)
        _write_report(project / "reports", "Settings", False)
        result = runner.invoke(app, ["report", "--list"], env={"COLUMNS": "200"})
        assert result.exit_code == 0, result.output
        assert "Login" in result.output
        assert "Settings" in result.output

    def test_raw_report_by_name(self, project: Path):
        _write_report(project / "reports", "Login", True)
        result = runner.invoke(app, ["report", "login", "--raw"])
        assert result.exit_code == 0
        assert "# Test Report: Login" in result.output

    def test_unknown_report_exits_1(self, project: Path):
        _write_report(project / "reports", "Login", True)
        assert runner.invoke(app, ["report", "Checkout"]).exit_code == 1

    def test_missing_reports_dir_is_not_an_error(self, tmp_path: Path):
        result = runner.invoke(app, ["report", "--reports-dir", str(tmp_path / "none")])
        assert result.exit_code == 0
