"""sentinelqa run -- Run an autonomous UI test toward a goal.

This is the primary command.  It resolves config and credentials, builds the
UI from a layout file, wires the tool set into an agent executor, and lets
the autonomous test loop drive the UI until the agent calls finish_test or
the iteration budget runs out.

Features:
- TTY-aware output: Rich panels only in interactive terminals; plain ASCII
  line-by-line output in CI/pipes (auto-detected or via --plain).
- Result JSON (sentinel-result-<timestamp>.json) next to the Markdown reports.
- Exit codes: 0 passed, 1 failed, 2 configuration error.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from sentinelqa.config import SentinelConfig, SentinelConfigError, ServiceProvider
from sentinelqa.credentials import mask_key, resolve_api_key
from sentinelqa.engine.agent_executor import AgentExecutor, AgentResponse
from sentinelqa.engine.cost_tracker import CostTracker
from sentinelqa.engine.gateway import LLMGateway
from sentinelqa.engine.sentinel_loop import SentinelAgentLoop, SentinelTestResult
from sentinelqa.engine.sentinel_toolset import TOOL_DECLARATIONS, TOOL_SET_ID, SentinelToolSet
from sentinelqa.engine.tool_registry import ToolRegistry
from sentinelqa.ui.layout import LayoutError, UILayout, load_layout

console = Console(stderr=True)

logger = logging.getLogger("sentinelqa.cli.run")

AGENT_ID = "sentinel"

# -- Plain-mode output helpers ----------------------------------------------


def _plain_print(msg: str) -> None:
    """Print a plain text line to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _print_error(c: Console, plain: bool, message: str, title: str = "Error") -> None:
    """Print an error message in either plain or Rich mode."""
    if plain:
        _plain_print(f"[{title}] {message}")
    else:
        c.print(Panel(f"[red]{message}[/red]", title=f"[red]{title}[/red]", border_style="red"))


# -- Project / config -------------------------------------------------------


def _resolve_project_dir() -> Path:
    """Find the .sentinelqa/ project directory, searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / ".sentinelqa"
        if candidate.is_dir():
            return candidate
    return current / ".sentinelqa"


def _build_config(
    project_dir: Path,
    provider: str | None,
    model: str | None,
    max_iterations: int | None,
    budget: float | None,
    headless: bool | None,
) -> SentinelConfig:
    """Load config.yaml (if any) and apply CLI overrides."""
    config = SentinelConfig.for_project(project_dir)

    # CLI options override config file values
    if provider is not None:
        config.provider = ServiceProvider.parse(provider)
    if model is not None:
        config.model = model
    if max_iterations is not None:
        if max_iterations < 1:
            raise SentinelConfigError(f"--max-iterations must be >= 1 (got {max_iterations})")
        config.max_iterations = max_iterations
    if budget is not None:
        if budget < 0:
            raise SentinelConfigError(f"--budget must be >= 0 (got {budget})")
        config.budget = budget
    if headless is not None:
        config.screenshot_mode = "headless" if headless else "live"
    return config


def build_loop(
    config: SentinelConfig,
    layout: UILayout,
    gateway: LLMGateway | None = None,
    on_iteration: Callable[[int, AgentResponse], None] | None = None,
) -> tuple[SentinelAgentLoop, CostTracker]:
    """Wire tool set, registry, executor and loop for one run."""
    tool_set = SentinelToolSet.create(
        root_provider=layout.root_provider,
        scene_provider=layout.scene_provider,
        report_dir=config.reports_dir,
        settle_seconds=config.settle_seconds,
        poll_interval=config.poll_interval,
        screenshot_mode=config.screenshot_mode,
    )
    cost_tracker = CostTracker(per_run_usd=config.budget)
    executor = AgentExecutor(
        gateway=gateway,
        registry=ToolRegistry(reject_duplicates=config.reject_duplicate_tools),
        cost_tracker=cost_tracker,
    )
    executor.register_tool_set(tool_set, TOOL_SET_ID)
    executor.register_agent(config.to_agent_config(AGENT_ID, tools=TOOL_DECLARATIONS))
    loop = SentinelAgentLoop(
        executor,
        AGENT_ID,
        max_iterations=config.max_iterations,
        on_iteration=on_iteration,
    )
    return loop, cost_tracker


# -- Output -----------------------------------------------------------------


def _iteration_printer(plain: bool) -> Callable[[int, AgentResponse], None]:
    def _print_iteration(iteration: int, response: AgentResponse) -> None:
        calls = ", ".join(
            f"{call.name}{'' if result.success else ' (failed)'}"
            for call, result in zip(response.tool_calls, response.tool_responses)
        )
        if plain:
            _plain_print(f"Iteration {iteration}: {calls or 'no tool calls'}")
        else:
            icon = "[green]✓[/green]" if response.success else "[red]✗[/red]"
            console.print(f"  {icon} Iteration {iteration}: [dim]{calls or 'no tool calls'}[/dim]")

    return _print_iteration


def _print_header(goal: str, layout: UILayout, config: SentinelConfig, api_key: str, plain: bool) -> None:
    if plain:
        _plain_print(
            f"SentinelQA run starting: goal={goal!r} layout={layout.name} provider={config.provider.value} "
            f"model={config.model_name} max-iterations={config.max_iterations} budget=${config.budget:.2f}"
        )
        return
    info_lines = [
        f"[bold]Goal:[/bold]       {goal}",
        f"[bold]Layout:[/bold]     {layout.name}",
        f"[bold]Provider:[/bold]   {config.provider.value}",
        f"[bold]Model:[/bold]      {config.model_name}",
        f"[bold]Iterations:[/bold] {config.max_iterations}",
        f"[bold]Budget:[/bold]     ${config.budget:.2f}",
        f"[bold]API Key:[/bold]    {mask_key(api_key) if api_key else '(none)'}",
    ]
    console.print()
    console.print(Panel("\n".join(info_lines), title="[bold cyan]SentinelQA Run[/bold cyan]", border_style="cyan"))
    console.print()


def _print_result(result: SentinelTestResult, cost: float, result_path: Path, plain: bool) -> None:
    verdict = "PASSED" if result.success else "FAILED"
    if plain:
        _plain_print(
            f"RESULT: {verdict} -- {result.iterations} iteration(s), "
            f"{result.duration_seconds:.1f}s, ${cost:.4f}"
        )
        _plain_print(f"Summary: {result.summary}")
        if result.report_path:
            _plain_print(f"Report: {result.report_path}")
        _plain_print(f"Result: {result_path}")
        return

    border = "green" if result.success else "red"
    lines = [
        f"[bold {border}]TEST {verdict}[/bold {border}]",
        "",
        f"  Summary:    {result.summary}",
        f"  Iterations: {result.iterations}",
        f"  Duration:   {result.duration_seconds:.1f}s",
        f"  Cost:       ${cost:.4f}",
        f"  Report:     {result.report_path or '(none)'}",
        f"  Result:     {result_path}",
    ]
    console.print()
    console.print(Panel("\n".join(lines), border_style=border))
    console.print()


def _write_result(reports_dir: Path, result: SentinelTestResult, cost: float, layout: UILayout) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    path = reports_dir / f"sentinel-result-{result.end_time:%Y%m%d_%H%M%S}.json"
    data = result.to_dict()
    data["cost_usd"] = round(cost, 6)
    data["layout"] = str(layout.source) if layout.source else layout.name
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# -- Main command -----------------------------------------------------------


def run(
    goal: str = typer.Argument(..., help="What the test should achieve, in plain language."),
    layout_path: Path = typer.Option(
        ...,
        "--layout",
        "-l",
        help="UI layout YAML describing the screen under test. [required]",
    ),
    provider: str | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="Model provider: anthropic, openai, qwen, or custom (offline).",
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id (default: the provider's default)."),
    max_iterations: int | None = typer.Option(
        None,
        "--max-iterations",
        "-n",
        help="Maximum agent turns before the test is failed.  [default: 20]",
    ),
    budget: float | None = typer.Option(
        None,
        "--budget",
        "-b",
        help="Maximum spend for this run in USD; 0 disables the limit.  [default: 2.00]",
    ),
    headless: bool | None = typer.Option(
        None,
        "--headless/--live",
        help="Write placeholder screenshots (headless) or grab the real screen (live).",
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Use plain ASCII output. For CI logs, screen readers and minimal terminals.",
    ),
) -> None:
    """Run an autonomous UI test.

    The agent inspects the UI, performs one action per turn, verifies the
    result, and finishes with a Markdown report.

    \b
    Examples:
      sentinelqa run "Log in as admin" -l .sentinelqa/layouts/sample-login.yaml
      sentinelqa run "Open settings and mute music" -l menu.yaml --max-iterations 10
      sentinelqa run "Smoke test" -l menu.yaml --provider custom --plain
    """
    if not sys.stdout.isatty() and not plain:
        plain = True

    project_dir = _resolve_project_dir()

    try:
        config = _build_config(project_dir, provider, model, max_iterations, budget, headless)
    except SentinelConfigError as exc:
        _print_error(console, plain, str(exc), "Config Error")
        raise typer.Exit(code=2)

    try:
        config.api_key = resolve_api_key(config.provider, project_dir)
    except SentinelConfigError as exc:
        _print_error(console, plain, str(exc), "API Key Error")
        raise typer.Exit(code=2)

    try:
        layout = load_layout(layout_path)
    except LayoutError as exc:
        _print_error(console, plain, str(exc), "Layout Error")
        raise typer.Exit(code=2)

    _print_header(goal, layout, config, config.api_key, plain)

    loop, cost_tracker = build_loop(config, layout, on_iteration=_iteration_printer(plain))

    try:
        result = asyncio.run(loop.run_test(goal))
    except KeyboardInterrupt:
        if plain:
            _plain_print("Run interrupted by user.")
        else:
            console.print("\n[yellow]Run interrupted by user.[/yellow]")
        raise typer.Exit(code=1)

    cost = cost_tracker.total_cost
    result_path = _write_result(config.reports_dir, result, cost, layout)
    CostTracker.record_run_cost(
        config.project_dir,
        run_id=result_path.stem,
        goal=goal,
        cost_usd=cost,
        passed=result.success,
    )
    _print_result(result, cost, result_path, plain)

    if not result.success:
        raise typer.Exit(code=1)
