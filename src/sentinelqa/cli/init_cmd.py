"""sentinelqa init -- Initialize a .sentinelqa/ project directory.

Creates the directory structure, config template, and a sample UI layout
so ``sentinelqa inspect`` and ``sentinelqa run`` work out of the box.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from sentinelqa.credentials import ENV_KEYS
from sentinelqa.config import ServiceProvider

console = Console()

# -- Sample file contents (inline so `sentinelqa init` works without examples/) --

_SAMPLE_CONFIG = """\
# SentinelQA project configuration

# Model provider: anthropic, openai, qwen, or custom (offline, simulated)
provider: anthropic
# model: claude-sonnet-4-20250514

# Agent loop limits
max_iterations: 20
max_tool_calls: 5
max_response_tokens: 1024
temperature: 0.2

# Maximum spend per run (USD); 0 disables the limit
budget: 2.00

# Screenshots: auto, live, or headless (placeholder images)
screenshot_mode: auto

# Uncomment to set your API key here (the provider's env var takes priority)
# api_key: sk-ant-...
"""

_SAMPLE_LAYOUT = """\
name: Sample login
toolkit:
  name: LoginPanel
  children:
    - {type: label, name: Title, text: Sign in}
    - {type: text_field, name: Username, label: Username}
    - {type: text_field, name: Password, label: Password}
    - type: button
      name: Submit
      text: Log in
      on_click:
        - when: {field: Username, equals: admin}
          hide: ErrorMessage
          show: Welcome
        - when: {field: Username, not_equals: admin}
          show: ErrorMessage
    - {type: label, name: ErrorMessage, text: Invalid credentials, display: none}
    - {type: label, name: Welcome, text: Welcome back, display: none}
"""

_SUBDIRS = ["reports", "layouts"]


def _copy_example_or_inline(dest_dir: Path, filename: str, fallback: str) -> Path:
    """Try to copy from the repo's examples/ directory; fall back to inline content."""
    pkg_root = Path(__file__).resolve().parent.parent.parent.parent  # src/sentinelqa/cli -> repo root
    example = pkg_root / "examples" / "layouts" / filename

    dest = dest_dir / filename
    if example.is_file():
        shutil.copy2(example, dest)
    else:
        dest.write_text(fallback, encoding="utf-8")
    return dest


def init(
    dir: Path = typer.Option(
        Path("."),
        "--dir",
        "-d",
        help="Parent directory for .sentinelqa/ project. Defaults to current directory.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing .sentinelqa/ directory.",
    ),
) -> None:
    """Initialize a new SentinelQA project directory.

    Creates .sentinelqa/ with reports/ and layouts/ subdirectories, a
    config.yaml template, and a sample login layout.
    """
    project_dir = dir.resolve() / ".sentinelqa"

    if project_dir.exists() and not force:
        console.print(
            Panel(
                f"[yellow]Directory already exists:[/yellow] {project_dir}\n\nUse [bold]--force[/bold] to overwrite.",
                title="Already Initialized",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=2)

    for sub in _SUBDIRS:
        (project_dir / sub).mkdir(parents=True, exist_ok=True)

    (project_dir / "config.yaml").write_text(_SAMPLE_CONFIG, encoding="utf-8")
    _copy_example_or_inline(project_dir / "layouts", "sample-login.yaml", _SAMPLE_LAYOUT)

    tree = Tree(f"[bold green]{project_dir}[/bold green]", guide_style="dim")
    tree.add("[cyan]config.yaml[/cyan]")
    for sub in _SUBDIRS:
        branch = tree.add(f"[blue]{sub}/[/blue]")
        for child in sorted((project_dir / sub).iterdir()):
            if child.is_file():
                branch.add(f"[dim]{child.name}[/dim]")

    console.print()
    console.print(Panel(tree, title="[bold green]SentinelQA Initialized[/bold green]", border_style="green"))

    console.print()
    console.print("[dim]Next steps:[/dim]")
    console.print("  1. Describe your screen in [cyan].sentinelqa/layouts/[/cyan]")
    console.print("  2. Check what the agent sees: [bold]sentinelqa inspect -l .sentinelqa/layouts/sample-login.yaml[/bold]")

    env_name = ENV_KEYS[ServiceProvider.ANTHROPIC]
    if not os.environ.get(env_name):
        console.print()
        console.print(
            Panel(
                "[bold yellow]Set your API key before running tests:[/bold yellow]\n\n"
                f"  export {env_name}=sk-ant-...\n\n"
                "You can also store it in [cyan].sentinelqa/config.yaml[/cyan]:\n"
                "  [dim]api_key: sk-ant-...[/dim]\n\n"
                "Or try it offline with [bold]--provider custom[/bold].",
                title="[yellow]API Key Required[/yellow]",
                border_style="yellow",
            )
        )
    else:
        console.print(f"  3. [green]{env_name} already set ✓[/green]")

    console.print()
    console.print('  Run: [bold]sentinelqa run "Log in as admin" -l .sentinelqa/layouts/sample-login.yaml[/bold]')
    console.print()
