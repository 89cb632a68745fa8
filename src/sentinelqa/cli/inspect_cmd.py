"""sentinelqa inspect -- Show the UI elements the agent would discover.

Builds the layout, walks it with the same inspector the ``query_ui`` tool
uses, and prints the result.  No model is called.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sentinelqa.engine.inspector import UIInspector
from sentinelqa.ui.layout import LayoutError, load_layout
from sentinelqa.ui.resolver import ElementResolver

console = Console()


def inspect(
    layout: Path = typer.Option(
        ...,
        "--layout",
        "-l",
        help="UI layout YAML to inspect. [required]",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw query_ui JSON instead of a table.",
    ),
) -> None:
    """List the elements query_ui would return for a layout.

    \b
    Examples:
      sentinelqa inspect -l .sentinelqa/layouts/sample-login.yaml
      sentinelqa inspect -l examples/layouts/game-menu.yaml --json
    """
    try:
        ui = load_layout(layout)
    except LayoutError as exc:
        console.print(Panel(f"[red]{exc}[/red]", title="[red]Layout Error[/red]", border_style="red"))
        raise typer.Exit(code=2)

    inspector = UIInspector(ElementResolver(ui.root_provider, ui.scene_provider))

    if as_json:
        # Plain print keeps the JSON machine-readable
        print(json.dumps(json.loads(inspector.get_ui_hierarchy()), indent=2, ensure_ascii=False))
        return

    snapshot = inspector.snapshot()
    if snapshot is None:
        console.print(Panel("[yellow]The layout contains no UI.[/yellow]", border_style="yellow"))
        raise typer.Exit(code=1)

    table = Table(title=f"{ui.name} ({snapshot.ui_type} UI)", border_style="cyan")
    table.add_column("Path", style="bold")
    table.add_column("Type")
    table.add_column("System", style="dim")
    table.add_column("Text")
    table.add_column("Enabled")

    for element in snapshot.elements:
        text = element.text if len(element.text) <= 40 else element.text[:37] + "..."
        enabled = Text("yes", style="green") if element.enabled else Text("no", style="red")
        table.add_row(
            Text(element.path),
            element.type,
            element.ui_system,
            Text(text, style="" if element.interactable else "dim"),
            enabled,
        )

    console.print()
    console.print(table)
    console.print(f"\n  [dim]{len(snapshot.elements)} element(s)[/dim]\n")
