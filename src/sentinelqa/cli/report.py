"""sentinelqa report -- List and view Markdown test reports.

Reports are the ``TestReport_<name>_<timestamp>.md`` files written by
``finish_test``.  Without arguments the latest report is rendered.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()

_REPORT_GLOB = "TestReport_*.md"
_STATUS_RE = re.compile(r"^\*\*Status\*\*:\s*\S*\s*(PASSED|FAILED)", re.MULTILINE)
_TITLE_RE = re.compile(r"^# Test Report:\s*(.+)$", re.MULTILINE)
_DURATION_RE = re.compile(r"^\*\*Duration\*\*:\s*(.+)$", re.MULTILINE)


def _find_reports_dir() -> Path:
    """Locate the .sentinelqa/reports/ directory by searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / ".sentinelqa" / "reports"
        if candidate.is_dir():
            return candidate
    return current / ".sentinelqa" / "reports"


def _report_files(reports_dir: Path) -> list[Path]:
    """Report files, newest first."""
    return sorted(reports_dir.glob(_REPORT_GLOB), key=lambda p: p.stat().st_mtime, reverse=True)


def _summarize(path: Path) -> dict:
    """Pull test name, status and duration out of a report's header."""
    meta: dict = {"file": path.name, "modified": datetime.fromtimestamp(path.stat().st_mtime)}
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return meta
    if match := _TITLE_RE.search(content):
        meta["name"] = match.group(1).strip()
    if match := _STATUS_RE.search(content):
        meta["passed"] = match.group(1) == "PASSED"
    if match := _DURATION_RE.search(content):
        meta["duration"] = match.group(1).strip()
    return meta


def _find_report(reports_dir: Path, name: str | None) -> Path | None:
    """Find a report by file name, prefix or test-name fragment; default latest."""
    files = _report_files(reports_dir)
    if not name:
        return files[0] if files else None

    candidate = reports_dir / name
    if candidate.is_file():
        return candidate

    needle = name.replace(" ", "_").lower()
    matches = [p for p in files if needle in p.name.lower()]
    if len(matches) > 1:
        console.print(f"[yellow]'{name}' matches {len(matches)} reports; showing the latest.[/yellow]")
    return matches[0] if matches else None


def report(
    name: str | None = typer.Argument(
        None,
        help="Report file name or part of the test name (default: latest report).",
    ),
    list_reports: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List all reports.",
    ),
    raw: bool = typer.Option(
        False,
        "--raw",
        help="Print the Markdown source instead of rendering it.",
    ),
    reports_dir: Path | None = typer.Option(
        None,
        "--reports-dir",
        help="Path to the reports directory. Default: .sentinelqa/reports/",
    ),
) -> None:
    """View SentinelQA test reports.

    Without arguments, shows the latest report. Use --list to see all
    reports, or pass NAME to view a specific one.
    """
    rdir = reports_dir or _find_reports_dir()

    if not rdir.is_dir():
        console.print(
            Panel(
                f"[yellow]Reports directory not found:[/yellow] {rdir}\n\n"
                'No tests recorded yet. Run [bold]sentinelqa run "<goal>" --layout <file>[/bold] first.',
                title="[yellow]No Reports[/yellow]",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=0)

    if list_reports:
        files = _report_files(rdir)
        if not files:
            console.print("[yellow]No reports found.[/yellow]")
            raise typer.Exit(code=0)

        table = Table(title="SentinelQA Reports", border_style="cyan")
        table.add_column("Test", style="bold")
        table.add_column("Result")
        table.add_column("Duration")
        table.add_column("Written")
        table.add_column("File", style="dim")

        for path in files:
            meta = _summarize(path)
            passed = meta.get("passed")
            if passed is True:
                result = Text("PASS", style="green")
            elif passed is False:
                result = Text("FAIL", style="red")
            else:
                result = Text("?", style="dim")
            table.add_row(
                Text(meta.get("name", "?")),
                result,
                meta.get("duration", "-"),
                f"{meta['modified']:%Y-%m-%d %H:%M:%S}",
                meta["file"],
            )

        console.print()
        console.print(table)
        console.print()
        return

    path = _find_report(rdir, name)
    if path is None:
        if name:
            console.print(f"[red]Report not found:[/red] {name}")
        else:
            console.print("[yellow]No reports found. Run a test first.[/yellow]")
        raise typer.Exit(code=1)

    content = path.read_text(encoding="utf-8")
    if raw:
        print(content)
        return
    console.print()
    console.print(Markdown(content))
    console.print(f"\n[dim]{path}[/dim]\n")
