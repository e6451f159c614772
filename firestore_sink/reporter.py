from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from firestore_sink.exceptions import ValidationFailure


def print_report(report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a run report as a rich table.
    """
    console = console or Console()

    title = "Firestore Sink Run"
    if report.get("collection"):
        title = f"{title}\n[dim]{report.get('database', '')} / {report['collection']}[/dim]"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("Documents", justify="right", style="cyan")
    table.add_column("Batches", justify="right", style="blue")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Throughput (rows/s)", justify="right", style="bold green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")

    mem_bytes = report.get("peak_rss_bytes") or 0
    cpu = report.get("cpu_percent") or 0.0
    table.add_row(
        f"{report.get('rows', 0):,}",
        f"{report.get('documents', 0):,}",
        f"{report.get('batches', 0):,}",
        f"{report.get('duration_seconds', 0.0):.2f}",
        f"{report.get('throughput_rows_per_sec', 0.0):,.2f}",
        f"{mem_bytes / (1024 * 1024):.2f}",
        f"{cpu:.1f}",
    )
    console.print(table)


def print_failures(failures: Sequence[ValidationFailure], console: Optional[Console] = None) -> None:
    """List validation failures, one row each."""
    console = console or Console(stderr=True)

    table = Table(
        title=f"[red]{len(failures)} validation failure(s)[/red]",
        box=box.ROUNDED,
    )
    table.add_column("Problem", style="red")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Field", style="magenta", no_wrap=True)
    table.add_column("Fix", style="dim")

    for failure in failures:
        table.add_row(
            failure.message,
            failure.config_property or "",
            failure.schema_field or "",
            failure.corrective_action or "",
        )
    console.print(table)


__all__ = ["print_report", "print_failures"]
