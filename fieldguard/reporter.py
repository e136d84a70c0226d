from __future__ import annotations

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fieldguard.domain.models import UpdatePlan
from fieldguard.execution.aggregator import BatchSummary


def print_summary(summary: BatchSummary, console: Optional[Console] = None) -> None:
    """
    Render an invocation summary as a rich table.

    Dry-run summaries get a distinct title and label simulated writes as
    "Would write", so they cannot be mistaken for a live run.
    """
    console = console or Console()

    title = f"fieldguard · {summary.record_type}"
    if summary.dry_run:
        title = f"{title}\n[bold yellow]DRY RUN: no store calls were made[/bold yellow]"

    table = Table(title=title, box=box.ROUNDED, caption=f"{summary.elapsed_seconds:.3f}s elapsed")
    table.add_column("Outcome", style="cyan", no_wrap=True)
    table.add_column("Records", justify="right", style="magenta")

    rows: List[tuple] = [
        ("Would write" if summary.dry_run else "Applied", summary.applied, "bold green"),
        ("Conflict (newer data kept)", summary.conflicted, "yellow"),
        ("Transient (unsettled)", summary.transient_failed, "yellow"),
        ("Fatal", summary.fatal_failed, "bold red"),
        ("Skipped: decode", summary.decode_skipped, "red"),
        ("Skipped: schema", summary.schema_skipped, "red"),
        ("No-op (no fields)", summary.noop, "dim"),
    ]
    for label, count, style in rows:
        table.add_row(label, f"[{style}]{count:,}[/{style}]" if count else "0")
    table.add_section()
    table.add_row("Total", f"{summary.total:,}")
    table.add_row("Retries", f"{summary.retries:,}")
    if summary.peak_rss_bytes:
        table.add_row("Peak memory (MB)", f"{summary.peak_rss_bytes / (1024 * 1024):.2f}")

    console.print(table)


def print_plan(plan: UpdatePlan, console: Optional[Console] = None) -> None:
    """Render the DynamoDB request a plan would send."""
    console = console or Console()
    if plan.is_empty:
        console.print(f"[yellow]{escape(plan.describe())}: no non-null payload fields, nothing to write.[/yellow]")
        return

    table = Table(title=escape(plan.describe()), box=box.ROUNDED, show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Shadow", style="magenta")
    table.add_column("Value", overflow="fold")
    for assignment in plan.assignments:
        table.add_row(assignment.field, assignment.shadow, escape(repr(assignment.value)))
    console.print(table)
    console.print(f"[bold]UpdateExpression[/bold]    {plan.update_expression}")
    console.print(f"[bold]ConditionExpression[/bold] {plan.condition_expression}")
    console.print(f"[bold]Names[/bold]               {escape(str(dict(plan.attribute_names)))}")
