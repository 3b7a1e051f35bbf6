"""CLI command: rulegate diff <old> <new> — has a rule changed?"""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from rulegate.config import RuleGateConfig
from rulegate.policy import codec
from rulegate.policy.equivalence import COMPARE_FIELDS, SET_FIELDS, equal
from rulegate.policy.loader import load_record

console = Console()


@click.command()
@click.argument("old_path", metavar="OLD", type=click.Path(exists=True))
@click.argument("new_path", metavar="NEW", type=click.Path(exists=True))
@click.pass_context
def diff(ctx: click.Context, old_path: str, new_path: str) -> None:
    """Compare two rule records. Exits 1 when they differ."""
    config: RuleGateConfig = ctx.obj["config"]
    directory = config.directory()

    try:
        old = codec.decode(load_record(old_path), directory)
        new = codec.decode(load_record(new_path), directory)
    except ValueError as e:
        console.print(f"[red]Invalid rule:[/red] {e}")
        sys.exit(2)

    if equal(old, new):
        console.print("[green]Rules are equivalent.[/green]")
        return

    old_record, new_record = codec.encode(old), codec.encode(new)
    table = Table(title="Differences", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Old", max_width=40)
    table.add_column("New", max_width=40)
    for name in COMPARE_FIELDS + SET_FIELDS:
        before, after = old_record.get(name, ""), new_record.get(name, "")
        if before != after:
            table.add_row(name, before, after)

    console.print(table)
    console.print("\n[yellow]Rules differ.[/yellow]")
    sys.exit(1)
