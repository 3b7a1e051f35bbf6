"""CLI command: rulegate match <rules> <alarm> — evaluate rules against an alarm."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from rulegate.config import RuleGateConfig
from rulegate.policy import classify
from rulegate.policy.codec import format_number
from rulegate.policy.evaluator import RuleEvaluator
from rulegate.policy.loader import load_alarm, load_rules
from rulegate.policy.priority import get_tier, specificity_level

console = Console()


@click.command()
@click.argument("rules_path", metavar="RULES", type=click.Path(exists=True))
@click.argument("alarm_path", metavar="ALARM", type=click.Path(exists=True))
@click.pass_context
def match(ctx: click.Context, rules_path: str, alarm_path: str) -> None:
    """Evaluate the rules in RULES against the alarm in ALARM."""
    config: RuleGateConfig = ctx.obj["config"]
    context = config.match_context()

    rules = load_rules(rules_path, context.directory)
    alarm = load_alarm(alarm_path)

    console.print(
        f"[bold]RuleGate[/bold] evaluating [cyan]{len(rules)}[/cyan] rule(s) "
        f"against [cyan]{alarm.type}[/cyan]\n"
    )

    verdict = RuleEvaluator(rules, context).evaluate(alarm)
    if not verdict.matched:
        console.print("[green]No rule matches.[/green]")
        return

    table = Table(title="Matching rules", show_lines=False)
    table.add_column("Pid", style="cyan")
    table.add_column("Type")
    table.add_column("Target", max_width=40)
    table.add_column("Action", style="bold")
    table.add_column("Tier", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Applies to")

    for rule in verdict.matched:
        marker = " *" if rule is verdict.winner else ""
        table.add_row(
            f"{rule.pid or '-'}{marker}",
            rule.type,
            rule.target,
            rule.action,
            format_number(float(get_tier(rule))),
            str(specificity_level(rule)),
            classify.matched_target(rule) or "all",
        )

    console.print(table)
    if verdict.winner is not None:
        console.print(
            f"\nWinner: rule [bold]{verdict.winner.pid or '-'}[/bold] "
            f"({verdict.winner.action})"
        )
    if verdict.conflicts:
        pids = ", ".join(r.pid or "-" for r in verdict.conflicts)
        console.print(f"[yellow]Unordered conflicts with: {pids}[/yellow]")
