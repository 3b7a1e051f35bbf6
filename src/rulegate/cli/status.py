"""CLI command: rulegate status <rules> — expiry, schedule and tier overview."""

from __future__ import annotations

import time

import click
from rich.console import Console
from rich.table import Table

from rulegate.config import RuleGateConfig
from rulegate.policy import temporal
from rulegate.policy.codec import format_number
from rulegate.policy.loader import load_rules
from rulegate.policy.models import Rule
from rulegate.policy.priority import get_tier

console = Console()


@click.command()
@click.argument("rules_path", metavar="RULES", type=click.Path(exists=True))
@click.pass_context
def status(ctx: click.Context, rules_path: str) -> None:
    """Show whether each rule in RULES is active, expiring or scheduled."""
    config: RuleGateConfig = ctx.obj["config"]
    rules = load_rules(rules_path, config.directory())
    now = time.time()

    table = Table(title="Rules", show_lines=False)
    table.add_column("Pid", style="cyan")
    table.add_column("Type")
    table.add_column("Target", max_width=40)
    table.add_column("Action")
    table.add_column("Tier", justify="right")
    table.add_column("State", style="bold")

    for rule in rules:
        table.add_row(
            rule.pid or "-",
            rule.type,
            rule.target,
            rule.action,
            format_number(float(get_tier(rule))),
            _state(rule, now, config),
        )

    console.print(table)
    console.print(f"\nTotal rules: {len(rules)}")


def _state(rule: Rule, now: float, config: RuleGateConfig) -> str:
    if rule.disabled:
        return "disabled"
    if temporal.is_expired(rule, now):
        return "expired"
    if temporal.will_expire_soon(rule, now, config.expire_guard):
        return "expiring"
    if temporal.is_scheduled(rule):
        if temporal.in_schedule(rule, now, config.timezone):
            return "in schedule"
        return "off schedule"
    return "active"
