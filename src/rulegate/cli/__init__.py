"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from rulegate import __version__
from rulegate.config import RuleGateConfig


@click.group()
@click.version_option(version=__version__, prog_name="rulegate")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to a YAML config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """RuleGate — policy rule engine for network security appliances."""
    ctx.ensure_object(dict)
    config = RuleGateConfig.load(config_path)
    config.verbose = verbose
    ctx.obj["config"] = config

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from rulegate.cli.diff import diff  # noqa: F811
    from rulegate.cli.match import match  # noqa: F811
    from rulegate.cli.status import status  # noqa: F811

    main.add_command(match)
    main.add_command(diff)
    main.add_command(status)


_register_commands()
