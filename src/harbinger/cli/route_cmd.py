"""harbinger route / routes commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from harbinger.core.config import load_config
from harbinger.core.output import print_route_decision, print_route_table, setup_logging
from harbinger.router.engine import ModelRouter, RoutingContext


@click.command()
@click.argument("task")
@click.option("--agent", "agent_id", type=str, default=None, help="Calling agent id (for pinned overrides)")
@click.option("--model", "preferred_model", type=str, default=None, help="Force this model")
@click.option("--provider", "preferred_provider", type=str, default=None, help="Provider for --model")
@click.option("--local-only", is_flag=True, help="Never route to a remote provider")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def route(
    task: str,
    agent_id: str | None,
    preferred_model: str | None,
    preferred_provider: str | None,
    local_only: bool,
    verbose: bool,
):
    """Show which provider/model would handle TASK."""
    setup_logging(verbose)
    config = load_config(Path.cwd())
    if local_only:
        config.router.local_only = True

    router = ModelRouter.from_settings(config.router)
    context = RoutingContext(
        preferred_model=preferred_model,
        preferred_provider=preferred_provider,
        agent_id=agent_id,
    )
    decision = asyncio.run(router.select_model(task, context))
    print_route_decision(decision, router.config)


@click.command()
def routes():
    """Print the route table."""
    config = load_config(Path.cwd())
    router = ModelRouter.from_settings(config.router)
    print_route_table(router.get_routes())
