"""harbinger maintain command."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from harbinger.core.config import get_harbinger_dir, load_config
from harbinger.core.output import console, print_maintenance_report, setup_logging
from harbinger.maintainer.engine import MaintainerEngine


@click.command()
@click.argument("target", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--dry-run", is_flag=True, help="Scan and score only; change nothing, publish nothing")
@click.option("--channel", "-c", "channels", multiple=True, help="Notification channel (repeatable)")
@click.option("--api-base", type=str, default=None, help="Harbinger API base URL")
@click.option("--json", "export_json", is_flag=True, help="Write the report to .harbinger/reports/")
@click.option("--fail-under", type=int, default=0, help="Exit 1 if the health score is below this")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def maintain(
    target: str,
    dry_run: bool,
    channels: tuple[str, ...],
    api_base: str | None,
    export_json: bool,
    fail_under: int,
    verbose: bool,
):
    """Run the nightly maintenance cycle on TARGET (default: current dir)."""
    setup_logging(verbose)
    project_path = Path(target).resolve()
    config = load_config(project_path)

    if dry_run:
        config.maintainer.dry_run = True
    if channels:
        config.maintainer.channels = list(channels)
    if api_base:
        config.maintainer.api_base = api_base

    engine = MaintainerEngine(project_path, config)
    report = asyncio.run(engine.run_nightly())

    print_maintenance_report(report)

    if export_json:
        reports_dir = get_harbinger_dir(project_path) / "reports"
        reports_dir.mkdir(exist_ok=True)
        out_file = reports_dir / "maintenance-report.json"
        out_file.write_text(json.dumps(report.to_dict(), indent=2))
        console.print(f"\n  [dim]JSON report saved to {out_file}[/dim]")

    if fail_under and report.score < fail_under:
        console.print(f"\n  [red]Score {report.score} is below threshold {fail_under}.[/red]")
        sys.exit(1)
