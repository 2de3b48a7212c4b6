"""harbinger scan command."""

from __future__ import annotations

import json
from pathlib import Path

import click

from harbinger.core.config import load_config
from harbinger.core.models import MaintenanceReport
from harbinger.core.output import console, print_scan, setup_logging
from harbinger.maintainer.policy import categorize
from harbinger.maintainer.probes import ProjectScanner
from harbinger.maintainer.scoring import compute_score


@click.command()
@click.argument("target", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON instead")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def scan(target: str, as_json: bool, verbose: bool):
    """Scan TARGET and print metrics, issues and the health score. Read-only."""
    setup_logging(verbose)
    project_path = Path(target).resolve()
    config = load_config(project_path)

    scans = ProjectScanner(project_path, config).scan()
    auto_fixable, requires_approval = categorize(scans)
    report = MaintenanceReport(
        scans=scans,
        auto_fixable=auto_fixable,
        requires_approval=requires_approval,
        score=compute_score(scans),
        dry_run=True,
    )

    if as_json:
        data = report.to_dict()
        click.echo(json.dumps(
            {k: data[k] for k in ("scans", "auto_fixable", "requires_approval", "score")},
            indent=2,
        ))
        return

    print_scan(scans, report.score, report)
    if auto_fixable:
        console.print("  Fix safely: [bold]harbinger maintain[/bold]")
