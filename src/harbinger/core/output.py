"""Rich terminal formatting for Harbinger output."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from harbinger.core.models import MaintenanceReport, ScanReport, Severity
from harbinger.router.models import RouteDecision, RouterConfig

console = Console()
error_console = Console(stderr=True)


SEVERITY_COLORS = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

METRIC_LABELS = [
    ("any_types", "Any annotations"),
    ("debug_prints", "Debug prints"),
    ("unused_imports", "Unused imports"),
    ("deps_outdated", "Outdated deps"),
    ("conventions", "Convention hits"),
    ("test_coverage", "Test coverage %"),
]


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through a Rich handler on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def score_color(score: int) -> str:
    """Return color name based on score."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def progress_bar(score: int, width: int = 10) -> str:
    """Create a text-based progress bar."""
    filled = round(score / 100 * width)
    empty = width - filled
    color = score_color(score)
    return f"[{color}]{'█' * filled}{'░' * empty}[/{color}]"


def _metric_lines(scans: ScanReport) -> list[str]:
    values = scans.as_dict()
    return [f"  {label:<18} {values[key]}" for key, label in METRIC_LABELS]


def print_scan(scans: ScanReport, score: int, report: MaintenanceReport | None = None) -> None:
    """Print scan metrics with the computed health score."""
    color = score_color(score)
    lines = [""]
    lines.append(f"  Health Score:  [{color}]{score}/100[/{color}]  {progress_bar(score)}")
    lines.append("")
    lines.extend(_metric_lines(scans))
    lines.append("")

    if report is not None:
        for issue in report.auto_fixable:
            lines.append(f"  [green]auto[/green]     {issue.kind.value}  x{issue.count}")
        for issue in report.requires_approval:
            sev = SEVERITY_COLORS.get(issue.severity, "white")
            line = f"  [{sev}]review[/{sev}]   {issue.kind.value}  x{issue.count}"
            if issue.suggestion:
                line += f"  [dim]{issue.suggestion}[/dim]"
            lines.append(line)
        if report.auto_fixable or report.requires_approval:
            lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Harbinger Scan[/bold]",
        border_style=color,
        padding=(0, 1),
    ))


def print_maintenance_report(report: MaintenanceReport) -> None:
    """Print the full maintenance report card to terminal."""
    color = score_color(report.score)
    lines = [""]
    lines.append(f"  Health Score:  [{color}]{report.score}/100[/{color}]  {progress_bar(report.score)}")
    if report.dry_run:
        lines.append("  [dim]Dry run: no files changed, nothing published.[/dim]")
    lines.append("")
    lines.extend(_metric_lines(report.scans))
    lines.append("")

    build = "[green]pass[/green]" if report.build_pass else "[red]fail[/red]"
    lines.append(f"  Build:            {build}")
    lines.append(
        f"  Auto-fixable:     {len(report.auto_fixable)}    "
        f"Requires review: {len(report.requires_approval)}"
    )
    lines.append("")

    for fix in report.fixes:
        if fix.is_error:
            lines.append(f"  [red]x[/red] {fix.message}")
        else:
            lines.append(f"  [green]+[/green] {fix.file}  {fix.kind}  x{fix.count}")
    if report.fixes:
        lines.append("")

    if report.pr_url:
        lines.append(f"  PR: [bold]{report.pr_url}[/bold]")
        lines.append("")

    for error in report.errors:
        lines.append(f"  [red]! {error}[/red]")
    if report.errors:
        lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Harbinger Maintenance Report[/bold]",
        border_style=color,
        padding=(0, 1),
    ))


def print_route_table(routes: list[dict]) -> None:
    """Print the route table as returned by ModelRouter.get_routes()."""
    table = Table(title="Route Table")
    table.add_column("Tier", style="bold")
    table.add_column("Max tokens", justify="right")
    table.add_column("Timeout", justify="right")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Fallback")

    for row in routes:
        fallback = "-"
        if row["fallback_provider"]:
            fallback = f"{row['fallback_provider']}/{row['fallback_model']}"
        table.add_row(
            row["tier"],
            str(row["max_tokens"]),
            f"{row['timeout_ms'] / 1000:g}s",
            row["provider"],
            row["model"],
            fallback,
        )

    console.print(table)


def print_route_decision(decision: RouteDecision, config: RouterConfig) -> None:
    """Print one routing decision."""
    lines = [
        f"  Provider:    [bold]{decision.provider}[/bold]",
        f"  Model:       [bold]{decision.model}[/bold]",
        f"  Reason:      {decision.reason.value}",
    ]
    if decision.complexity is not None:
        budget = config.tiers[decision.complexity]
        lines.append(f"  Complexity:  {decision.complexity.value}  [dim]({budget.description})[/dim]")
        lines.append(f"  Budget:      {budget.max_tokens} tokens, {budget.timeout_ms / 1000:g}s")

    console.print(Panel(
        "\n".join(lines),
        title="[bold]Route Decision[/bold]",
        border_style="cyan",
        padding=(0, 1),
    ))
