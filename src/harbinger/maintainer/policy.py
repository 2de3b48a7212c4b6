"""Issue categorization: which defect kinds may be fixed without a human."""

from __future__ import annotations

from dataclasses import dataclass

from harbinger.core.models import Issue, IssueKind, ScanReport, Severity


@dataclass(frozen=True)
class IssuePolicy:
    metric: str
    auto_fixable: bool
    severity: Severity
    description: str
    suggestion: str = ""


# Keyed by kind only; counts never change where an issue lands.
POLICY: dict[IssueKind, IssuePolicy] = {
    IssueKind.DEBUG_PRINT: IssuePolicy(
        metric="debug_prints",
        auto_fixable=True,
        severity=Severity.LOW,
        description="{count} debug print statements found",
    ),
    IssueKind.UNUSED_IMPORT: IssuePolicy(
        metric="unused_imports",
        auto_fixable=True,
        severity=Severity.LOW,
        description="{count} unused imports found",
    ),
    IssueKind.ANY_TYPES: IssuePolicy(
        metric="any_types",
        auto_fixable=False,
        severity=Severity.MEDIUM,
        description="{count} explicit 'Any' annotations found",
        suggestion="Replace with specific types, a Protocol, or object",
    ),
    IssueKind.DEPS_OUTDATED: IssuePolicy(
        metric="deps_outdated",
        auto_fixable=False,
        severity=Severity.MEDIUM,
        description="{count} outdated dependencies",
        suggestion="Upgrade with pip and run the test suite",
    ),
    IssueKind.CONVENTIONS: IssuePolicy(
        metric="conventions",
        auto_fixable=False,
        severity=Severity.LOW,
        description="{count} files with hardcoded colour values",
        suggestion="Move colours into shared design tokens",
    ),
}


def categorize(scans: ScanReport) -> tuple[list[Issue], list[Issue]]:
    """Split scan results into (auto_fixable, requires_approval) issues."""
    auto_fixable: list[Issue] = []
    requires_approval: list[Issue] = []
    metrics = scans.as_dict()

    for kind, policy in POLICY.items():
        count = metrics.get(policy.metric, 0)
        if count <= 0:
            continue
        issue = Issue(
            kind=kind,
            count=count,
            severity=policy.severity,
            description=policy.description.format(count=count),
            suggestion=policy.suggestion,
        )
        if policy.auto_fixable:
            auto_fixable.append(issue)
        else:
            requires_approval.append(issue)

    return auto_fixable, requires_approval
