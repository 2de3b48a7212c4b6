"""Shared data models for the maintenance pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class Severity(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueKind(str, enum.Enum):
    DEBUG_PRINT = "debug-print"
    UNUSED_IMPORT = "unused-import"
    ANY_TYPES = "any-types"
    DEPS_OUTDATED = "deps-outdated"
    CONVENTIONS = "conventions"


@dataclass(frozen=True)
class ScanReport:
    """Metrics gathered by one scan of the project tree."""

    any_types: int = 0
    debug_prints: int = 0
    unused_imports: int = 0
    deps_outdated: int = 0
    test_coverage: int = 0
    conventions: int = 0
    scanned_at: datetime = field(default_factory=datetime.now)

    def as_dict(self) -> dict[str, int]:
        return {
            "any_types": self.any_types,
            "debug_prints": self.debug_prints,
            "unused_imports": self.unused_imports,
            "deps_outdated": self.deps_outdated,
            "test_coverage": self.test_coverage,
            "conventions": self.conventions,
        }


@dataclass
class Issue:
    """A defect class found by the scan, with how often it occurs."""

    kind: IssueKind
    count: int
    severity: Severity
    description: str = ""
    suggestion: str = ""


@dataclass
class Fix:
    """A remediation applied to one file (or an error from a fix category)."""

    kind: str
    file: str | None = None
    count: int = 0
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


@dataclass
class MaintenanceReport:
    """Aggregate result of one maintenance run."""

    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    scans: ScanReport = field(default_factory=ScanReport)
    auto_fixable: list[Issue] = field(default_factory=list)
    requires_approval: list[Issue] = field(default_factory=list)
    fixes: list[Fix] = field(default_factory=list)
    build_pass: bool = False
    score: int = 0
    pr_url: str | None = None
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False
    agent_name: str = "MAINTAINER"

    @property
    def applied_fixes(self) -> list[Fix]:
        return [f for f in self.fixes if not f.is_error]

    @property
    def summary(self) -> str:
        """One-line text sent to notification channels."""
        text = (
            f"{self.agent_name} Report: Score {self.score}/100 | "
            f"Fixed {len(self.applied_fixes)} | "
            f"Review needed: {len(self.requires_approval)}"
        )
        if self.pr_url:
            text += f" | PR: {self.pr_url}"
        return text

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "agent": self.agent_name,
            "dry_run": self.dry_run,
            "scans": self.scans.as_dict(),
            "auto_fixable": [
                {"kind": i.kind.value, "count": i.count, "severity": i.severity.value}
                for i in self.auto_fixable
            ],
            "requires_approval": [
                {
                    "kind": i.kind.value,
                    "count": i.count,
                    "severity": i.severity.value,
                    "suggestion": i.suggestion,
                }
                for i in self.requires_approval
            ],
            "fixes": [
                {"kind": f.kind, "file": f.file, "count": f.count, "message": f.message}
                for f in self.fixes
            ],
            "build_pass": self.build_pass,
            "score": self.score,
            "pr_url": self.pr_url,
            "errors": list(self.errors),
        }
