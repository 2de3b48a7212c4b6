"""Health score computation for scan results."""

from __future__ import annotations

from harbinger.core.models import ScanReport

# Points deducted per occurrence
DEDUCTIONS = {
    "any_types": 2,
    "debug_prints": 1,
    "unused_imports": 1,
    "deps_outdated": 3,
}

# Points added per coverage percent
COVERAGE_BONUS = 1


def compute_score(scans: ScanReport) -> int:
    """
    Compute the 0-100 health score from a scan.

    Starts at 100, deducts per defect, adds the coverage percentage,
    then clamps. Convention hits are reported but not scored.
    """
    metrics = scans.as_dict()
    score = 100
    for metric, weight in DEDUCTIONS.items():
        score -= metrics.get(metric, 0) * weight
    score += metrics.get("test_coverage", 0) * COVERAGE_BONUS
    return max(0, min(100, score))
