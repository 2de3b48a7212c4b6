"""Scan probes. Each one returns a plain count and absorbs its own failures."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path

from harbinger.core.config import HarbingerConfig, load_config
from harbinger.core.models import ScanReport
from harbinger.maintainer.files import is_test_file, iter_files
from harbinger.maintainer.safe_fixer import find_debug_print_lines, find_unused_imports

logger = logging.getLogger(__name__)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


def count_pattern(root: Path, pattern: str, globs: list[str], exclude: list[str]) -> int:
    """Total regex matches across matching files."""
    regex = re.compile(pattern)
    total = 0
    for path in iter_files(root, globs, exclude):
        total += len(regex.findall(_read(path)))
    return total


def count_files_matching(root: Path, pattern: str, globs: list[str], exclude: list[str]) -> int:
    """Number of files containing at least one match."""
    regex = re.compile(pattern)
    return sum(1 for path in iter_files(root, globs, exclude) if regex.search(_read(path)))


def count_debug_prints(root: Path, exclude: list[str]) -> int:
    """Prints the fixer would remove: standalone, outside test files."""
    total = 0
    for path in iter_files(root, ["*.py"], exclude):
        if is_test_file(path):
            continue
        total += len(find_debug_print_lines(_read(path)))
    return total


def count_unused_imports(root: Path, exclude: list[str]) -> int:
    total = 0
    for path in iter_files(root, ["*.py"], exclude):
        if path.name == "__init__.py":
            continue
        total += len(find_unused_imports(_read(path)))
    return total


def count_outdated_dependencies(root: Path, command: list[str], timeout: float) -> int:
    """Run the outdated-dependency command and count the JSON list it prints."""
    result = subprocess.run(
        command,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(root),
    )
    if result.returncode != 0:
        return 0
    deps = json.loads(result.stdout or "[]")
    return len(deps) if isinstance(deps, list) else 0


def read_coverage(root: Path, candidates: list[str]) -> int:
    """Line coverage percentage from the first coverage summary found.

    Understands coverage.py's ``coverage json`` output and Istanbul's
    ``coverage-summary.json``.
    """
    for name in candidates:
        path = root / name
        if not path.exists():
            continue
        data = json.loads(path.read_text())
        if "totals" in data:
            pct = data["totals"].get("percent_covered", 0)
        else:
            pct = data.get("total", {}).get("lines", {}).get("pct", 0)
        return round(float(pct or 0))
    return 0


class ProjectScanner:
    """Runs every probe over a project tree and builds a ScanReport."""

    def __init__(self, project_path: Path | None = None, config: HarbingerConfig | None = None):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)

    def scan(self) -> ScanReport:
        probes = self.config.maintainer.probes
        exclude = self.config.exclude
        root = self.project_path

        return ScanReport(
            any_types=self._probe(
                "any_types", count_pattern, root, probes.any_type_pattern, probes.source_globs, exclude
            ),
            debug_prints=self._probe("debug_prints", count_debug_prints, root, exclude),
            unused_imports=self._probe("unused_imports", count_unused_imports, root, exclude),
            deps_outdated=self._probe(
                "deps_outdated", count_outdated_dependencies, root, probes.outdated_command, probes.outdated_timeout
            ),
            test_coverage=self._probe("test_coverage", read_coverage, root, probes.coverage_files),
            conventions=self._probe(
                "conventions", count_files_matching, root, probes.convention_pattern, probes.convention_globs, exclude
            ),
        )

    def _probe(self, name: str, func, *args) -> int:
        try:
            return max(0, int(func(*args)))
        except Exception as e:
            logger.debug("Probe %s failed, counting 0: %s", name, e)
            return 0
