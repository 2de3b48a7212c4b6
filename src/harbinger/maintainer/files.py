"""Project tree walking shared by the scan probes and the fixer."""

from __future__ import annotations

from pathlib import Path

TEST_FILE_GLOBS = ("test_*.py", "*_test.py", "conftest.py")


def is_excluded(rel: Path, exclude: list[str]) -> bool:
    """True if any directory component of ``rel`` is an excluded name."""
    names = {e.strip("/") for e in exclude}
    return any(part in names for part in rel.parts[:-1])


def is_test_file(path: Path) -> bool:
    return any(path.match(pattern) for pattern in TEST_FILE_GLOBS)


def iter_files(root: Path, globs: list[str], exclude: list[str]) -> list[Path]:
    """Collect files under ``root`` matching any glob, skipping excluded dirs."""
    found: set[Path] = set()

    if root.is_file():
        return [root] if any(root.match(g) for g in globs) else []

    for pattern in globs:
        for path in root.rglob(pattern):
            if not path.is_file():
                continue
            if is_excluded(path.relative_to(root), exclude):
                continue
            found.add(path)

    return sorted(found)
