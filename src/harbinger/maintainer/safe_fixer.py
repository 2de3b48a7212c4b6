"""Low-risk source fixes with in-memory rollback.

Only two remediations are ever applied without review:

- removal of standalone ``print(...)`` statements (prints to an explicit
  ``file=`` are left alone)
- removal of single-name imports whose name is never used in the file

Every file is backed up in memory before its first write. ``rollback()``
restores all of them and is the only undo mechanism.
"""

from __future__ import annotations

import ast
import logging
import re
from collections.abc import Callable
from pathlib import Path

from harbinger.core.config import HarbingerConfig
from harbinger.core.models import Fix, Issue, IssueKind
from harbinger.maintainer.files import is_test_file, iter_files

logger = logging.getLogger(__name__)

IMPORT_RE = re.compile(r"^import\s+([\w.]+)(?:\s+as\s+(\w+))?\s*$")
FROM_IMPORT_RE = re.compile(r"^from\s+([\w.]+)\s+import\s+(\w+)(?:\s+as\s+(\w+))?\s*$")
LINE_BREAK_RE = re.compile(r"(\r\n|\r|\n)")


def _is_print_stmt(stmt: ast.stmt) -> bool:
    if not isinstance(stmt, ast.Expr) or not isinstance(stmt.value, ast.Call):
        return False
    call = stmt.value
    if not isinstance(call.func, ast.Name) or call.func.id != "print":
        return False
    return not any(kw.arg == "file" for kw in call.keywords)


def find_debug_print_lines(source: str) -> set[int]:
    """Line numbers (1-based) of print statements that occupy a whole line.

    A print is skipped when it shares its line with other code, spans
    several lines, or when removing it would leave its block empty.
    Unparseable sources yield nothing.
    """
    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError):
        return set()

    lines = [line.rstrip("\r\n") for line in _lines_keepends(source)]
    found: set[int] = set()

    for node in ast.walk(tree):
        for field_name in ("body", "orelse", "finalbody"):
            block = getattr(node, field_name, None)
            if not isinstance(block, list) or not block:
                continue

            candidates = []
            for stmt in block:
                if not _is_print_stmt(stmt) or stmt.lineno != stmt.end_lineno:
                    continue
                # ast column offsets count UTF-8 bytes
                text = lines[stmt.lineno - 1].encode("utf-8")
                indent = len(text) - len(text.lstrip())
                trailing = text[stmt.end_col_offset:].strip()
                if stmt.col_offset != indent or trailing not in (b"", b";"):
                    continue
                candidates.append(stmt.lineno)

            if len(candidates) == len(block) and not isinstance(node, ast.Module):
                continue
            found.update(candidates)

    return found


def find_unused_imports(source: str) -> list[str]:
    """Top-level single-name import lines whose bound name is never used.

    Heuristic: the name is looked up as a whole word in the text with the
    import line removed. Re-exports, shadowing and multi-name imports are
    not analysed.
    """
    unused = []
    for line in _lines_keepends(source):
        line = line.rstrip("\r\n")
        name = None
        match = IMPORT_RE.match(line)
        if match:
            name = match.group(2) or match.group(1).split(".")[0]
        else:
            match = FROM_IMPORT_RE.match(line)
            if match and match.group(1) != "__future__":
                name = match.group(3) or match.group(2)
        if not name:
            continue

        rest = source.replace(line, "", 1)
        if not re.search(rf"\b{re.escape(name)}\b", rest):
            unused.append(line)
    return unused


def _lines_keepends(source: str) -> list[str]:
    # Same line breaks the tokenizer counts, so indices agree with ast line numbers.
    parts = LINE_BREAK_RE.split(source)
    lines = [text + end for text, end in zip(parts[0::2], parts[1::2])]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def remove_debug_prints(source: str) -> tuple[str, int]:
    """Drop standalone prints; blank runs left behind collapse to one line."""
    targets = find_debug_print_lines(source)
    if not targets:
        return source, 0

    out: list[str] = []
    in_gap = False
    for lineno, line in enumerate(_lines_keepends(source), start=1):
        if lineno in targets:
            in_gap = True
            continue
        if line.strip() == "":
            if in_gap and out and out[-1].strip() == "":
                continue
        else:
            in_gap = False
        out.append(line)

    return "".join(out), len(targets)


def remove_unused_imports(source: str) -> tuple[str, int]:
    unused = set(find_unused_imports(source))
    if not unused:
        return source, 0

    kept = []
    removed = 0
    for line in _lines_keepends(source):
        if line.rstrip("\r\n") in unused:
            removed += 1
            continue
        kept.append(line)
    return "".join(kept), removed


class SafeFixer:
    """Applies the pre-approved remediations and can undo all of them."""

    def __init__(self, project_path: Path, config: HarbingerConfig | None = None):
        self.project_path = project_path
        self.config = config or HarbingerConfig()
        self._backups: dict[Path, bytes] = {}

    @property
    def backups(self) -> list[Path]:
        """Files touched during this session."""
        return list(self._backups)

    def apply(self, issues: list[Issue]) -> list[Fix]:
        """Apply every recognized auto-fixable issue. Unknown kinds are skipped.

        A file that fails to fix yields an ``error`` Fix and the remaining
        files are still processed, so every modified file keeps its record.
        """
        handlers: dict[IssueKind, tuple[str, Callable[[str], tuple[str, int]]]] = {
            IssueKind.DEBUG_PRINT: ("debug-print-removed", remove_debug_prints),
            IssueKind.UNUSED_IMPORT: ("unused-import-removed", remove_unused_imports),
        }

        applied: list[Fix] = []
        for issue in issues:
            handler = handlers.get(issue.kind)
            if handler is None:
                continue
            fix_kind, transform = handler
            try:
                self._fix_files(issue.kind, fix_kind, transform, applied)
            except Exception as e:
                logger.warning("%s fix failed: %s", issue.kind.value, e)
                applied.append(Fix(kind="error", message=f"{issue.kind.value} fix failed: {e}"))

        return applied

    def rollback(self) -> list[Path]:
        """Restore every backed-up file verbatim. Safe to call repeatedly."""
        restored = []
        for path, original in self._backups.items():
            path.write_bytes(original)
            restored.append(path)
        if restored:
            logger.info("Rolled back %d file(s)", len(restored))
        self._backups.clear()
        return restored

    def _fix_files(
        self,
        issue_kind: IssueKind,
        fix_kind: str,
        transform: Callable[[str], tuple[str, int]],
        fixes: list[Fix],
    ) -> None:
        files = iter_files(self.project_path, ["*.py"], self.config.exclude)

        for path in files:
            if issue_kind == IssueKind.DEBUG_PRINT and is_test_file(path):
                continue
            if issue_kind == IssueKind.UNUSED_IMPORT and path.name == "__init__.py":
                continue

            rel = self._relative(path)
            try:
                count = self._fix_file(path, transform)
            except Exception as e:
                logger.warning("%s fix failed for %s: %s", issue_kind.value, rel, e)
                fixes.append(Fix(kind="error", file=rel, message=f"{issue_kind.value} fix failed for {rel}: {e}"))
                continue
            if count:
                fixes.append(Fix(kind=fix_kind, file=rel, count=count))

    def _fix_file(self, path: Path, transform: Callable[[str], tuple[str, int]]) -> int:
        """Rewrite one file; returns the number of removed lines (0 if unchanged)."""
        raw = path.read_bytes()
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            return 0

        fixed, count = transform(content)
        if fixed == content:
            return 0

        self._backups.setdefault(path, raw)
        path.write_bytes(fixed.encode("utf-8"))
        return count

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_path).as_posix()
        except ValueError:
            return str(path)
