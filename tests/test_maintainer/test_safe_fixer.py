"""Tests for SafeFixer remediations and rollback."""

from __future__ import annotations

from pathlib import Path

import pytest

from harbinger.core.models import Issue, IssueKind, Severity
from harbinger.maintainer import safe_fixer
from harbinger.maintainer.safe_fixer import (
    SafeFixer,
    find_debug_print_lines,
    find_unused_imports,
    remove_debug_prints,
    remove_unused_imports,
)


def _issue(kind: IssueKind, count: int = 1) -> Issue:
    return Issue(kind=kind, count=count, severity=Severity.LOW)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "app.py").write_text(
        "import os\n"
        "import json\n"
        "\n"
        "def run():\n"
        "    value = os.getcwd()\n"
        "    print(value)\n"
        "\n"
        "\n"
        "    return value\n"
    )
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "vendored.py").write_text("print('vendored')\nx = 1\n")
    (tmp_path / "test_app.py").write_text("print('debug in test')\nx = 1\n")
    return tmp_path


class TestRemoveDebugPrints:
    def test_standalone_print_and_blank_run(self):
        """Print followed by two blank lines: print gone, one blank left."""
        source = "x = 1\nprint(x)\n\n\ny = 2\n"
        fixed, count = remove_debug_prints(source)
        assert count == 1
        assert "print" not in fixed
        assert "\n\n\n" not in fixed
        assert fixed == "x = 1\n\ny = 2\n"

    def test_embedded_print_untouched(self):
        """Prints inside larger expressions are left alone."""
        source = "x = print('a') or 1\nresult = [print(i) for i in range(3)]\n"
        fixed, count = remove_debug_prints(source)
        assert count == 0
        assert fixed == source

    def test_print_sharing_line_untouched(self):
        source = "x = 1; print(x)\ny = 2\n"
        assert remove_debug_prints(source) == (source, 0)

    def test_print_to_file_untouched(self):
        """print(..., file=sys.stderr) is deliberate output."""
        source = "import sys\nprint('oops', file=sys.stderr)\nx = 1\n"
        assert remove_debug_prints(source) == (source, 0)

    def test_sole_statement_in_block_kept(self):
        """Removing the only statement of a block would break the file."""
        source = "if True:\n    print('only')\nx = 1\n"
        assert find_debug_print_lines(source) == set()

    def test_print_in_function_with_other_statements(self):
        source = "def f():\n    print('debug')\n    return 1\n"
        fixed, count = remove_debug_prints(source)
        assert count == 1
        assert fixed == "def f():\n    return 1\n"

    def test_unparseable_source_untouched(self):
        source = "def broken(:\n    print('x')\n"
        assert remove_debug_prints(source) == (source, 0)

    def test_existing_blank_runs_elsewhere_preserved(self):
        """Only blank runs next to a removed print are collapsed."""
        source = "import os\n\n\ndef f():\n    print(os)\n    return 1\n"
        fixed, _ = remove_debug_prints(source)
        assert fixed.startswith("import os\n\n\ndef f():")


class TestUnusedImports:
    def test_unused_single_name_imports_found(self):
        source = "import os\nimport json\nfrom pathlib import Path\n\nprint(os.sep)\n"
        assert find_unused_imports(source) == ["import json", "from pathlib import Path"]

    def test_alias_uses_bound_name(self):
        source = "import numpy as np\n\nx = np.zeros(3)\n"
        assert find_unused_imports(source) == []

    def test_future_import_kept(self):
        source = "from __future__ import annotations\n\nx = 1\n"
        assert find_unused_imports(source) == []

    def test_multi_name_import_ignored(self):
        source = "from typing import Any, Dict\n\nx = 1\n"
        assert find_unused_imports(source) == []

    def test_whole_word_match(self):
        """'re' inside 'result' does not count as a use."""
        source = "import re\n\nresult = 1\n"
        fixed, count = remove_unused_imports(source)
        assert count == 1
        assert fixed == "\nresult = 1\n"


class TestSafeFixer:
    def test_apply_debug_prints(self, project: Path):
        fixer = SafeFixer(project)
        fixes = fixer.apply([_issue(IssueKind.DEBUG_PRINT)])

        assert len(fixes) == 1
        assert fixes[0].file == "pkg/app.py"
        assert fixes[0].kind == "debug-print-removed"
        assert fixes[0].count == 1
        content = (project / "pkg" / "app.py").read_text()
        assert "print(" not in content
        assert "\n\n\n" not in content

    def test_excluded_dirs_and_tests_untouched(self, project: Path):
        SafeFixer(project).apply([_issue(IssueKind.DEBUG_PRINT)])
        assert "print" in (project / "node_modules" / "vendored.py").read_text()
        assert "print" in (project / "test_app.py").read_text()

    def test_apply_unused_imports(self, project: Path):
        fixes = SafeFixer(project).apply([_issue(IssueKind.UNUSED_IMPORT)])
        assert [f.kind for f in fixes] == ["unused-import-removed"]
        content = (project / "pkg" / "app.py").read_text()
        assert "import json" not in content
        assert "import os" in content

    def test_init_files_skipped_for_imports(self, tmp_path: Path):
        """Package __init__ modules re-export names; leave their imports."""
        (tmp_path / "__init__.py").write_text("from .core import Engine\n")
        assert SafeFixer(tmp_path).apply([_issue(IssueKind.UNUSED_IMPORT)]) == []

    def test_unknown_kind_skipped(self, project: Path):
        fixer = SafeFixer(project)
        assert fixer.apply([_issue(IssueKind.ANY_TYPES)]) == []
        assert fixer.backups == []

    def test_unchanged_files_not_backed_up(self, project: Path):
        (project / "clean.py").write_text("x = 1\n")
        fixer = SafeFixer(project)
        fixer.apply([_issue(IssueKind.DEBUG_PRINT)])
        assert project / "clean.py" not in fixer.backups

    def test_rollback_restores_everything(self, project: Path):
        original = (project / "pkg" / "app.py").read_bytes()
        fixer = SafeFixer(project)
        fixer.apply([_issue(IssueKind.DEBUG_PRINT), _issue(IssueKind.UNUSED_IMPORT)])
        assert (project / "pkg" / "app.py").read_bytes() != original

        restored = fixer.rollback()
        assert restored == [project / "pkg" / "app.py"]
        assert (project / "pkg" / "app.py").read_bytes() == original
        assert fixer.backups == []

    def test_rollback_is_idempotent(self, project: Path):
        fixer = SafeFixer(project)
        assert fixer.rollback() == []
        fixer.apply([_issue(IssueKind.DEBUG_PRINT)])
        fixer.rollback()
        assert fixer.rollback() == []

    def test_category_error_becomes_error_fix(self, project: Path, monkeypatch):
        """A failing category yields an error entry; other categories still run."""
        fixer = SafeFixer(project)
        original_fix_files = fixer._fix_files

        def fix_files(issue_kind, fix_kind, transform, fixes):
            if issue_kind == IssueKind.DEBUG_PRINT:
                raise RuntimeError("disk on fire")
            return original_fix_files(issue_kind, fix_kind, transform, fixes)

        monkeypatch.setattr(fixer, "_fix_files", fix_files)
        fixes = fixer.apply([_issue(IssueKind.DEBUG_PRINT), _issue(IssueKind.UNUSED_IMPORT)])

        assert fixes[0].is_error
        assert "disk on fire" in fixes[0].message
        assert fixes[1].kind == "unused-import-removed"

    def test_failing_file_keeps_earlier_fixes(self, tmp_path: Path, monkeypatch):
        """A file that blows up mid-category must not hide files already rewritten."""
        (tmp_path / "a.py").write_text("x = 1\nprint(x)\ny = 2\n")
        (tmp_path / "b.py").write_text("BOOM = 1\nprint(BOOM)\nz = 3\n")
        (tmp_path / "c.py").write_text("w = 4\nprint(w)\nv = 5\n")

        def remove(source: str):
            if "BOOM" in source:
                raise RuntimeError("cannot rewrite")
            return remove_debug_prints(source)

        monkeypatch.setattr(safe_fixer, "remove_debug_prints", remove)
        fixer = SafeFixer(tmp_path)
        fixes = fixer.apply([_issue(IssueKind.DEBUG_PRINT)])

        assert [(f.kind, f.file) for f in fixes] == [
            ("debug-print-removed", "a.py"),
            ("error", "b.py"),
            ("debug-print-removed", "c.py"),
        ]
        assert "cannot rewrite" in fixes[1].message
        assert (tmp_path / "a.py").read_text() == "x = 1\ny = 2\n"
        assert (tmp_path / "c.py").read_text() == "w = 4\nv = 5\n"
        assert "print(BOOM)" in (tmp_path / "b.py").read_text()
        assert fixer.backups == [tmp_path / "a.py", tmp_path / "c.py"]

    def test_cr_only_file_fixed(self, tmp_path: Path):
        (tmp_path / "a.py").write_text("x = 1\nprint(x)\ny = 2\n")
        (tmp_path / "b.py").write_bytes(b"x = 1\rprint(x)\ry = 2\r")

        fixes = SafeFixer(tmp_path).apply([_issue(IssueKind.DEBUG_PRINT)])

        assert [f.file for f in fixes] == ["a.py", "b.py"]
        assert (tmp_path / "b.py").read_bytes() == b"x = 1\ry = 2\r"


class TestLineEndings:
    def test_cr_only_print_found(self):
        assert find_debug_print_lines("x = 1\rprint(x)\ry = 2\r") == {2}

    def test_crlf_print_removed(self):
        fixed, count = remove_debug_prints("def f():\r\n    x = 1\r\n    print(x)\r\n    return x\r\n")
        assert count == 1
        assert fixed == "def f():\r\n    x = 1\r\n    return x\r\n"

    def test_mixed_endings_point_at_right_line(self):
        source = "a = 1\rb = 2\nprint(b)\r\nc = 3\n"
        assert find_debug_print_lines(source) == {3}
        fixed, _ = remove_debug_prints(source)
        assert fixed == "a = 1\rb = 2\nc = 3\n"

    def test_cr_only_unused_import(self):
        source = "import os\rimport json\rprint(os.getcwd())\r"
        assert find_unused_imports(source) == ["import json"]
        fixed, count = remove_unused_imports(source)
        assert count == 1
        assert fixed == "import os\rprint(os.getcwd())\r"
