"""Git working tree and change-request publishing."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from harbinger.core.errors import PublishError

logger = logging.getLogger(__name__)


class GitWorkspace:
    """Wraps the git and gh invocations the maintainer needs."""

    def __init__(self, project_path: Path, remote: str = "origin", base_branch: str = "main"):
        self.project_path = project_path
        self.remote = remote
        self.base_branch = base_branch

    def discard_changes(self) -> None:
        """Throw away uncommitted changes to tracked files."""
        try:
            subprocess.run(
                ["git", "checkout", "--", "."],
                cwd=str(self.project_path),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.debug("git checkout failed, assuming clean tree: %s", e)

    def publish_change(self, branch: str, message: str, title: str, body: str) -> str | None:
        """Commit everything on a new branch, push it, and open a pull request.

        Returns the pull request URL printed by ``gh``. Raises PublishError
        at the first step that fails.
        """
        self._run(["git", "checkout", "-b", branch])
        self._run(["git", "add", "-A"])
        self._run(["git", "commit", "-m", message])
        self._run(["git", "push", self.remote, branch])
        url = self._run([
            "gh", "pr", "create",
            "--title", title,
            "--body", body,
            "--base", self.base_branch,
        ])
        return url or None

    def _run(self, command: list[str]) -> str:
        try:
            result = subprocess.run(
                command,
                cwd=str(self.project_path),
                capture_output=True,
                text=True,
                timeout=120,
            )
        except subprocess.TimeoutExpired:
            raise PublishError(command, "timed out") from None
        except OSError as e:
            raise PublishError(command, str(e)) from e

        if result.returncode != 0:
            raise PublishError(command, result.stderr or result.stdout)
        return result.stdout.strip()
