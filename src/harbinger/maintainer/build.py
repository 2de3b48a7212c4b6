"""Build verification: the correctness gate after fixes are applied."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from harbinger.core.config import BuildStep

logger = logging.getLogger(__name__)


class BuildVerifier:
    """Runs the configured build steps in order; any failure fails the build."""

    def __init__(self, project_path: Path, steps: list[BuildStep]):
        self.project_path = project_path
        self.steps = steps

    def run_build(self) -> bool:
        for step in self.steps:
            if not self._run_step(step):
                return False
        return True

    def _run_step(self, step: BuildStep) -> bool:
        cwd = self.project_path / step.cwd
        label = " ".join(step.command)
        try:
            result = subprocess.run(
                step.command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=step.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Build step timed out after %ss: %s", step.timeout, label)
            return False
        except OSError as e:
            logger.warning("Build step could not start: %s (%s)", label, e)
            return False

        if result.returncode != 0:
            logger.warning(
                "Build step failed (exit %d): %s\n%s",
                result.returncode, label, (result.stderr or result.stdout).strip(),
            )
            return False
        return True
