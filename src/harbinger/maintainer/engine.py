"""Maintainer engine. Orchestrates the nightly code quality cycle.

Workflow: scan -> categorize -> fix -> verify build -> score -> store
metrics -> open PR -> notify.

``run_nightly()`` never raises: whatever goes wrong ends up in the
report's ``errors`` and the partially filled report is still returned.
Scans, fixes, the build and publishing run in worker threads so the
event loop stays free while subprocesses run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from harbinger.core.config import HarbingerConfig, load_config
from harbinger.core.errors import PublishError
from harbinger.core.models import Fix, Issue, MaintenanceReport, ScanReport
from harbinger.maintainer.api import HarbingerApi
from harbinger.maintainer.build import BuildVerifier
from harbinger.maintainer.policy import categorize
from harbinger.maintainer.probes import ProjectScanner
from harbinger.maintainer.safe_fixer import SafeFixer
from harbinger.maintainer.scoring import compute_score
from harbinger.maintainer.vcs import GitWorkspace

logger = logging.getLogger(__name__)


class MaintainerEngine:
    """Runs one maintenance cycle over a project.

    Collaborators default to the real implementations built from the
    config; tests pass fakes.
    """

    def __init__(
        self,
        project_path: Path | None = None,
        config: HarbingerConfig | None = None,
        *,
        scanner: ProjectScanner | None = None,
        builder: BuildVerifier | None = None,
        workspace: GitWorkspace | None = None,
        api: HarbingerApi | None = None,
        fixer_factory: Callable[[], SafeFixer] | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)
        mc = self.config.maintainer

        self.scanner = scanner or ProjectScanner(self.project_path, self.config)
        self.builder = builder or BuildVerifier(self.project_path, mc.build)
        self.workspace = workspace or GitWorkspace(self.project_path, mc.remote, mc.base_branch)
        self.api = api or HarbingerApi(mc.api_base, mc.api_token, mc.http_timeout)
        self.fixer_factory = fixer_factory or (lambda: SafeFixer(self.project_path, self.config))
        self._fixer: SafeFixer | None = None

    @property
    def dry_run(self) -> bool:
        return self.config.maintainer.dry_run

    @property
    def channels(self) -> list[str]:
        return self.config.maintainer.channels

    async def run_nightly(self) -> MaintenanceReport:
        """Full maintenance cycle. Returns the report; never raises."""
        report = MaintenanceReport(
            dry_run=self.dry_run,
            agent_name=self.config.maintainer.agent_name,
        )

        try:
            # 1. Scan
            report.scans = await asyncio.to_thread(self.run_scans)

            # 2. Categorize
            report.auto_fixable, report.requires_approval = categorize(report.scans)

            # 3. Apply safe fixes
            if not self.dry_run and report.auto_fixable:
                report.fixes = await asyncio.to_thread(self.apply_safe_fixes, report.auto_fixable)

            # 4. Verify build
            report.build_pass = await asyncio.to_thread(self.builder.run_build)
            if not report.build_pass and report.fixes:
                await asyncio.to_thread(self.rollback_fixes)
                report.fixes = []
                report.errors.append("Build failed after fixes, rolled back all changes")
                logger.warning("Build failed after fixes; working tree restored")

            # 5. Score
            report.score = compute_score(report.scans)

            # 6. Store metrics
            await self.store_metrics(report)

            # 7. Publish
            if report.applied_fixes and not self.dry_run:
                report.pr_url = await asyncio.to_thread(self.create_pr, report)

            # 8. Notify
            await self.notify(report)

        except Exception as e:
            logger.exception("Maintenance run aborted")
            report.errors.append(str(e) or type(e).__name__)

        report.completed_at = datetime.now()
        return report

    def run_scans(self) -> ScanReport:
        return self.scanner.scan()

    def apply_safe_fixes(self, issues: list[Issue]) -> list[Fix]:
        self._fixer = self.fixer_factory()
        fixes = self._fixer.apply(issues)
        logger.info("Applied %d fix(es)", sum(1 for f in fixes if not f.is_error))
        return fixes

    def rollback_fixes(self) -> None:
        """Restore the tree: fixer backups first, then a hard git checkout."""
        if self._fixer is not None:
            self._fixer.rollback()
        self.workspace.discard_changes()

    async def store_metrics(self, report: MaintenanceReport) -> None:
        payload = {"date": report.started_at.date().isoformat()}
        payload.update(report.scans.as_dict())
        payload["score"] = report.score
        try:
            await self.api.store_metrics(payload)
        except Exception as e:
            logger.warning("Failed to store metrics: %s", e)
            report.errors.append(f"Failed to store metrics: {e}")

    def create_pr(self, report: MaintenanceReport) -> str | None:
        date = report.started_at.date().isoformat()
        branch = f"{self.config.maintainer.branch_prefix}/{date}"
        fixed = len(report.applied_fixes)
        review = len(report.requires_approval)

        message = (
            f"chore(maintainer): nightly maintenance {date}\n\n"
            f"Score: {report.score}/100\n"
            f"Fixed: {fixed} issues\n"
            f"Requires review: {review} issues"
        )
        title = f"chore(maintainer): nightly {date}"
        body = (
            "## Maintenance Report\n\n"
            f"- Score: {report.score}/100\n"
            f"- Auto-fixed: {fixed}\n"
            f"- Requires review: {review}"
        )

        try:
            return self.workspace.publish_change(branch, message, title, body)
        except PublishError as e:
            logger.warning("PR creation failed: %s", e)
            report.errors.append(f"PR creation failed: {e}")
            return None

    async def notify(self, report: MaintenanceReport) -> None:
        summary = report.summary
        agent = self.config.maintainer.agent_name
        for channel in self.channels:
            try:
                await self.api.relay(channel, agent, summary)
            except Exception as e:
                logger.debug("Notification to %s failed: %s", channel, e)
