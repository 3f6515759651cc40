#!/usr/bin/env python3
"""Main orchestrator for exporting GitHub organization repositories."""

from __future__ import annotations

from typing import List

from archive_downloader import ANOMALY_DOWNLOAD, ArchiveDownloader, JobAnomaly
from config import Config, MigrationOptions
from errors import (EXIT_EXECUTION_ERROR, EXIT_INTERRUPTED, EXIT_SUCCESS,
                    ExportError, LaunchError)
from github_client import MigrationClient
from logging_utils import Logger
from migration_poller import MigrationPoller
from migration_tracker import MigrationJob, MigrationTracker
from utils import batch_repositories


def launch_migrations(
    client: MigrationClient,
    tracker: MigrationTracker,
    batches: List[List[str]],
    options: MigrationOptions,
) -> List[MigrationJob]:
    """Create one migration per batch, in batch order.

    The first failure aborts the launch; no further migrations are created.
    """
    jobs: List[MigrationJob] = []
    total = len(batches)
    for idx, batch in enumerate(batches, start=1):
        try:
            job_id = client.create_migration(batch, options)
        except LaunchError:
            if jobs:
                Logger.warn(
                    "migrations already started keep running on GitHub: "
                    f"{', '.join(job.id for job in jobs)}"
                )
            raise
        job = MigrationJob(id=job_id, repositories=list(batch), options=options)
        tracker.register(job)
        jobs.append(job)
        Logger.info(f"[{idx}/{total}] started migration {job_id}: {', '.join(batch)}")
    return jobs


class ExportOrchestrator:
    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self.client = MigrationClient(cfg.github)
        self.tracker = MigrationTracker()
        self.poller = MigrationPoller(self.client, self.tracker, cfg.poll)
        self.downloader = ArchiveDownloader(self.client, cfg.archive)
        self.anomalies: List[JobAnomaly] = []

    def run(self) -> int:
        Logger.set_debug(self.cfg.debug)
        try:
            self.client.connect()

            batches = batch_repositories(
                self.cfg.repositories, self.cfg.archive.per_repository
            )
            Logger.info(
                f"exporting {len(self.cfg.repositories)} repositories from "
                f"{self.cfg.github.org} in {len(batches)} migration(s)"
            )
            launch_migrations(self.client, self.tracker, batches, self.cfg.options)

            self.poller.poll_until_done()
            self.anomalies = self.downloader.download_all(self.tracker)
            self._report()
            return EXIT_SUCCESS
        except ExportError as e:
            Logger.error(str(e))
            self._report_abandoned()
            return e.exit_code
        except KeyboardInterrupt:
            Logger.warn("interrupted")
            self._report_abandoned()
            return EXIT_INTERRUPTED
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _report(self) -> None:
        exported = sum(1 for job in self.tracker.jobs() if job.is_successful)
        if not self.anomalies:
            Logger.success(f"exported {exported}/{len(self.tracker)} migrations")
            return

        downloaded = exported - sum(
            1 for anomaly in self.anomalies if anomaly.kind == ANOMALY_DOWNLOAD
        )
        Logger.warn(
            f"downloaded {downloaded}/{len(self.tracker)} archives, "
            f"{len(self.anomalies)} migration(s) need attention:"
        )
        for anomaly in self.anomalies:
            Logger.warn(f"  {anomaly.describe()}")

    def _report_abandoned(self) -> None:
        running = self.tracker.waiting_ids()
        if running:
            Logger.warn(
                f"abandoning {len(running)} migration(s) still running on GitHub: "
                f"{', '.join(sorted(running))}"
            )
