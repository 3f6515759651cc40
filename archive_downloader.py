#!/usr/bin/env python3
"""Downloads the archives of finished migrations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from config import ArchiveConfig
from errors import DownloadError
from github_client import MigrationClient
from logging_utils import Logger
from migration_tracker import MigrationJob, MigrationTracker
from security import SecurityValidator
from utils import archive_filename

ANOMALY_UNSUCCESSFUL = "unsuccessful"
ANOMALY_DOWNLOAD = "download"


@dataclass
class JobAnomaly:
    """A non-fatal per-job problem reported at the end of a run."""
    job_id: str
    kind: str
    state: str
    repositories: List[str]
    detail: str = ""

    def describe(self) -> str:
        repos = ", ".join(self.repositories)
        if self.kind == ANOMALY_UNSUCCESSFUL:
            return f"migration {self.job_id} ended '{self.state}' for: {repos}"
        return f"migration {self.job_id} archive not downloaded ({self.detail}) for: {repos}"


class ArchiveDownloader:
    """Fetches archives for exported migrations and reports the others."""

    def __init__(self, client: MigrationClient, config: ArchiveConfig) -> None:
        self.client = client
        self.config = config

    def archive_path(self, job: MigrationJob) -> str:
        filename = archive_filename(
            job.id, self.config.base_name, self.config.per_repository
        )
        return os.path.join(self.config.output_dir, filename)

    def download_all(self, tracker: MigrationTracker) -> List[JobAnomaly]:
        """Download every exported archive; returns the anomalies encountered."""
        anomalies: List[JobAnomaly] = []
        jobs = sorted(tracker.jobs(), key=lambda job: job.id)
        os.makedirs(self.config.output_dir, exist_ok=True)

        for idx, job in enumerate(jobs, start=1):
            if job.is_waiting:
                # The poller only returns once nothing is waiting
                raise RuntimeError(f"migration {job.id} is not terminal ({job.state})")

            if not job.is_successful:
                anomaly = JobAnomaly(job.id, ANOMALY_UNSUCCESSFUL, job.state, job.repositories)
                Logger.warn(f"[{idx}/{len(jobs)}] skipping download: {anomaly.describe()}")
                anomalies.append(anomaly)
                continue

            path = self.archive_path(job)
            Logger.info(f"[{idx}/{len(jobs)}] downloading migration {job.id} -> {path}")
            try:
                size = self.client.download_archive(job.id, path)
            except DownloadError as e:
                safe_error = SecurityValidator.sanitize_for_logging(str(e))
                Logger.error(safe_error)
                anomalies.append(
                    JobAnomaly(job.id, ANOMALY_DOWNLOAD, job.state, job.repositories, safe_error)
                )
                continue
            Logger.success(f"wrote {path} ({size} bytes)")

        return anomalies
