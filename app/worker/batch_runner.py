from dataclasses import dataclass, field

import httpx

from app.config.settings import Settings
from app.database.connection import Database
from app.database.repositories.extraction_log_repository import ExtractionLogRepository
from app.database.repositories.job_repository import JobRepository
from app.database.repositories.settings_repository import SettingsRepository
from app.database.repositories.usage_repository import UsageRepository
from app.logging.logger import Log
from app.processor.models import STALE_JOB_MESSAGE
from app.processor.processor import build_processor
from app.quota.guard import QuotaGuard
from app.worker.exceptions import CredentialsNotConfiguredError
from app.worker.job_runner import JobOutcome, JobRunner


@dataclass
class BatchSummary:
    """Response body of one batch invocation."""

    message: str
    results: list[JobOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "results": [outcome.to_dict() for outcome in self.results],
        }


class BatchRunner:
    """Claims a bounded batch of queued uploads and processes them in order.

    Jobs run one after another; concurrency only comes from several batch
    invocations, kept apart by the conditional claim.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        settings_repo: SettingsRepository,
        usage_repo: UsageRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._settings_repo = settings_repo
        self._usage_repo = usage_repo
        self._job_runner = job_runner
        self._settings = settings

    def run(self, batch_size: int | None = None) -> BatchSummary:
        """Process up to batch_size queued uploads.

        Raises:
            CredentialsNotConfiguredError: if no active credentials exist.
        """
        limit = batch_size if batch_size is not None else self._settings.batch_size
        site = self._settings_repo.get_site_settings()
        if not site.extraction_enabled:
            Log.info("Extraction is disabled, skipping batch")
            return BatchSummary(message="Extraction disabled")

        credentials = self._settings_repo.get_active_credentials()
        if credentials is None:
            raise CredentialsNotConfiguredError("Extraction credentials not configured")

        self._fail_stale_jobs()

        pending = self._job_repo.find_pending_ids(limit, self._settings.supported_file_types)
        if not pending:
            Log.debug("No pending uploads found")
            return BatchSummary(message="No pending uploads")

        Log.info(f"Found {len(pending)} pending uploads to process")
        quota = QuotaGuard(self._usage_repo, site.monthly_limit)
        results: list[JobOutcome] = []
        for job_id in pending:
            job = self._job_repo.claim(job_id)
            if job is None:
                Log.info(f"Upload {job_id} already claimed elsewhere, skipping")
                continue
            results.append(
                self._job_runner.run(job, quota, credentials, debug=site.debug_mode)
            )

        return BatchSummary(message=f"Processed {len(results)} uploads", results=results)

    def _fail_stale_jobs(self) -> None:
        timeout = self._settings.stale_job_timeout_seconds
        stale = self._job_repo.fail_stale(timeout, STALE_JOB_MESSAGE)
        if stale:
            Log.warning(
                f"Failed {len(stale)} uploads stuck in processing for over {timeout}s: {stale}"
            )


def build_batch_runner(settings: Settings, database: Database, http: httpx.Client) -> BatchRunner:
    """Wire repositories, processor and job runner into a BatchRunner."""
    job_repo = JobRepository(database)
    job_runner = JobRunner(
        processor=build_processor(settings, database, http),
        job_repo=job_repo,
        log_repo=ExtractionLogRepository(database),
    )
    return BatchRunner(
        job_repo=job_repo,
        settings_repo=SettingsRepository(database),
        usage_repo=UsageRepository(database),
        job_runner=job_runner,
        settings=settings,
    )
