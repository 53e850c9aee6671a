import time
from collections.abc import Callable
from dataclasses import dataclass

from app.database.models import ExtractionCredentials, UploadJob, UploadStatus
from app.database.repositories.extraction_log_repository import ExtractionLogRepository
from app.database.repositories.job_repository import JobRepository
from app.extraction.models import FailureKind
from app.logging.logger import Log
from app.processor.models import ProcessingResult, user_message
from app.processor.processor import DocumentProcessor
from app.quota.guard import QuotaGuard


@dataclass(frozen=True)
class JobOutcome:
    """What one claimed upload ended as, for the batch summary."""

    id: int
    status: str
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"id": self.id, "status": self.status}
        if self.error is not None:
            data["error"] = self.error
        return data


class JobRunner:
    """Run one claimed upload to a terminal status. Never raises."""

    def __init__(
        self,
        processor: DocumentProcessor,
        job_repo: JobRepository,
        log_repo: ExtractionLogRepository,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._log_repo = log_repo
        self._clock = clock

    def run(
        self,
        job: UploadJob,
        quota: QuotaGuard,
        credentials: ExtractionCredentials,
        debug: bool = False,
    ) -> JobOutcome:
        """Execute a single claimed job with error handling."""
        Log.info(f"Running upload {job.id}: {job.file_name}")
        started = self._clock()

        if not self._consume_quota(job, quota):
            result = ProcessingResult.failed(FailureKind.QUOTA_EXCEEDED, "monthly ceiling reached")
        else:
            result = self._process(job, credentials, debug)

        outcome = self._finish(job, result)
        self._audit(job, result, elapsed_ms=int((self._clock() - started) * 1000))
        return outcome

    def _consume_quota(self, job: UploadJob, quota: QuotaGuard) -> bool:
        try:
            return quota.try_consume()
        except Exception as exc:
            Log.error(f"Upload {job.id}: quota check failed: {exc}")
            return False

    def _process(
        self,
        job: UploadJob,
        credentials: ExtractionCredentials,
        debug: bool,
    ) -> ProcessingResult:
        try:
            return self._processor.process(job, credentials, debug=debug)
        except Exception as exc:
            Log.exception(f"Upload {job.id}: unexpected processing error: {exc}")
            return ProcessingResult.failed(FailureKind.INTERNAL, repr(exc))

    def _finish(self, job: UploadJob, result: ProcessingResult) -> JobOutcome:
        """Write exactly one terminal status for the job."""
        try:
            if result.ok and result.text is not None:
                written = self._job_repo.mark_completed(job.id, result.text)
                outcome = JobOutcome(id=job.id, status=UploadStatus.COMPLETED.value)
            else:
                kind = result.failure or FailureKind.INTERNAL
                message = user_message(kind)
                Log.error(f"Upload {job.id} failed [{kind.value}]: {result.detail}")
                written = self._job_repo.mark_failed(job.id, message)
                outcome = JobOutcome(id=job.id, status=UploadStatus.FAILED.value, error=message)
            if not written:
                Log.warning(f"Upload {job.id} was no longer processing; status left unchanged")
                return self._stored_outcome(job)
        except Exception as exc:
            Log.exception(f"Upload {job.id}: could not record terminal status: {exc}")
            return JobOutcome(
                id=job.id,
                status=UploadStatus.PROCESSING.value,
                error=user_message(FailureKind.INTERNAL),
            )

        Log.info(f"Upload {job.id} {outcome.status}")
        return outcome

    def _stored_outcome(self, job: UploadJob) -> JobOutcome:
        """Report what the uploads table holds after a lost terminal write."""
        stored = self._job_repo.find_by_id(job.id)
        if stored is None:
            return JobOutcome(
                id=job.id,
                status=UploadStatus.FAILED.value,
                error=user_message(FailureKind.INTERNAL),
            )
        return JobOutcome(id=job.id, status=stored.status, error=stored.error_message)

    def _audit(self, job: UploadJob, result: ProcessingResult, elapsed_ms: int) -> None:
        try:
            self._log_repo.record(
                upload_id=job.id,
                user_id=job.user_id,
                file_name=job.file_name,
                file_size=job.file_size,
                success=result.ok,
                failure_kind=None if result.failure is None else result.failure.value,
                processing_time_ms=elapsed_ms,
            )
        except Exception as exc:
            Log.error(f"Upload {job.id}: failed to write extraction log: {exc}")
