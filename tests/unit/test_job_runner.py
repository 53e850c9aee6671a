from dataclasses import replace
from unittest.mock import MagicMock

from app.database.models import ExtractionCredentials, UploadJob
from app.database.repositories.extraction_log_repository import ExtractionLogRepository
from app.database.repositories.job_repository import JobRepository
from app.extraction.models import FailureKind
from app.processor.models import (
    STALE_JOB_MESSAGE,
    USAGE_LIMIT_MESSAGE,
    ProcessingResult,
    user_message,
)
from app.processor.processor import DocumentProcessor
from app.quota.guard import QuotaGuard
from app.worker.job_runner import JobOutcome, JobRunner


def _make_runner(
    result: ProcessingResult | None = None,
    quota_allows: bool = True,
) -> tuple[JobRunner, MagicMock, MagicMock, MagicMock, MagicMock]:
    """Create a JobRunner with mocked dependencies."""
    processor = MagicMock(spec=DocumentProcessor)
    processor.process.return_value = result or ProcessingResult.success("Hello world")
    job_repo = MagicMock(spec=JobRepository)
    job_repo.mark_completed.return_value = True
    job_repo.mark_failed.return_value = True
    log_repo = MagicMock(spec=ExtractionLogRepository)
    quota = MagicMock(spec=QuotaGuard)
    quota.try_consume.return_value = quota_allows
    ticks = iter([10.0, 10.25])
    runner = JobRunner(processor, job_repo, log_repo, clock=lambda: next(ticks))
    return runner, processor, job_repo, log_repo, quota


class TestSuccessfulProcessing:
    def test_marks_completed_with_text(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, _processor, job_repo, _log, quota = _make_runner()

        outcome = runner.run(upload_job, quota, credentials)

        job_repo.mark_completed.assert_called_once_with(7, "Hello world")
        job_repo.mark_failed.assert_not_called()
        assert outcome == JobOutcome(id=7, status="completed")

    def test_passes_debug_flag(self, upload_job: UploadJob, credentials: ExtractionCredentials) -> None:
        runner, processor, _repo, _log, quota = _make_runner()

        runner.run(upload_job, quota, credentials, debug=True)

        processor.process.assert_called_once_with(upload_job, credentials, debug=True)

    def test_writes_audit_log(self, upload_job: UploadJob, credentials: ExtractionCredentials) -> None:
        runner, _processor, _repo, log_repo, quota = _make_runner()

        runner.run(upload_job, quota, credentials)

        log_repo.record.assert_called_once_with(
            upload_id=7,
            user_id="42",
            file_name="My CV (final).pdf",
            file_size=13,
            success=True,
            failure_kind=None,
            processing_time_ms=250,
        )


class TestQuotaDenied:
    def test_marks_failed_with_usage_message(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, processor, job_repo, _log, quota = _make_runner(quota_allows=False)

        outcome = runner.run(upload_job, quota, credentials)

        processor.process.assert_not_called()
        job_repo.mark_failed.assert_called_once_with(7, USAGE_LIMIT_MESSAGE)
        assert outcome.status == "failed"
        assert outcome.error == USAGE_LIMIT_MESSAGE

    def test_quota_store_error_counts_as_denied(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, processor, job_repo, _log, quota = _make_runner()
        quota.try_consume.side_effect = RuntimeError("db down")

        runner.run(upload_job, quota, credentials)

        processor.process.assert_not_called()
        job_repo.mark_failed.assert_called_once_with(7, USAGE_LIMIT_MESSAGE)


class TestProcessingFailure:
    def test_stores_user_message_not_detail(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        result = ProcessingResult.failed(FailureKind.JOB_FAILED, "BAD_PDF: xref table broken")
        runner, _processor, job_repo, _log, quota = _make_runner(result)

        outcome = runner.run(upload_job, quota, credentials)

        message = user_message(FailureKind.JOB_FAILED)
        job_repo.mark_failed.assert_called_once_with(7, message)
        assert "BAD_PDF" not in message
        assert outcome == JobOutcome(id=7, status="failed", error=message)

    def test_audit_log_records_failure_kind(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        result = ProcessingResult.failed(FailureKind.MALFORMED_CONTAINER)
        runner, _processor, _repo, log_repo, quota = _make_runner(result)

        runner.run(upload_job, quota, credentials)

        kwargs = log_repo.record.call_args.kwargs
        assert kwargs["success"] is False
        assert kwargs["failure_kind"] == "malformed_container"

    def test_unexpected_exception_is_contained(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, processor, job_repo, _log, quota = _make_runner()
        processor.process.side_effect = KeyError("boom")

        outcome = runner.run(upload_job, quota, credentials)

        job_repo.mark_failed.assert_called_once_with(7, user_message(FailureKind.INTERNAL))
        assert outcome.status == "failed"


class TestBestEffortSideEffects:
    def test_audit_log_failure_does_not_change_outcome(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, _processor, _repo, log_repo, quota = _make_runner()
        log_repo.record.side_effect = RuntimeError("db down")

        assert runner.run(upload_job, quota, credentials).status == "completed"

    def test_terminal_write_failure_reports_processing(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, _processor, job_repo, _log, quota = _make_runner()
        job_repo.mark_completed.side_effect = RuntimeError("db down")

        outcome = runner.run(upload_job, quota, credentials)

        assert outcome.status == "processing"

    def test_lost_claim_reports_stored_status(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, _processor, job_repo, _log, quota = _make_runner()
        job_repo.mark_completed.return_value = False
        job_repo.find_by_id.return_value = replace(
            upload_job, status="failed", error_message=STALE_JOB_MESSAGE
        )

        outcome = runner.run(upload_job, quota, credentials)

        job_repo.find_by_id.assert_called_once_with(7)
        assert outcome == JobOutcome(id=7, status="failed", error=STALE_JOB_MESSAGE)

    def test_lost_failure_write_reports_stored_status(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        result = ProcessingResult.failed(FailureKind.JOB_FAILED)
        runner, _processor, job_repo, _log, quota = _make_runner(result)
        job_repo.mark_failed.return_value = False
        job_repo.find_by_id.return_value = replace(
            upload_job, status="completed", error_message=None
        )

        outcome = runner.run(upload_job, quota, credentials)

        assert outcome == JobOutcome(id=7, status="completed")

    def test_lost_claim_on_deleted_upload_reports_failed(
        self, upload_job: UploadJob, credentials: ExtractionCredentials
    ) -> None:
        runner, _processor, job_repo, _log, quota = _make_runner()
        job_repo.mark_completed.return_value = False
        job_repo.find_by_id.return_value = None

        outcome = runner.run(upload_job, quota, credentials)

        assert outcome.status == "failed"
        assert outcome.error == user_message(FailureKind.INTERNAL)


class TestJobOutcome:
    def test_to_dict_omits_missing_error(self) -> None:
        assert JobOutcome(id=1, status="completed").to_dict() == {"id": 1, "status": "completed"}

    def test_to_dict_includes_error(self) -> None:
        assert JobOutcome(id=1, status="failed", error="x").to_dict() == {
            "id": 1,
            "status": "failed",
            "error": "x",
        }
