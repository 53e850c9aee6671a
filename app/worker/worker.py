import time

from app.config.settings import Settings
from app.logging.logger import Log
from app.worker.batch_runner import BatchRunner, BatchSummary
from app.worker.exceptions import WorkerError


class Worker:
    """Poll loop: run batch -> sleep when idle."""

    def __init__(self, batch_runner: BatchRunner, settings: Settings) -> None:
        self._batch_runner = batch_runner
        self._settings = settings

    def run(self, max_batches: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_batches is set, stop after that many batches (for testing).
        """
        Log.info("Worker started, polling for uploads")
        batches = 0
        try:
            while max_batches is None or batches < max_batches:
                summary = self._try_run_batch()
                batches += 1
                if summary is None or not summary.results:
                    if max_batches is not None and batches >= max_batches:
                        break
                    Log.debug("No uploads processed, sleeping")
                    time.sleep(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_run_batch(self) -> BatchSummary | None:
        """Run one batch. Setup and database errors are logged, not raised."""
        try:
            return self._batch_runner.run(self._settings.batch_size)
        except WorkerError as exc:
            Log.error(f"Batch setup failed: {exc}")
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
        return None
