from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.settings import Settings
from app.logging.logger import Log
from app.worker.batch_runner import BatchRunner
from app.worker.exceptions import WorkerError


def create_app(batch_runner: BatchRunner, settings: Settings) -> FastAPI:
    """HTTP trigger for one batch run. Only POST is routed; other methods get 405."""
    app = FastAPI(title="Document extraction worker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.post("/process-queue")
    def process_queue() -> JSONResponse:
        # Sync handler: FastAPI runs it in a worker thread, so concurrent
        # triggers become concurrent batches.
        Log.info("Batch triggered over HTTP")
        try:
            summary = batch_runner.run(settings.batch_size)
        except WorkerError as exc:
            Log.error(f"Batch setup failed: {exc}")
            return JSONResponse(status_code=500, content={"error": str(exc)})
        except Exception as exc:
            Log.exception(f"Batch processing error: {exc}")
            return JSONResponse(status_code=500, content={"error": "Batch processing failed"})
        return JSONResponse(status_code=200, content=summary.to_dict())

    return app
