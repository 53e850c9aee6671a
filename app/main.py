import httpx
import uvicorn

from app.api.server import create_app
from app.config.settings import Settings
from app.database.connection import Database
from app.logging.logger import Log
from app.worker.batch_runner import build_batch_runner
from app.worker.worker import Worker


def main() -> None:
    """Entry point: open pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    database = Database.connect(settings)

    try:
        with httpx.Client(timeout=settings.extraction_http_timeout_seconds) as http:
            batch_runner = build_batch_runner(settings, database, http)
            worker = Worker(batch_runner, settings)
            worker.run()
    finally:
        database.close()


def serve() -> None:
    """Entry point: expose the batch trigger over HTTP."""
    settings = Settings()
    Log.configure(settings.log_level)
    database = Database.connect(settings)

    try:
        with httpx.Client(timeout=settings.extraction_http_timeout_seconds) as http:
            batch_runner = build_batch_runner(settings, database, http)
            app = create_app(batch_runner, settings)
            uvicorn.run(app, host=settings.api_host, port=settings.api_port)
    finally:
        database.close()


if __name__ == "__main__":
    main()
