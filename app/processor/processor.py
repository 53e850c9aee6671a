import httpx

from app.archive import structured_text
from app.archive.exceptions import MalformedContainerError, UnparsableContentError
from app.archive.validator import is_valid_archive
from app.config.settings import Settings
from app.database.connection import Database
from app.database.models import ExtractionCredentials, UploadJob
from app.database.repositories.artifact_repository import ArtifactRepository
from app.extraction.client import ExtractionClient, build_extraction_client
from app.extraction.models import FailureKind
from app.logging.logger import Log
from app.processor.models import ProcessingResult
from app.storage.artifact_store import ArtifactStore
from app.storage.blob_storage import BlobStorageFactory
from app.storage.file_naming import ArtifactTag


class DocumentProcessor:
    """Turns one upload into plain text.

    Pipeline: extract via service -> validate archive -> parse -> keep artifacts.
    The raw archive is kept whatever the parse outcome, tagged with why.
    """

    def __init__(self, client: ExtractionClient, artifact_store: ArtifactStore) -> None:
        self._client = client
        self._artifact_store = artifact_store

    def process(
        self,
        job: UploadJob,
        credentials: ExtractionCredentials,
        debug: bool = False,
    ) -> ProcessingResult:
        extraction = self._client.extract(
            job.file_content,
            job.file_name,
            credentials,
            media_type=job.file_type,
            debug=debug,
        )
        if not extraction.ok or extraction.data is None:
            kind = extraction.failure or FailureKind.TRANSPORT
            return ProcessingResult.failed(kind, extraction.detail)

        archive = extraction.data
        try:
            text = self._parse(archive)
        except MalformedContainerError as exc:
            Log.error(
                f"Upload {job.id}: {exc} ({len(archive)} bytes, magic {Log.magic(archive)})"
            )
            self._artifact_store.save_raw(archive, job.file_name, job.user_id, ArtifactTag.INVALID_ZIP)
            return ProcessingResult.failed(FailureKind.MALFORMED_CONTAINER, str(exc))
        except UnparsableContentError as exc:
            Log.error(f"Upload {job.id}: {exc}")
            self._artifact_store.save_raw(
                archive, job.file_name, job.user_id, ArtifactTag.EXTRACTION_FAILED
            )
            return ProcessingResult.failed(FailureKind.UNPARSABLE_CONTENT, str(exc))

        self._artifact_store.save_raw(archive, job.file_name, job.user_id, ArtifactTag.DOWNLOADED)
        self._artifact_store.save_text(text, job.file_name, job.user_id)
        Log.info(f"Upload {job.id}: extracted {len(text)} chars")
        return ProcessingResult.success(text)

    @staticmethod
    def _parse(archive: bytes) -> str:
        """Validate the container, then pull the text out of it.

        Raises:
            MalformedContainerError: if the payload is not a ZIP archive.
            UnparsableContentError: if the structured content is missing or malformed.
        """
        if not is_valid_archive(archive):
            raise MalformedContainerError("Result is not a ZIP archive")
        return structured_text.extract_text(archive)


def build_processor(settings: Settings, database: Database, http: httpx.Client) -> DocumentProcessor:
    """Build a DocumentProcessor with all required adapters."""
    client = build_extraction_client(settings, http)
    artifact_store = ArtifactStore(
        blob_storage=BlobStorageFactory.create(settings),
        artifact_repo=ArtifactRepository(database),
        max_per_kind=settings.artifact_max_per_kind,
        cleanup_every=settings.artifact_cleanup_every,
    )
    return DocumentProcessor(client=client, artifact_store=artifact_store)
