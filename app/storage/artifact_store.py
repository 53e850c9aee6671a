import threading
import time
from collections.abc import Callable

from app.database.models import ArtifactKind, DebugArtifact
from app.database.repositories.artifact_repository import ArtifactRepository
from app.logging.logger import Log
from app.storage.blob_storage import BaseBlobStorage
from app.storage.file_naming import RAW_ARCHIVE_TAGS, ArtifactTag, artifact_file_name


class ArtifactStore:
    """Keeps raw result archives and extracted text for forensic replay.

    Saving is best-effort: any storage or database failure is logged and
    reported as an empty location, never raised to the caller.
    """

    def __init__(
        self,
        blob_storage: BaseBlobStorage,
        artifact_repo: ArtifactRepository,
        max_per_kind: int,
        cleanup_every: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._blob_storage = blob_storage
        self._artifact_repo = artifact_repo
        self._max_per_kind = max_per_kind
        self._cleanup_every = max(cleanup_every, 1)
        self._clock = clock
        self._saves_since_cleanup = 0
        self._cleanup_lock = threading.Lock()

    def save_raw(self, data: bytes, file_name: str, user_id: str, tag: ArtifactTag) -> str:
        """Persist a downloaded archive. Returns its location or ''."""
        if tag not in RAW_ARCHIVE_TAGS:
            raise ValueError(f"'{tag}' is not a raw-archive tag")
        return self._save(
            data=data,
            file_name=file_name,
            user_id=user_id,
            tag=tag,
            kind=ArtifactKind.RAW_ARCHIVE,
            extension="zip",
            content_type="application/zip",
        )

    def save_text(self, text: str, file_name: str, user_id: str) -> str:
        """Persist extracted text. Returns its location or ''."""
        return self._save(
            data=text.encode("utf-8"),
            file_name=file_name,
            user_id=user_id,
            tag=ArtifactTag.EXTRACTED,
            kind=ArtifactKind.EXTRACTED_TEXT,
            extension="txt",
            content_type="text/plain; charset=utf-8",
        )

    def _save(
        self,
        *,
        data: bytes,
        file_name: str,
        user_id: str,
        tag: ArtifactTag,
        kind: ArtifactKind,
        extension: str,
        content_type: str,
    ) -> str:
        key = artifact_file_name(
            user_id, file_name, tag, extension, timestamp_ms=int(self._clock() * 1000)
        )
        try:
            self._blob_storage.upload(key, data, content_type)
            self._artifact_repo.insert(
                DebugArtifact(
                    user_id=user_id,
                    original_filename=file_name,
                    kind=kind.value,
                    tag=tag.value,
                    file_size=len(data),
                    storage_path=key,
                )
            )
            location = self._blob_storage.public_url(key)
        except Exception as exc:
            Log.error(f"Failed to save debug artifact {key}: {exc}")
            return ""

        Log.info(f"Saved debug artifact {key} ({len(data)} bytes)")
        self._maybe_cleanup()
        return location

    def _maybe_cleanup(self) -> None:
        # Shared by concurrent batches.
        with self._cleanup_lock:
            self._saves_since_cleanup += 1
            if self._saves_since_cleanup < self._cleanup_every:
                return
            self._saves_since_cleanup = 0
        try:
            removed = self._artifact_repo.delete_beyond_limit(self._max_per_kind)
            if removed:
                self._blob_storage.remove(removed)
                Log.info(f"Retention cleanup removed {len(removed)} debug artifacts")
        except Exception as exc:
            Log.error(f"Debug artifact retention cleanup failed: {exc}")
