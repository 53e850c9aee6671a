from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

from app.config.settings import Settings
from app.storage.exceptions import InvalidStorageKeyError, UnsupportedStorageDiskError


class BaseBlobStorage(ABC):
    """Contract for debug-artifact blob storage backends."""

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str) -> None:
        """Store data under key, replacing any previous object."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return an accessible reference for a stored key."""

    @abstractmethod
    def remove(self, keys: list[str]) -> None:
        """Delete the given keys; missing keys are ignored."""


class LocalBlobStorage(BaseBlobStorage):
    """Stores blobs as files below a root directory."""

    def __init__(self, root: Path, public_base_url: str = "") -> None:
        self._root = root
        self._public_base_url = public_base_url.rstrip("/")

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def public_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{quote(key)}"
        return self._resolve(key).as_uri()

    def remove(self, keys: list[str]) -> None:
        for key in keys:
            self._resolve(key).unlink(missing_ok=True)

    def _resolve(self, key: str) -> Path:
        root = self._root.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root):
            raise InvalidStorageKeyError(f"Key '{key}' escapes storage root")
        return path


class BlobStorageFactory:
    """Creates the blob storage backend selected by settings."""

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStorage:
        disk = settings.storage_disk.lower()
        if disk != "local":
            raise UnsupportedStorageDiskError(f"storage_disk '{disk}' is not supported")
        return LocalBlobStorage(
            root=Path(settings.artifacts_root),
            public_base_url=settings.artifacts_public_base_url,
        )
