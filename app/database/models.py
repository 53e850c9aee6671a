from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class UploadStatus(StrEnum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ArtifactKind(StrEnum):
    RAW_ARCHIVE = "raw-archive"
    EXTRACTED_TEXT = "extracted-text"


@dataclass
class UploadJob:
    """Represents a row from the uploads table."""

    id: int
    user_id: str
    file_name: str
    file_type: str
    status: str
    file_content: bytes = field(default=b"", repr=False)
    file_size: int = 0
    extracted_text: str | None = None
    error_message: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ExtractionCredentials:
    """Active API identity for the extraction service."""

    client_id: str
    client_secret: str = field(repr=False)
    organization_id: str


@dataclass(frozen=True)
class SiteSettings:
    """Runtime switches read once per batch from the site_settings table."""

    extraction_enabled: bool = False
    debug_mode: bool = False
    monthly_limit: int = 0


@dataclass
class DebugArtifact:
    """Represents a row from the debug_artifacts table."""

    user_id: str
    original_filename: str
    kind: str
    tag: str
    file_size: int
    storage_path: str
    id: int | None = None
    created_at: datetime | None = None
