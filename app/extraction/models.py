from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    """Classification of every terminal failure a job can end with."""

    QUOTA_EXCEEDED = "quota_exceeded"
    AUTHENTICATION = "authentication"
    TRANSPORT = "transport"
    JOB_REJECTED = "job_rejected"
    POLL_TIMEOUT = "poll_timeout"
    JOB_FAILED = "job_failed"
    MALFORMED_CONTAINER = "malformed_container"
    UNPARSABLE_CONTENT = "unparsable_content"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ExtractionAsset:
    """Upload target reserved for one document payload."""

    asset_id: str
    upload_uri: str


@dataclass(frozen=True)
class ExtractionJobHandle:
    """Status-polling reference of an asynchronous conversion job."""

    location: str


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one protocol exchange: archive bytes or a classified failure."""

    data: bytes | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, data: bytes) -> "ExtractionResult":
        return cls(data=data)

    @classmethod
    def failed(cls, kind: FailureKind, detail: str) -> "ExtractionResult":
        return cls(failure=kind, detail=detail)
