from dataclasses import dataclass

from app.extraction.models import FailureKind

_FORMAT_GUIDANCE = (
    "Document processing encountered an issue. "
    "Please try a different file format or re-save the document and upload it again."
)
_SERVICE_GUIDANCE = (
    "Document processing is temporarily unavailable. Please try again later."
)

USAGE_LIMIT_MESSAGE = "Usage limit exceeded. Please try again next month."
STALE_JOB_MESSAGE = "Processing timed out. Please upload the file again."

# The only texts ever written to uploads.error_message.
USER_MESSAGES: dict[FailureKind, str] = {
    FailureKind.QUOTA_EXCEEDED: USAGE_LIMIT_MESSAGE,
    FailureKind.AUTHENTICATION: _SERVICE_GUIDANCE,
    FailureKind.TRANSPORT: _SERVICE_GUIDANCE,
    FailureKind.JOB_REJECTED: _FORMAT_GUIDANCE,
    FailureKind.POLL_TIMEOUT: _SERVICE_GUIDANCE,
    FailureKind.JOB_FAILED: _FORMAT_GUIDANCE,
    FailureKind.MALFORMED_CONTAINER: _FORMAT_GUIDANCE,
    FailureKind.UNPARSABLE_CONTENT: _FORMAT_GUIDANCE,
    FailureKind.INTERNAL: _SERVICE_GUIDANCE,
}


def user_message(kind: FailureKind) -> str:
    """Return the fixed user-facing message for a failure kind."""
    return USER_MESSAGES[kind]


@dataclass(frozen=True)
class ProcessingResult:
    """Per-job outcome: extracted text or a classified failure."""

    text: str | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, text: str) -> "ProcessingResult":
        return cls(text=text)

    @classmethod
    def failed(cls, kind: FailureKind, detail: str = "") -> "ProcessingResult":
        return cls(failure=kind, detail=detail)
