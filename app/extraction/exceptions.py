from app.extraction.models import FailureKind


class ExtractionError(Exception):
    """Base exception for the extraction service protocol."""

    kind: FailureKind = FailureKind.TRANSPORT


class AuthenticationError(ExtractionError):
    """Raised when the service refuses to issue or accept an access token."""

    kind = FailureKind.AUTHENTICATION


class TransportError(ExtractionError):
    """Raised on a network failure or non-success response outside job creation."""

    kind = FailureKind.TRANSPORT


class JobRejectedError(ExtractionError):
    """Raised when the service refuses to create the conversion job."""

    kind = FailureKind.JOB_REJECTED


class PollTimeoutError(ExtractionError):
    """Raised when the job stays in progress past the attempt ceiling."""

    kind = FailureKind.POLL_TIMEOUT


class JobFailedError(ExtractionError):
    """Raised when the service reports the conversion itself failed."""

    kind = FailureKind.JOB_FAILED
