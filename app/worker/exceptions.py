class WorkerError(Exception):
    """Base exception for batch setup errors."""


class CredentialsNotConfiguredError(WorkerError):
    """Raised when no active extraction credentials exist."""
