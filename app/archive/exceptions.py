class ArchiveError(Exception):
    """Base exception for result-archive handling."""


class MalformedContainerError(ArchiveError):
    """Raised when a payload does not carry a recognized archive signature."""


class UnparsableContentError(ArchiveError):
    """Raised when the structured-content entry is missing or has the wrong shape."""
