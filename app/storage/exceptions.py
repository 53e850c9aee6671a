class StorageError(Exception):
    """Base exception for blob storage errors."""


class UnsupportedStorageDiskError(StorageError):
    """Raised when the configured storage disk type is not supported."""


class InvalidStorageKeyError(StorageError):
    """Raised when a key would resolve outside the storage root."""
