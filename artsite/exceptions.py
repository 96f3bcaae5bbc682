"""Error kinds raised by the backup/restore engine and its stores."""


class BackupError(Exception):
    """Base class for all engine errors."""

    error = "Backup error"


class InvalidPayloadError(BackupError):
    """Required fields or files are missing from a request."""

    error = "Invalid payload"


class NoComponentsSelectedError(BackupError):
    error = "No components selected"

    def __init__(self, message: str = "No components selected for backup"):
        super().__init__(message)


class ComponentNotFoundError(BackupError):
    """Unknown component key, or a key absent from the archive manifest."""

    error = "Component not found"

    def __init__(self, key: str, message: str = None):
        self.key = key
        super().__init__(message or f"Unknown component: {key}")


class MalformedArchiveError(BackupError):
    error = "Failed to process backup file"


class NotFoundOrForbiddenError(BackupError):
    """Record does not exist or belongs to another account."""

    error = "Not found"


class UnauthorizedError(BackupError):
    error = "Unauthorized"


class StorageError(BackupError):
    """Relational or blob store failure."""

    error = "Storage error"


class BlobNotFoundError(StorageError):
    """The blob store reported the key as absent."""

    error = "Blob not found"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Blob not found: {key}")
