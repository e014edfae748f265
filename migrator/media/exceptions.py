class MediaMigrationError(Exception):
    """Base exception for all media migration errors."""


class DecodeError(MediaMigrationError):
    """Raised when an embedded data URI cannot be decoded."""


class MalformedURIError(DecodeError):
    """Raised when a string is not a well-formed base64 data URI."""


class InvalidBase64Error(DecodeError):
    """Raised when the payload of a data URI is not valid base64."""


class BlobWriteError(MediaMigrationError):
    """Raised when decoded bytes cannot be written to blob storage."""


class BlobNotFoundError(MediaMigrationError):
    """Raised when a blob cannot be found by name."""


class PersistenceError(MediaMigrationError):
    """Raised when a mutated document cannot be written back to the store."""


class CursorError(MediaMigrationError):
    """Raised when the source collection cannot be opened or iterated."""


class MigrationInProgressError(MediaMigrationError):
    """Raised when a migration run is requested while another is in flight."""
