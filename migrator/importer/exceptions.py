class ImporterError(Exception):
    """Base exception for all import errors."""


class ImportFileError(ImporterError):
    """Raised when an export file cannot be read or has the wrong shape."""
