from abc import ABC, abstractmethod

from migrator.media.models import BlobReference


class BaseBlobSink(ABC):
    """Contract for all blob storage adapters."""

    @abstractmethod
    def store(self, prefix: str, data: bytes, ext: str) -> BlobReference:
        """Write `data` under a new, unique name derived from `prefix`.

        Args:
            prefix: Human-readable context (field key, plan name, list index).
            data: Decoded binary content.
            ext: File extension including the dot, e.g. ".png".

        Returns:
            BlobReference pointing at the stored bytes.

        Raises:
            BlobWriteError: on any storage failure.
        """

    @abstractmethod
    def read(self, name: str) -> bytes:
        """Return the bytes of a previously stored blob.

        Raises:
            BlobNotFoundError: if no blob with this name exists.
        """
