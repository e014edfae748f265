import contextlib
import os
import re
import secrets
from pathlib import Path

from migrator.logging.logger import Log
from migrator.media.base import BaseBlobSink
from migrator.media.exceptions import BlobNotFoundError, BlobWriteError
from migrator.media.models import BlobReference

_MIN_RANDOM_BYTES = 8
_MAX_RANDOM_BYTES = 16
_MAX_NAME_ATTEMPTS = 5
_FILE_MODE = 0o644
# Keeps `<prefix>-<hex><ext>` well under NAME_MAX (255 bytes) even for
# multi-byte UTF-8 prefixes.
_MAX_PREFIX_LENGTH = 64

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^\w-]")


def sanitize_prefix(prefix: str) -> str:
    """Lowercase, turn whitespace into '-', drop anything not filesystem-safe.

    Unicode letters and digits are kept so non-Latin names stay readable.
    The result is capped at 64 characters.
    """
    cleaned = _WHITESPACE.sub("-", prefix.strip().lower())
    cleaned = _UNSAFE.sub("", cleaned)[:_MAX_PREFIX_LENGTH]
    return cleaned or "blob"


class LocalBlobSink(BaseBlobSink):
    """Writes blobs as world-readable files in a local uploads directory."""

    def __init__(
        self,
        root: Path,
        public_prefix: str = "/uploads",
        random_bytes: int = 16,
    ) -> None:
        if not _MIN_RANDOM_BYTES <= random_bytes <= _MAX_RANDOM_BYTES:
            raise ValueError(
                f"random_bytes must be between {_MIN_RANDOM_BYTES} and "
                f"{_MAX_RANDOM_BYTES}, got {random_bytes}"
            )
        self._root = root
        self._public_prefix = public_prefix.rstrip("/")
        self._random_bytes = random_bytes

    def generate_name(self, prefix: str, ext: str) -> str:
        """Build `<sanitized-prefix>-<hex-random><ext>`."""
        token = secrets.token_hex(self._random_bytes)
        return f"{sanitize_prefix(prefix)}-{token}{ext}"

    def store(self, prefix: str, data: bytes, ext: str) -> BlobReference:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BlobWriteError(f"cannot create {self._root}: {exc}") from exc

        for _ in range(_MAX_NAME_ATTEMPTS):
            name = self.generate_name(prefix, ext)
            path = self._root / name
            try:
                with path.open("xb") as fh:
                    fh.write(data)
            except FileExistsError:
                Log.warning(f"Blob name collision on {name}, drawing a new one")
                continue
            except OSError as exc:
                self._discard(path)
                raise BlobWriteError(f"failed to write {name}: {exc}") from exc
            try:
                path.chmod(_FILE_MODE)
            except OSError as exc:
                self._discard(path)
                raise BlobWriteError(f"failed to set permissions on {name}: {exc}") from exc
            return BlobReference(name=name, public_path=f"{self._public_prefix}/{name}")

        raise BlobWriteError(
            f"could not find a free name for prefix '{prefix}' "
            f"after {_MAX_NAME_ATTEMPTS} attempts"
        )

    def read(self, name: str) -> bytes:
        if not name or os.sep in name or "/" in name or name in (".", ".."):
            raise BlobNotFoundError(f"invalid blob name: {name!r}")
        path = self._root / name
        if not path.is_file():
            raise BlobNotFoundError(f"Blob not found: {path}")
        return path.read_bytes()

    @staticmethod
    def _discard(path: Path) -> None:
        """Best-effort removal of a partially written blob."""
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
