import base64
from datetime import datetime, timezone
from pathlib import Path

import pytest

from migrator.media.blob_sink import LocalBlobSink
from migrator.media.walker import TreeWalker

# 1x1 transparent PNG.
_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def png_bytes() -> bytes:
    """A real, minimal PNG image."""
    return base64.b64decode(_PNG_B64)


@pytest.fixture()
def png_data_uri() -> str:
    return f"data:image/png;base64,{_PNG_B64}"


@pytest.fixture()
def uploads_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def sink(uploads_dir: Path) -> LocalBlobSink:
    return LocalBlobSink(uploads_dir)


@pytest.fixture()
def walker(sink: LocalBlobSink) -> TreeWalker:
    return TreeWalker(sink)


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW
