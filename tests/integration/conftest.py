import os
import uuid
from collections.abc import Generator

import pytest
from pymongo.collection import Collection

from migrator.config.settings import Settings
from migrator.database.connection import close_client, get_database, init_client, ping


def _test_settings() -> Settings:
    os.environ.setdefault("MONGO_DATABASE", "migrator_test")
    os.environ.setdefault("MONGO_TIMEOUT_MS", "2000")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_client(test_settings: Settings) -> Generator[None, None, None]:
    init_client(test_settings)
    try:
        ping()
    except Exception as e:
        close_client()
        pytest.skip(f"MongoDB test instance not available: {e}. Set MONGO_URI to run.")
    try:
        yield
    finally:
        close_client()


@pytest.fixture
def collection_name(integration_client: None) -> Generator[str, None, None]:
    name = f"it_{uuid.uuid4().hex[:12]}"
    yield name
    get_database().drop_collection(name)


@pytest.fixture
def collection(collection_name: str) -> Collection:
    return get_database()[collection_name]
