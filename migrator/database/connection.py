from pymongo import MongoClient
from pymongo.database import Database

from migrator.config.settings import Settings

_client: MongoClient | None = None
_database_name: str | None = None


def init_client(settings: Settings) -> None:
    """Initialize the global Mongo client from settings."""
    global _client, _database_name  # noqa: PLW0603
    _client = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
    )
    _database_name = settings.mongo_database


def close_client() -> None:
    """Close the global Mongo client."""
    global _client, _database_name  # noqa: PLW0603
    if _client is not None:
        _client.close()
        _client = None
        _database_name = None


def get_database() -> Database:
    """Return the configured database. Call init_client() first."""
    if _client is None or _database_name is None:
        raise RuntimeError("Mongo client not initialized. Call init_client() first.")
    return _client[_database_name]


def ping() -> None:
    """Round-trip to the server; raises PyMongoError when unreachable."""
    get_database().command("ping")
