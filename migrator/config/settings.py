from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Credentials belong in MONGO_URI from the environment, never here.
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "isy_api"
    mongo_timeout_ms: int = 10000

    uploads_dir: str = "./uploads"
    uploads_public_prefix: str = "/uploads"
    blob_random_bytes: int = Field(default=16, ge=8, le=16)

    migration_collection: str = "metadata"
    stamp_updated_at: bool = True

    import_data_dir: str = "./migration-data"
    import_collections: list[str] = [
        "products",
        "customers",
        "orders",
        "categories",
        "subcategories",
    ]
    import_drop_existing: bool = True
