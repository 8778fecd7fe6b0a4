"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Storage
    storage_backend: str = "memory"  # "memory" or "database"
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"

    # Authentication
    auth_secret: str = "dev-auth-secret-change-in-production"
    auth_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Images
    image_dir: str = "images"
    image_url_path: str = "/images"
    max_upload_files: int = 10
    allowed_image_extensions: list[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp"]

    # Listing
    default_list_limit: int = 5

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
