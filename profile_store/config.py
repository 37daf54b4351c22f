from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings leveraging environment overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROFILE_STORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Profile Store"
    environment: str = Field("local", validation_alias="ENVIRONMENT")
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Storage layout
    data_dir: Path = Path("data/profiles")
    tmp_dir: Path = Path("temp")
    frontend_dir: Optional[Path] = None

    # Uploads
    max_photo_bytes: int = Field(5 * 1024 * 1024, ge=1)  # 5 MB hard limit
    upload_chunk_bytes: int = Field(1024 * 1024, ge=1)

    # Presentation
    note_preview_chars: int = Field(50, ge=1)
    viewer_page: str = "/profile.html"
    images_url_prefix: str = "/images"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(2002, ge=1, le=65535)
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
