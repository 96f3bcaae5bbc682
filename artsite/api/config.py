"""Configuration for FastAPI application."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional, Union
import json


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API Configuration
    api_prefix: str = "/api"
    api_title: str = "artsite API"
    api_version: str = "0.3.0"
    allowed_origins: Union[str, List[str]] = ["*"]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse allowed_origins from string or list."""
        if isinstance(v, str):
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            return [v]
        return v

    # Authentication
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Stores
    database_url: str = "sqlite+aiosqlite:///./artsite.db"
    blob_backend: str = "memory"
    artwork_images_base_url: str = "/api/images"

    s3_bucket: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_region: str = "auto"
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None

    # Outbound fetch of images referenced only by URL
    legacy_image_fetch: bool = True


settings = Settings()
