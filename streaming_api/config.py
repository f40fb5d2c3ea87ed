"""
Streaming API Configuration
Centralized settings management using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "Streaming API"
    debug: bool = False
    app_version: str = "1.0.0"
    log_level: str = Field(default="INFO", description="Root log level")

    # ==========================================================================
    # Encoder
    # ==========================================================================
    ffmpeg_path: str = Field(default="ffmpeg", description="FFmpeg executable")
    ffprobe_path: str = Field(default="ffprobe", description="FFprobe executable")
    encode_timeout_seconds: int = Field(
        default=7200, ge=0, description="Kill the encoder after this many seconds (0 disables)"
    )
    probe_timeout_seconds: int = Field(default=30, ge=1, le=600)
    probe_max_retries: int = Field(default=2, ge=0, le=5, description="Retries for timed out probes")

    # ==========================================================================
    # Uploads & Workspaces
    # ==========================================================================
    max_upload_size_mb: int = Field(default=2048, ge=1, le=20480, description="Max upload file size in MB")
    workspace_retention_hours: int = Field(
        default=0, ge=0, description="Purge job directories older than this at startup (0 disables)"
    )

    # ==========================================================================
    # Security
    # ==========================================================================
    cors_allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:8000",
            "http://127.0.0.1:8000"
        ],
        description="Allowed CORS origins"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    base_dir: str = Field(default="data", description="Root of the input/ and output/ job areas")
    static_dir: str = Field(default="wwwroot", description="Player UI served at /")

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
