"""
Configuration management for the admin console.
Backend API, geocoder and upload limits are read from the environment.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Backend API
    backend_base_url: str = "http://localhost:5000"
    backend_timeout: float = 30.0

    # Geocoder (Nominatim)
    geocoder_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_user_agent: str = "Safari-Admin/1.0 (contact@akirasafari.com)"
    geocoder_timeout: float = 15.0
    search_debounce_seconds: float = 0.3
    search_retry_delay: float = 1.0

    # Uploads
    max_image_bytes: int = 10 * 1024 * 1024
    max_media_bytes: int = 100 * 1024 * 1024

    # Server Configuration
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_backend_config() -> dict:
    """Get backend client configuration."""
    return {
        "base_url": settings.backend_base_url.rstrip("/"),
        "timeout": settings.backend_timeout,
    }
