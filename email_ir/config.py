"""
Email IR Application Configuration

Configuration management using pydantic-settings.
All configuration values are loaded from environment variables or a .env file.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Dict, List, Optional
from functools import lru_cache
import os


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Values can be set via:
    1. Environment variables
    2. .env file (local development)
    3. Default values defined here
    """

    # =========================================================================
    # Application
    # =========================================================================
    app_name: str = "Email IR"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # =========================================================================
    # Server
    # =========================================================================
    host: str = "0.0.0.0"
    port: int = Field(default=8000, description="Port - hosting platforms set PORT env var")
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # =========================================================================
    # Inference Providers
    # =========================================================================
    ai_provider: str = "openai"
    ai_fallback_enabled: bool = True
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    openai_model: Optional[str] = None
    anthropic_model: Optional[str] = None
    ai_request_timeout: int = Field(default=60, description="Per-request timeout for inference calls (s)")

    # =========================================================================
    # Source-Data Provider
    # =========================================================================
    default_api_base_url: str = "https://test-api.devkeepnet.com"
    api_host_aliases: Dict[str, str] = Field(
        default_factory=lambda: {"dash.keepnetlabs.com": "api.keepnetlabs.com"},
        description="Dashboard hosts rewritten to their API host",
    )
    fetch_timeout_seconds: float = 30.0

    # =========================================================================
    # Retry Policy
    # =========================================================================
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0
    retry_jitter: bool = True
    retry_attempt_timeout: float = 90.0

    # =========================================================================
    # Pipeline
    # =========================================================================
    analysis_timeout_seconds: float = 300.0
    max_scan_items: int = 10
    max_body_chars: int = 20000

    # =========================================================================
    # Storage
    # =========================================================================
    storage_type: str = "memory"  # memory, sqlite
    database_path: str = "./data/email_ir.db"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        platform_port = os.environ.get("PORT")
        if platform_port:
            self.port = int(platform_port)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are cached to avoid re-reading environment on every access.
    Use get_settings.cache_clear() to reload settings.
    """
    return Settings()
