"""
API configuration settings.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Bookstore API"
    api_version: str = "1.0.0"
    api_description: str = "REST API for browsing and managing a bookstore catalog"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Security Settings
    jwt_secret: str  # required, startup fails without it
    jwt_algorithm: str = "HS256"
    admin_signup_key: Optional[str] = None
    register_token_ttl_seconds: int = 3600
    login_token_ttl_seconds: int = 360000

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
