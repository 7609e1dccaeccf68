"""
Declaration Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

PAGE_FORMATS = ("A4", "Letter", "Legal")


class DeclarationSettings(BaseSettings):
    """
    Declaration service configuration with validation.

    All settings can be overridden via environment variables.
    Validation happens at startup to fail fast on misconfiguration.
    """

    # === Storage ===
    upload_root: str = Field(
        default="public/uploads",
        description="Directory receiving signature images and generated PDFs"
    )
    max_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Largest decoded image accepted in a submission (maxImageBytes)"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest raw PDF accepted by POST /uploads"
    )
    max_request_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest JSON or form body accepted by the form routes"
    )

    # === Rendering ===
    render_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=300000,
        description="Upper bound for page load plus PDF export (1s-300s)"
    )
    playwright_headless: bool = Field(
        default=True,
        description="Launch Chromium headless"
    )
    max_concurrent_pdfs: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum simultaneous rendering contexts (1-50)"
    )
    browser_launch_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Chromium launch attempts before giving up (1-5)"
    )
    page_format: str = Field(
        default="A4",
        description="PDF page format: A4, Letter or Legal"
    )

    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    # === MongoDB (Optional) ===
    mongodb_uri: Optional[str] = Field(
        default=None,
        description="MongoDB URI for director records (static seed data when unset)"
    )
    mongo_db_name: str = Field(
        default="declarations",
        description="MongoDB database name"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("page_format")
    @classmethod
    def validate_page_format(cls, v: str) -> str:
        """Normalize page format casing ('a4' -> 'A4')."""
        for known in PAGE_FORMATS:
            if v.lower() == known.lower():
                return known
        raise ValueError(f"page_format must be one of: {', '.join(PAGE_FORMATS)}")

    @field_validator("mongodb_uri")
    @classmethod
    def validate_mongodb_uri(cls, v: Optional[str]) -> Optional[str]:
        """Basic URI format validation; empty string means unset."""
        if not v:
            return None
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"Invalid MongoDB URI: {v}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for production.

        Returns list of warning/error messages.
        """
        issues = []

        if self.is_production:
            if not self.playwright_headless:
                issues.append("CRITICAL: PLAYWRIGHT_HEADLESS must be true in production")
            if self.mongodb_uri is None:
                issues.append("WARNING: MONGODB_URI not configured, serving static director data")
            elif "localhost" in self.mongodb_uri:
                issues.append("WARNING: Using localhost MongoDB in production")

        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # UPLOAD_ROOT = upload_root


@lru_cache()
def get_settings() -> DeclarationSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return DeclarationSettings()


def validate_config_on_startup() -> DeclarationSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            raise ValueError(issue)
        else:
            logger.warning(issue)

    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  upload_root={settings.upload_root}")
    logger.info(f"  render_timeout={settings.render_timeout_ms}ms page_format={settings.page_format}")
    logger.info(f"  max_concurrent_pdfs={settings.max_concurrent_pdfs}")
    logger.info(f"  max_image_bytes={settings.max_image_bytes} max_request_bytes={settings.max_request_bytes}")
    logger.info(f"  director_store={'mongodb' if settings.mongodb_uri else 'static'}")

    return settings
