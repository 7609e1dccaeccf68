"""
Unit tests for declaration service configuration.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from declaration_service.config import DeclarationSettings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "UPLOAD_ROOT", "MAX_UPLOAD_BYTES", "MAX_IMAGE_BYTES", "MAX_REQUEST_BYTES", "MONGODB_URI", "PAGE_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")
    return monkeypatch


class TestDefaults:

    def test_defaults(self, clean_env):
        settings = DeclarationSettings()
        assert settings.upload_root == "public/uploads"
        assert settings.page_format == "A4"
        assert settings.render_timeout_ms == 30000
        assert settings.max_image_bytes == 5 * 1024 * 1024
        assert settings.max_request_bytes == 10 * 1024 * 1024
        assert settings.mongodb_uri is None


class TestValidation:

    def test_env_override(self, clean_env):
        clean_env.setenv("RENDER_TIMEOUT_MS", "5000")
        clean_env.setenv("PAGE_FORMAT", "letter")
        settings = DeclarationSettings()
        assert settings.render_timeout_ms == 5000
        assert settings.page_format == "Letter"

    def test_unknown_page_format_rejected(self, clean_env):
        clean_env.setenv("PAGE_FORMAT", "A3")
        with pytest.raises(PydanticValidationError):
            DeclarationSettings()

    def test_unknown_environment_rejected(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "qa")
        with pytest.raises(PydanticValidationError):
            DeclarationSettings()

    def test_timeout_bounds(self, clean_env):
        clean_env.setenv("RENDER_TIMEOUT_MS", "10")
        with pytest.raises(PydanticValidationError):
            DeclarationSettings()

    def test_invalid_mongodb_uri_rejected(self, clean_env):
        clean_env.setenv("MONGODB_URI", "http://localhost")
        with pytest.raises(PydanticValidationError):
            DeclarationSettings()


class TestProductionChecks:

    def test_headful_browser_is_critical_in_production(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "production")
        clean_env.setenv("PLAYWRIGHT_HEADLESS", "false")
        issues = DeclarationSettings().validate_production_config()
        assert any(issue.startswith("CRITICAL") for issue in issues)

    def test_development_has_no_issues(self, clean_env):
        assert DeclarationSettings().validate_production_config() == []
