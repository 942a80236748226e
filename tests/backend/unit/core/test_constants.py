"""Settings loading, validation and caching."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from pydantic import ValidationError

from core.constants import (
    DEFAULT_PAGE_LIMIT,
    LOG_TOKEN_PREFIX_LENGTH,
    MAX_PAGE_LIMIT,
    Settings,
    _settings_manager,
)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Settings built only from what the test puts in os.environ."""
    # Mock _get_env_files to return empty list - prevents actual dotenv files
    # from being loaded, allowing us to control settings via os.environ patches
    with (
        patch.dict("os.environ", {}, clear=True),
        patch("core.constants._get_env_files", return_value=[]),
    ):
        yield


class TestConstants:
    def test_pagination_bounds(self) -> None:
        assert 0 < DEFAULT_PAGE_LIMIT <= MAX_PAGE_LIMIT

    def test_token_prefix_is_short(self) -> None:
        assert 0 < LOG_TOKEN_PREFIX_LENGTH < 16


@pytest.mark.usefixtures("clean_env")
class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.app_env == "development"
        assert settings.notification_transport == "log"
        assert settings.signing_link_ttl_days is None
        assert settings.rate_limit_enabled is True
        assert settings.is_development is True

    def test_reads_environment(self) -> None:
        with patch.dict(
            "os.environ",
            {"APP_ENV": "TEST", "SIGNING_LINK_TTL_DAYS": "14", "DATABASE_URL": "postgresql://u:p@db/signet"},
        ):
            settings = Settings()

        assert settings.app_env == "test"
        assert settings.signing_link_ttl_days == 14
        assert settings.database_url == "postgresql://u:p@db/signet"

    def test_invalid_app_env(self) -> None:
        with pytest.raises(ValidationError, match="app_env"):
            Settings(app_env="staging")

    def test_app_url_trailing_slash_stripped(self) -> None:
        settings = Settings(app_url="https://sign.example.com/ ")

        assert settings.app_url == "https://sign.example.com"

    def test_app_url_requires_scheme(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            Settings(app_url="sign.example.com")

    def test_notification_transport_normalized(self) -> None:
        assert Settings(notification_transport="LOG").notification_transport == "log"

    def test_unknown_notification_transport(self) -> None:
        with pytest.raises(ValidationError, match="notification_transport"):
            Settings(notification_transport="carrier-pigeon")

    def test_short_jwt_secret(self) -> None:
        with pytest.raises(ValidationError, match="jwt_secret"):
            Settings(jwt_secret="short")

    def test_body_limit_floor(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_request_body_size=10)

    def test_cors_lists_split(self) -> None:
        settings = Settings(cors_allow_origins="https://a.example.com, https://b.example.com,")

        assert settings.cors_origins_list == ["https://a.example.com", "https://b.example.com"]
        assert "OPTIONS" in settings.cors_methods_list


@pytest.mark.usefixtures("clean_env")
class TestProductionSettings:
    """Production refuses development conveniences."""

    def test_default_jwt_secret_rejected(self) -> None:
        with pytest.raises(ValidationError, match="jwt_secret must be changed"):
            Settings(app_env="production")

    def test_localhost_noauth_rejected(self) -> None:
        with pytest.raises(ValidationError, match="allow_localhost_noauth"):
            Settings(app_env="production", jwt_secret="a-real-production-secret", allow_localhost_noauth=True)

    def test_content_logging_rejected(self) -> None:
        with pytest.raises(ValidationError, match="enable_content_logging"):
            Settings(
                app_env="production",
                jwt_secret="a-real-production-secret",
                allow_localhost_noauth=False,
                enable_content_logging=True,
            )

    def test_valid_production_settings(self) -> None:
        settings = Settings(
            app_env="production",
            jwt_secret="a-real-production-secret",
            allow_localhost_noauth=False,
            enable_content_logging=False,
        )

        assert settings.is_production is True


@pytest.mark.usefixtures("clean_env")
class TestSettingsManager:
    """Tests for the cached settings manager.

    get_settings itself is patched for the whole test session, so these
    exercise the manager behind it directly.
    """

    def test_cached(self) -> None:
        first = _settings_manager.get()
        with patch.dict("os.environ", {"DEBUG": "true"}):
            second = _settings_manager.get()

        assert first is second
        assert second.debug is False

    def test_reload_replaces_instance(self) -> None:
        first = _settings_manager.get()
        with patch.dict("os.environ", {"DEBUG": "true"}):
            reloaded = _settings_manager.reload()

        assert reloaded is not first
        assert reloaded.debug is True

    def test_clear(self) -> None:
        _settings_manager.get()
        _settings_manager.clear()

        assert _settings_manager._instance is None

    def test_reload_reads_edited_dotenv_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("SIGNING_LINK_TTL_DAYS=7\n")

        with patch("core.constants._get_env_files", return_value=[env_file]):
            settings = _settings_manager.reload()

        assert settings.signing_link_ttl_days == 7
