"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from c2pa_web.config import (
    DEFAULT_MAX_UPLOAD_SIZE,
    DEFAULT_PORT,
    Settings,
    default_temp_dir,
)


class TestFromEnv:
    """Settings.from_env()."""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.temp_dir == default_temp_dir()
        assert settings.port == DEFAULT_PORT == 3001
        assert settings.max_upload_size == DEFAULT_MAX_UPLOAD_SIZE == 10 * 1024 * 1024
        assert settings.public_base_url is None
        assert settings.signing_alg == "es256"
        assert settings.cors_origin_list == ["*"]
        assert settings.log_level == "INFO"

    def test_overrides(self, tmp_path):
        settings = Settings.from_env(
            {
                "C2PA_WEB_TEMP_DIR": str(tmp_path),
                "C2PA_WEB_HOST": "0.0.0.0",
                "C2PA_WEB_PORT": "8080",
                "C2PA_WEB_PUBLIC_BASE_URL": "https://c2pa.example.com",
                "C2PA_WEB_MAX_UPLOAD_SIZE": "2048",
                "C2PA_WEB_RETENTION_SECONDS": "60",
                "C2PA_WEB_SIGNING_ALG": "ps256",
                "C2PA_WEB_CORS_ORIGINS": "http://a.test, http://b.test",
                "C2PA_WEB_LOG_LEVEL": "debug",
            }
        )

        assert settings.temp_dir == Path(tmp_path)
        assert settings.host == "0.0.0.0"
        assert settings.port == 8080
        assert settings.public_base_url == "https://c2pa.example.com"
        assert settings.max_upload_size == 2048
        assert settings.retention_seconds == 60
        assert settings.signing_alg == "ps256"
        assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"

    def test_empty_values_fall_back_to_defaults(self):
        settings = Settings.from_env({"C2PA_WEB_PORT": "", "C2PA_WEB_PUBLIC_BASE_URL": ""})
        assert settings.port == DEFAULT_PORT
        assert settings.public_base_url is None

    def test_invalid_number(self):
        with pytest.raises(ValueError):
            Settings.from_env({"C2PA_WEB_PORT": "eighty"})


class TestValidation:
    """__post_init__ checks."""

    def test_upload_size_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(max_upload_size=0)

    def test_request_ceiling_covers_upload(self):
        settings = Settings(max_upload_size=20 * 1024 * 1024, max_request_size=1024)
        assert settings.max_request_size > settings.max_upload_size

    def test_upload_size_in_mb(self):
        assert Settings().max_upload_size_mb == 10


class TestBuildUrl:
    """Absolute URL construction."""

    def test_uses_request_origin(self):
        settings = Settings()
        assert (
            settings.build_url("http://127.0.0.1:3001/", "/api/temp/a.jpg")
            == "http://127.0.0.1:3001/api/temp/a.jpg"
        )

    def test_prefers_public_base_url(self):
        settings = Settings(public_base_url="https://c2pa.example.com/")
        assert (
            settings.build_url("http://internal:3001/", "api/download?file=a.jpg")
            == "https://c2pa.example.com/api/download?file=a.jpg"
        )

    def test_summary(self, tmp_path):
        summary = Settings(temp_dir=tmp_path).summary()
        assert summary["temp_dir"] == str(tmp_path)
        assert summary["cors_origins"] == ["*"]
