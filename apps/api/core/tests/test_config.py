"""Tests for core config module."""

import pytest


class TestSettings:
    """Test Pydantic Settings loads env vars correctly."""

    @pytest.fixture(autouse=True)
    def supabase_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")
        monkeypatch.delenv("ZIP_PASSWORD", raising=False)

    def test_settings_loads_supabase_url(self):
        """Settings should load SUPABASE_URL from env."""
        from apps.api.core.config import Settings
        settings = Settings()
        assert settings.SUPABASE_URL == "https://test.supabase.co"

    def test_settings_loads_allowed_origins(self, monkeypatch):
        """Settings should parse ALLOWED_ORIGINS as comma-separated list."""
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://ledger.example.com")

        from apps.api.core.config import Settings
        settings = Settings()
        assert settings.allowed_origins == [
            "http://localhost:3000",
            "https://ledger.example.com",
        ]

    def test_settings_defaults(self):
        """Settings should have sensible defaults."""
        from apps.api.core.config import Settings
        settings = Settings()
        assert settings.LOG_LEVEL == "INFO"
        assert settings.ENVIRONMENT == "development"
        assert settings.EXPENSES_TABLE == "shared_expenses"
        assert settings.MAX_UPLOAD_BYTES == 10 * 1024 * 1024
        assert settings.zip_password is None

    def test_settings_loads_zip_password(self, monkeypatch):
        monkeypatch.setenv("ZIP_PASSWORD", "s3cret")

        from apps.api.core.config import Settings
        assert Settings().zip_password == "s3cret"

    def test_empty_zip_password_means_none(self, monkeypatch):
        monkeypatch.setenv("ZIP_PASSWORD", "")

        from apps.api.core.config import Settings
        assert Settings().zip_password is None

    def test_settings_requires_supabase_url(self, monkeypatch):
        """Settings should fail if SUPABASE_URL is missing."""
        monkeypatch.delenv("SUPABASE_URL", raising=False)

        from apps.api.core.config import Settings
        with pytest.raises(Exception):
            Settings(_env_file=None)
