"""
Unit tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from src.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "MARKETPLACE_PLUGINS_API_URL",
        "MARKETPLACE_MIGRATION_PAGE_SIZE",
        "MARKETPLACE_MIGRATION_FAILURE_POLICY",
        "MARKETPLACE_MIGRATION_REPLACE_EXISTING",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.plugins_api_url is None
        assert settings.migration_page_size == 100
        assert settings.migration_replace_existing is True
        assert settings.migration_failure_policy == "abort"

    def test_reads_prefixed_environment(self, clean_env):
        clean_env.setenv("MARKETPLACE_PLUGINS_API_URL", "https://plugins.example.com")
        clean_env.setenv("MARKETPLACE_MIGRATION_FAILURE_POLICY", "skip")
        clean_env.setenv("MARKETPLACE_MIGRATION_REPLACE_EXISTING", "false")

        settings = Settings(_env_file=None)

        assert settings.plugins_api_url == "https://plugins.example.com"
        assert settings.migration_failure_policy == "skip"
        assert settings.migration_replace_existing is False

    def test_testing_environment_flag(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.is_testing is True
        assert settings.is_production is False

    @pytest.mark.parametrize(
        "name, value",
        [
            ("MARKETPLACE_MIGRATION_PAGE_SIZE", "0"),
            ("MARKETPLACE_MIGRATION_FAILURE_POLICY", "retry"),
        ],
    )
    def test_rejects_invalid_values(self, clean_env, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_short_secret_rejected(self, clean_env):
        clean_env.setenv("MARKETPLACE_SECRET_KEY", "too-short")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    @pytest.mark.parametrize(
        "value, expected",
        [("", None), ("   ", None), ("https://plugins.example.com/", "https://plugins.example.com")],
    )
    def test_plugins_url_normalized(self, clean_env, value, expected):
        clean_env.setenv("MARKETPLACE_PLUGINS_API_URL", value)

        assert Settings(_env_file=None).plugins_api_url == expected
