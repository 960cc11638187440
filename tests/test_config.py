"""Tests for configuration settings."""

import pytest

from gitlab_mr_refs.config import RateLimitConfig, Settings, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_settings_defaults(self):
        """Test default values are correct."""
        settings = Settings(_env_file=None)

        assert settings.gitlab_token == ""
        assert settings.github_token == ""
        assert settings.log_level == "INFO"
        assert settings.gitlab.base_url == "https://gitlab.com"
        assert settings.gitlab.per_page == 100
        assert settings.github.branch_prefix == "migration-pr-"

    def test_settings_from_env(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("GITLAB_TOKEN", "glpat-abc")
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.gitlab_token == "glpat-abc"
        assert settings.github_token == "ghp_abc"
        assert settings.log_level == "DEBUG"

    def test_settings_nested_from_env(self, monkeypatch):
        """Nested models are set with a double-underscore delimiter."""
        monkeypatch.setenv("GITLAB__BASE_URL", "https://gitlab.example.com")
        monkeypatch.setenv("RATE_LIMIT__MAX_THROTTLE_RETRIES", "2")
        monkeypatch.setenv("GITHUB__BRANCH_PREFIX", "mr-")

        settings = Settings(_env_file=None)

        assert settings.gitlab.base_url == "https://gitlab.example.com"
        assert settings.rate_limit.max_throttle_retries == 2
        assert settings.github.branch_prefix == "mr-"

    def test_settings_log_level_validation(self, monkeypatch):
        """Test that invalid log level is rejected."""
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_settings_case_insensitive(self, monkeypatch):
        """Test that env var names are case-insensitive."""
        monkeypatch.setenv("gitlab_token", "lower_token")

        settings = Settings(_env_file=None)

        assert settings.gitlab_token == "lower_token"

    def test_settings_per_page_bounds(self, monkeypatch):
        """GitLab caps page size at 100."""
        monkeypatch.setenv("GITLAB__PER_PAGE", "101")

        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_defaults(self):
        config = RateLimitConfig()

        assert config.baseline_interval == pytest.approx(0.1)
        assert config.cautious_interval == pytest.approx(1.0)
        assert config.critical_interval == pytest.approx(5.0)
        assert config.cautious_threshold == 10
        assert config.critical_threshold == 5
        assert config.default_retry_after_seconds == 60.0
        assert config.max_throttle_retries == 0

    def test_critical_threshold_above_cautious_rejected(self):
        with pytest.raises(ValueError):
            RateLimitConfig(cautious_threshold=5, critical_threshold=10)

    def test_equal_thresholds_allowed(self):
        config = RateLimitConfig(cautious_threshold=5, critical_threshold=5)
        assert config.critical_threshold == 5

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimitConfig(baseline_interval_ms=-1)


class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_returns_settings(self):
        """Test that get_settings returns a Settings instance."""
        get_settings.cache_clear()

        settings = get_settings()

        assert isinstance(settings, Settings)

    def test_get_settings_cached(self):
        """Test that get_settings returns cached instance."""
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2
