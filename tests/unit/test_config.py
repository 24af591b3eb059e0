"""Unit tests for application configuration.

Tests Settings defaults, search tuning validation and production checks.
"""

import os

import pytest
from pydantic import ValidationError

from ppdo.config import Settings
from ppdo.domain.search.ranking import RankingConfig

PRODUCTION_KWARGS = {
    "app_env": "production",
    "app_debug": False,
    "auth_provider": "jwt",
    "auth_jwt_secret": "0" * 32,
    "database_url": "postgresql+asyncpg://ppdo:secret@db:5432/ppdo",
    "cors_origins": "https://ppdo.example.gov",
}


class TestSettingsDefaults:
    """Test Settings default values."""

    def test_search_defaults(self):
        """Test ranking and limit defaults."""
        settings = Settings(_env_file=None)

        assert settings.search_primary_weight == 3.0
        assert settings.search_secondary_weight == 1.0
        assert settings.search_default_limit == 20
        assert settings.search_max_limit == 100
        assert settings.search_max_candidates == 500
        assert settings.search_min_query_length == 2
        assert settings.search_status_penalties == {"inactive": 0.6, "suspended": 0.5}
        assert settings.search_department_scoped is False

    def test_reindex_batch_size_default(self):
        assert Settings(_env_file=None).reindex_batch_size == 100

    def test_ranking_config_from_settings(self):
        """Test settings flow into the ranking constants."""
        settings = Settings(
            _env_file=None,
            search_phrase_bonus=0.8,
            search_type_boosts={"department": 1.5},
        )

        config = RankingConfig.from_settings(settings)

        assert config.phrase_bonus == 0.8
        assert config.type_boosts == {"department": 1.5}
        assert config.primary_weight == 3.0


class TestSearchSettingsValidation:
    """Test that ranking constants which would break ordering are rejected."""

    def test_recency_floor_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, search_recency_floor=1.5)

        assert "SEARCH_RECENCY_FLOOR" in str(exc_info.value)

    def test_primary_weight_below_secondary(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, search_primary_weight=0.5, search_secondary_weight=1.0)

    def test_zero_status_penalty(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, search_status_penalties={"inactive": 0.0})

    def test_default_limit_above_max(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, search_default_limit=200, search_max_limit=100)


class TestSettingsProperties:
    """Test Settings computed properties."""

    def test_is_development(self):
        settings = Settings(_env_file=None, app_env="development")

        assert settings.is_development is True
        assert settings.is_production is False

    def test_is_production(self):
        settings = Settings(_env_file=None, **PRODUCTION_KWARGS)

        assert settings.is_production is True
        assert settings.is_development is False

    def test_cors_origins_comma_separated(self):
        settings = Settings(_env_file=None, cors_origins="https://a.gov, https://b.gov")

        assert settings.cors_origins == ["https://a.gov", "https://b.gov"]

    def test_cors_origins_json_list(self):
        settings = Settings(_env_file=None, cors_origins='["https://a.gov"]')

        assert settings.cors_origins == ["https://a.gov"]


class TestProductionValidation:
    """Test insecure settings are refused in production."""

    def test_dev_auth_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **{**PRODUCTION_KWARGS, "auth_provider": "dev"})

        assert "AUTH_PROVIDER=dev" in str(exc_info.value)

    def test_short_jwt_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{**PRODUCTION_KWARGS, "auth_jwt_secret": "short"})

    def test_localhost_cors_rejected(self):
        with pytest.raises(ValidationError):
            Settings(
                _env_file=None,
                **{**PRODUCTION_KWARGS, "cors_origins": "http://localhost:3000"},
            )


class TestSecretFiles:
    """Test *_FILE secret loading."""

    def test_secret_loaded_from_file(self, tmp_path, monkeypatch):
        from ppdo.config import _load_secret_file_env_vars

        secret_file = tmp_path / "jwt_secret"
        secret_file.write_text("file-secret\n", encoding="utf-8")
        monkeypatch.setenv("AUTH_JWT_SECRET_FILE", str(secret_file))
        monkeypatch.setenv("AUTH_JWT_SECRET", "from-env")

        _load_secret_file_env_vars()

        assert os.environ["AUTH_JWT_SECRET"] == "file-secret"

    def test_empty_secret_file_raises(self, tmp_path, monkeypatch):
        from ppdo.config import _load_secret_file_env_vars

        secret_file = tmp_path / "empty"
        secret_file.write_text("", encoding="utf-8")
        monkeypatch.setenv("AUTH_JWT_SECRET_FILE", str(secret_file))

        with pytest.raises(ValueError):
            _load_secret_file_env_vars()
