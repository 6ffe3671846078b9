"""Tests for engine and environment configuration."""

import pytest
from pydantic import ValidationError

from transit import MigratorConfig, RerunBehavior, default_name_formatter
from transit.config import EnvironmentSettings, default_log, default_wrap


class TestMigratorConfig:
    """Tests for MigratorConfig."""

    def test_defaults(self):
        """Test documented defaults."""
        config = MigratorConfig()

        assert config.log is default_log
        assert config.name_formatter is default_name_formatter
        assert config.custom_resolver is None
        assert config.wrap is default_wrap
        assert config.params == ()
        assert config.rerun == RerunBehavior.THROW

    def test_default_name_formatter(self):
        """Test the default formatter strips directories and the extension."""
        assert default_name_formatter("directory1/m1.sql") == "m1"
        assert default_name_formatter("m1.down.sql") == "m1.down"
        assert default_name_formatter("plain") == "plain"

    def test_rejects_non_callable(self):
        """Test non-callable hooks are rejected."""
        with pytest.raises(ValidationError):
            MigratorConfig(name_formatter="stem")

    def test_rerun_from_string(self):
        """Test the rerun policy accepts its string value."""
        assert MigratorConfig(rerun="skip").rerun == RerunBehavior.SKIP

    def test_params_normalized_to_tuple(self):
        """Test params given as a list become a tuple."""
        assert MigratorConfig(params=["a", 1]).params == ("a", 1)

    def test_frozen(self):
        """Test configuration cannot be mutated after construction."""
        config = MigratorConfig()

        with pytest.raises(ValidationError):
            config.rerun = RerunBehavior.ALLOW


class TestEnvironmentSettings:
    """Tests for EnvironmentSettings."""

    def test_defaults(self, monkeypatch):
        """Test defaults when no environment variables are set."""
        for var in ("TRANSIT_GLOB", "TRANSIT_CWD", "TRANSIT_IGNORE", "TRANSIT_STORAGE"):
            monkeypatch.delenv(var, raising=False)

        settings = EnvironmentSettings()

        assert settings.glob == "migrations/*.py"
        assert settings.cwd == "."
        assert settings.ignore == []
        assert settings.storage_path == "transit.json"

    def test_from_environment(self, monkeypatch, tmp_path):
        """Test values are read from the environment."""
        monkeypatch.setenv("TRANSIT_GLOB", "*.sql")
        monkeypatch.setenv("TRANSIT_CWD", str(tmp_path))
        monkeypatch.setenv("TRANSIT_IGNORE", "a.sql, b*.sql")
        monkeypatch.setenv("TRANSIT_STORAGE", "record.json")

        settings = EnvironmentSettings()

        assert settings.glob == "*.sql"
        assert settings.ignore == ["a.sql", "b*.sql"]
        assert settings.storage_path == "record.json"
        assert settings.validate() == []

    def test_validate(self, tmp_path):
        """Test validation reports every problem."""
        settings = EnvironmentSettings(glob="", cwd=str(tmp_path / "absent"), storage_path="")

        errors = settings.validate()

        assert len(errors) == 3
        assert any("TRANSIT_CWD" in e for e in errors)
