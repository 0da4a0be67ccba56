"""
Test suite for configuration loading.
"""

import pytest

from conduit.core.config import AppConfig, DatabaseConfig, get_environment, load_config
from conduit.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for variable in ("CONDUIT_ENV", "DATABASE_PATH", "RSA_PRIVATE_KEY", "RSA_PUBLIC_KEY"):
        monkeypatch.delenv(variable, raising=False)


class TestLoadConfig:
    """Test load_config."""

    def test_defaults_without_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config == AppConfig(environment="development")
        assert config.auth.session_length_days == 14
        assert config.server.port == 8080

    def test_environment_file_preferred_over_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "default.yaml").write_text("server:\n  port: 9000\n")
        (tmp_path / "config" / "staging.yaml").write_text("server:\n  port: 9100\n")

        assert load_config(environment="staging").server.port == 9100
        assert load_config(environment="production").server.port == 9000

    def test_explicit_file(self, tmp_path):
        config_file = tmp_path / "conduit.yaml"
        config_file.write_text(
            "database:\n"
            "  path: /var/lib/conduit/conduit.db\n"
            "password:\n"
            "  time_cost: 2\n"
        )

        config = load_config(config_file, environment="production")

        assert config.environment == "production"
        assert config.database.path == "/var/lib/conduit/conduit.db"
        assert config.password.time_cost == 2
        assert config.password.memory_cost == 65536

    def test_environment_variables_override_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "conduit.yaml"
        config_file.write_text("database:\n  path: from-file.db\n")
        monkeypatch.setenv("DATABASE_PATH", "from-env.db")
        monkeypatch.setenv("RSA_PRIVATE_KEY", "/secrets/private.pem")
        monkeypatch.setenv("RSA_PUBLIC_KEY", "/secrets/public.pem")

        config = load_config(config_file)

        assert config.database.path == "from-env.db"
        assert config.auth.rsa_private_key_path == "/secrets/private.pem"
        assert config.auth.rsa_public_key_path == "/secrets/public.pem"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("server: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_validation_failure(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("server:\n  port: 70000\n")

        with pytest.raises(ConfigurationError):
            load_config(config_file)


class TestConfigModels:

    def test_in_memory_database_rejected(self):
        with pytest.raises(ValueError):
            DatabaseConfig(path=":memory:")

    def test_get_environment(self, monkeypatch):
        assert get_environment() == "development"

        monkeypatch.setenv("CONDUIT_ENV", "Production")
        assert get_environment() == "production"

    def test_request_logging_switch(self, tmp_path):
        assert AppConfig().logging.request_logging is True

        config_file = tmp_path / "quiet.yaml"
        config_file.write_text("logging:\n  request_logging: false\n")

        assert load_config(config_file).logging.request_logging is False
