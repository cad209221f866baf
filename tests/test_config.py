"""
Tests for the config module.

Tests configuration loading, validation, and generation including YAML
parsing, error handling, and file operations.
"""

import pytest
import yaml

from roster_sync.config.generator import generate_default_config, save_config_file
from roster_sync.config.loader import (
    DEFAULT_CONFIG_FILE,
    VALID_KEYS,
    ConfigError,
    ConfigLoader,
)
from roster_sync.utils.paths import CONFIG_DIR_ENV_VAR


class TestConfigLoaderInitialization:
    """Tests for ConfigLoader initialization."""

    def test_config_dir_from_environment_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path))

        assert ConfigLoader().config_dir == tmp_path.resolve()

    def test_argument_takes_precedence(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path / "env"))

        loader = ConfigLoader(config_dir=tmp_path / "arg")

        assert loader.config_dir == tmp_path / "arg"

    def test_default_config_file_name(self, tmp_path):
        assert ConfigLoader(config_dir=tmp_path).config_file == DEFAULT_CONFIG_FILE


class TestConfigLoading:
    """Tests for loading YAML files."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_missing_file_returns_empty_dict(self, loader):
        assert loader.load() == {}

    def test_load_valid_yaml(self, loader, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "spreadsheet_id: abc\nsheet_name: Roster\nmax_members: 500\n"
        )

        assert loader.load() == {
            "spreadsheet_id": "abc",
            "sheet_name": "Roster",
            "max_members": 500,
        }

    def test_comments_only_returns_empty_dict(self, loader, tmp_path):
        (tmp_path / "config.yaml").write_text("# nothing here\n")

        assert loader.load() == {}

    def test_invalid_yaml_raises(self, loader, tmp_path):
        (tmp_path / "config.yaml").write_text("key: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            loader.load()

    def test_non_dict_yaml_raises(self, loader, tmp_path):
        (tmp_path / "config.yaml").write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="YAML dictionary"):
            loader.load()

    def test_load_from_string_path(self, loader, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("verbose: true\n")

        assert loader.load_from_file(str(path)) == {"verbose": True}

    def test_load_and_validate_rejects_bad_values(self, loader, tmp_path):
        (tmp_path / "config.yaml").write_text("max_members: 5000\n")

        with pytest.raises(ConfigError, match="max_members"):
            loader.load_and_validate()


class TestConfigValidation:
    """Tests for ConfigLoader.validate."""

    @pytest.fixture
    def loader(self, tmp_path):
        return ConfigLoader(config_dir=tmp_path)

    def test_empty_config(self, loader):
        loader.validate({})

    def test_non_dict_raises(self, loader):
        with pytest.raises(ConfigError, match="must be a dictionary"):
            loader.validate(["a"])

    def test_complete_valid_config(self, loader):
        loader.validate(
            {
                "verbose": True,
                "log_dir": "/tmp/logs",
                "log_retention_count": 5,
                "spreadsheet_id": "abc",
                "sheet_name": "Contact List",
                "spreadsheet_title_prefix": "Contacts",
                "max_members": 1000,
                "auth_timeout": 30,
                "daemon_interval": "30m",
                "daemon_pid_file": "/tmp/roster.pid",
            }
        )

    def test_every_valid_key_documented_in_template(self):
        """The generated template mentions every accepted key."""
        template = generate_default_config()
        for key in VALID_KEYS:
            assert key in template

    def test_unknown_keys_ignored(self, loader):
        loader.validate({"something_else": object()})

    def test_daemon_interval_accepts_int(self, loader):
        loader.validate({"daemon_interval": 3600})

    def test_wrong_type_raises(self, loader):
        with pytest.raises(ConfigError, match="Invalid type for 'verbose'"):
            loader.validate({"verbose": "yes"})

    def test_bool_not_accepted_as_int(self, loader):
        with pytest.raises(ConfigError, match="max_members"):
            loader.validate({"max_members": True})

    @pytest.mark.parametrize("value", [0, 1001])
    def test_max_members_range(self, loader, value):
        with pytest.raises(ConfigError, match="between 1 and 1000"):
            loader.validate({"max_members": value})

    def test_auth_timeout_positive(self, loader):
        with pytest.raises(ConfigError, match="auth_timeout"):
            loader.validate({"auth_timeout": 0})

    def test_log_retention_not_negative(self, loader):
        with pytest.raises(ConfigError, match="log_retention_count"):
            loader.validate({"log_retention_count": -1})

    @pytest.mark.parametrize(
        "key", ["sheet_name", "spreadsheet_id", "spreadsheet_title_prefix"]
    )
    def test_blank_strings_rejected(self, loader, key):
        with pytest.raises(ConfigError, match="cannot be empty"):
            loader.validate({key: "  "})


class TestConfigGenerator:
    """Tests for the config template."""

    def test_template_is_valid_yaml_with_everything_commented(self):
        """Every option is commented out, so the template loads as nothing."""
        assert yaml.safe_load(generate_default_config()) is None

    def test_save_creates_file(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        success, error = save_config_file(path)

        assert success is True
        assert error is None
        assert path.read_text() == generate_default_config()

    def test_save_refuses_to_overwrite(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("verbose: true\n")

        success, error = save_config_file(path)

        assert success is False
        assert "already exists" in error
        assert path.read_text() == "verbose: true\n"

    def test_save_overwrite(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("verbose: true\n")

        success, _ = save_config_file(path, overwrite=True)

        assert success is True
        assert path.read_text() == generate_default_config()
