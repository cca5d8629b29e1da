"""
Unit tests for configuration loading.
"""

import pytest
import yaml

from sbom_manager.config import ConfigManager, get_config, get_config_manager, reset_config_manager
from sbom_manager.error_handling import ConfigurationError


@pytest.fixture
def config_file(tmp_path):
    def _write(data):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data))
        return path
    return _write


class TestDefaults:
    """Tests for built-in defaults."""

    def test_defaults(self):
        """Test the default configuration."""
        config = ConfigManager().load_config()

        assert config.project.default_name == "project"
        assert config.project.default_version == "1.0.0"
        assert config.scanning.max_workers == 1
        assert config.scanning.recursive is False
        assert config.output.format == ["spdx"]
        assert config.document.tool_name == "SBOM-Manager-1.0"
        assert config.license.default_policy == "commercial"
        assert config.logging.level == "INFO"

    def test_global_manager(self):
        """Test the global manager is created once until reset."""
        manager = get_config_manager()
        assert get_config_manager() is manager
        assert get_config() is manager.get_config()

        reset_config_manager()
        assert get_config_manager() is not manager


class TestFileConfig:
    """Tests for YAML configuration files."""

    def test_file_overrides_defaults(self, config_file):
        """Test file values merge over defaults."""
        path = config_file({
            "project": {"default_name": "shop"},
            "output": {"format": ["cyclonedx", "csv"]},
            "scanning": {"max_workers": 4},
        })
        config = ConfigManager(path).load_config()

        assert config.project.default_name == "shop"
        assert config.project.default_version == "1.0.0"
        assert config.output.format == ["cyclonedx", "csv"]
        assert config.scanning.max_workers == 4

    def test_comma_separated_formats(self, config_file):
        """Test a format string is split into a list."""
        config = ConfigManager(config_file({"output": {"format": "spdx, xlsx"}})).load_config()
        assert config.output.format == ["spdx", "xlsx"]

    def test_env_placeholder(self, config_file, monkeypatch):
        """Test ${VAR} values are substituted."""
        monkeypatch.setenv("SHOP_AUTHOR", "alice")
        config = ConfigManager(config_file({"project": {"author": "${SHOP_AUTHOR}"}})).load_config()
        assert config.project.author == "alice"

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file is not fatal."""
        config = ConfigManager(tmp_path / "absent.yaml").load_config()
        assert config.project.default_name == "project"

    def test_invalid_yaml(self, tmp_path):
        """Test unparsable YAML raises ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text("project: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()

    def test_unknown_key(self, config_file):
        """Test unknown keys raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file({"project": {"colour": "blue"}})).load_config()

    def test_save_config(self, tmp_path):
        """Test the effective configuration can be written back."""
        manager = ConfigManager()
        target = tmp_path / "saved.yaml"
        manager.save_config(target)

        assert yaml.safe_load(target.read_text())["license"]["default_policy"] == "commercial"


class TestEnvironment:
    """Tests for environment overrides."""

    def test_env_overrides_file(self, config_file, monkeypatch):
        """Test environment variables win over the file."""
        monkeypatch.setenv("SBOM_PROJECT_NAME", "from-env")
        monkeypatch.setenv("SBOM_SCAN_WORKERS", "2")
        config = ConfigManager(config_file({"project": {"default_name": "from-file"}})).load_config()

        assert config.project.default_name == "from-env"
        assert config.scanning.max_workers == 2

    def test_env_formats(self, monkeypatch):
        """Test comma-separated formats from the environment."""
        monkeypatch.setenv("SBOM_FORMATS", "spdx,json")
        assert ConfigManager().load_config().output.format == ["spdx", "json"]

    def test_log_level_is_uppercased(self, monkeypatch):
        """Test log levels are case-insensitive."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert ConfigManager().load_config().logging.level == "DEBUG"


class TestValidation:
    """Tests for configuration validation."""

    @pytest.mark.parametrize("data", [
        {"output": {"format": ["pdf"]}},
        {"logging": {"level": "LOUD"}},
        {"scanning": {"max_workers": 0}},
        {"scanning": {"max_workers": True}},
        {"license": {"default_policy": "anything-goes"}},
    ])
    def test_invalid_values(self, config_file, data):
        """Test invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file(data)).load_config()

    def test_custom_policy_with_policies_file(self, config_file):
        """Test a non built-in default policy is accepted alongside a policies file."""
        path = config_file({"license": {"default_policy": "internal", "policies_file": "policies.yaml"}})
        assert ConfigManager(path).load_config().license.default_policy == "internal"
