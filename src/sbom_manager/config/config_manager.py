"""
Configuration management system for the SBOM manager.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from dataclasses import dataclass, field, asdict
import logging

from ..error_handling.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_FORMATS = {"spdx", "cyclonedx", "csv", "json", "xlsx"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
BUILTIN_POLICIES = {"commercial", "permissive", "open-source", "unrestricted"}


@dataclass
class ProjectConfig:
    """Defaults applied to scans that do not name a project."""
    default_name: str = "project"
    default_version: str = "1.0.0"
    author: Optional[str] = None


@dataclass
class ScanningConfig:
    """Manifest discovery and parsing configuration."""
    recursive: bool = False
    max_workers: int = 1
    ignore_directories: list = field(default_factory=lambda: [
        "node_modules", ".git", "target", "vendor", ".venv", "venv",
        "__pycache__", "build", "dist"
    ])


@dataclass
class OutputConfig:
    """Output configuration for export artifacts."""
    format: list = field(default_factory=lambda: ["spdx"])
    directory: str = "./sboms"


@dataclass
class DocumentConfig:
    """Values stamped into synthesized documents."""
    namespace_base: str = "https://sbom-manager.local"
    tool_name: str = "SBOM-Manager-1.0"
    license_list_version: str = "3.21"


@dataclass
class LicenseConfig:
    """License policy configuration."""
    default_policy: str = "commercial"
    policies_file: Optional[str] = None


@dataclass
class StorageConfig:
    """Location of the file-backed SBOM store."""
    directory: str = "./sbom-store"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    project: ProjectConfig = field(default_factory=ProjectConfig)
    scanning: ScanningConfig = field(default_factory=ScanningConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    document: DocumentConfig = field(default_factory=DocumentConfig)
    license: LicenseConfig = field(default_factory=LicenseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """
    Manages application configuration from multiple sources.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration
    2. Configuration file
    3. Environment variables
    4. Command-line arguments (applied by the CLI on top of the result)
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._env_var_mapping = self._create_env_var_mapping()

    def _create_env_var_mapping(self) -> Dict[str, str]:
        """Create mapping of environment variables to config paths."""
        return {
            # Project defaults
            "SBOM_PROJECT_NAME": "project.default_name",
            "SBOM_PROJECT_VERSION": "project.default_version",
            "SBOM_AUTHOR": "project.author",

            # Scanning configuration
            "SBOM_RECURSIVE": "scanning.recursive",
            "SBOM_SCAN_WORKERS": "scanning.max_workers",

            # Output configuration
            "SBOM_OUTPUT_DIR": "output.directory",
            "SBOM_FORMATS": "output.format",

            # Document configuration
            "SBOM_NAMESPACE_BASE": "document.namespace_base",
            "SBOM_TOOL_NAME": "document.tool_name",

            # License configuration
            "SBOM_LICENSE_POLICY": "license.default_policy",
            "SBOM_POLICIES_FILE": "license.policies_file",

            # Storage configuration
            "SBOM_STORE_DIR": "storage.directory",

            # Logging configuration
            "LOG_LEVEL": "logging.level",
            "LOG_FILE": "logging.file",
            "LOG_FORMAT": "logging.format",
            "LOG_MAX_SIZE": "logging.max_file_size",
            "LOG_BACKUP_COUNT": "logging.backup_count",
            "LOG_STRUCTURED": "logging.structured",
        }

    def load_config(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Complete application configuration

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        if self._config is not None:
            return self._config

        # Start with default configuration
        config_dict = self._get_default_config()

        # Load from configuration file
        if self.config_file and self.config_file.exists():
            file_config = self._load_config_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)
        elif self.config_file:
            logger.warning(f"Configuration file {self.config_file} not found, using defaults")

        # Override with environment variables
        env_config = self._load_env_config()
        config_dict = self._merge_configs(config_dict, env_config)

        # Substitute environment variables in string values
        config_dict = self._substitute_env_vars(config_dict)

        self._validate_config(config_dict)

        self._config = self._dict_to_config(config_dict)

        return self._config

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return AppConfig().to_dict()

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_path}",
                config_key=str(config_path),
                cause=e
            )

        if config is not None and not isinstance(config, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping",
                config_key=str(config_path)
            )

        logger.info(f"Loaded configuration from {config_path}")
        return config or {}

    def _load_env_config(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Returns:
            Configuration dictionary from environment variables
        """
        env_config = {}

        for env_var, config_path in self._env_var_mapping.items():
            value = os.getenv(env_var)
            if value is not None:
                value = self._convert_env_value(value)
                self._set_nested_value(env_config, config_path, value)

        return env_config

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        Args:
            value: String value from environment variable

        Returns:
            Converted value
        """
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        # Handle list values (comma-separated)
        if ',' in value:
            return [item.strip() for item in value.split(',')]

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a nested configuration value using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'output.directory')
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _substitute_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Substitute ``${VAR}`` references in configuration values.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with environment variables substituted
        """
        def substitute_recursive(obj):
            if isinstance(obj, dict):
                return {k: substitute_recursive(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [substitute_recursive(item) for item in obj]
            elif isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
                env_var = obj[2:-1]
                return os.getenv(env_var, obj)
            else:
                return obj

        return substitute_recursive(config)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary

        Raises:
            ConfigurationError: If configuration is invalid
        """
        output_formats = _as_list(config.get("output", {}).get("format", []))
        for fmt in output_formats:
            if fmt not in VALID_FORMATS:
                raise ConfigurationError(
                    f"Invalid output format: {fmt}. Valid formats: {sorted(VALID_FORMATS)}",
                    config_section="output",
                    config_key="format"
                )

        log_level = str(config.get("logging", {}).get("level", "INFO")).upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {log_level}. Valid levels: {sorted(VALID_LOG_LEVELS)}",
                config_section="logging",
                config_key="level"
            )

        workers = config.get("scanning", {}).get("max_workers", 1)
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ConfigurationError(
                f"Invalid scan worker count: {workers}. Must be a positive integer",
                config_section="scanning",
                config_key="max_workers"
            )

        license_config = config.get("license", {})
        policy = license_config.get("default_policy", "commercial")
        if policy not in BUILTIN_POLICIES and not license_config.get("policies_file"):
            raise ConfigurationError(
                f"Unknown license policy: {policy}. Built-in policies: {sorted(BUILTIN_POLICIES)}",
                config_section="license",
                config_key="default_policy"
            )

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """
        Convert configuration dictionary to AppConfig object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig object
        """
        output = dict(config_dict.get("output", {}))
        output["format"] = _as_list(output.get("format", ["spdx"]))

        logging_section = dict(config_dict.get("logging", {}))
        logging_section["level"] = str(logging_section.get("level", "INFO")).upper()

        try:
            return AppConfig(
                project=ProjectConfig(**config_dict.get("project", {})),
                scanning=ScanningConfig(**config_dict.get("scanning", {})),
                output=OutputConfig(**output),
                document=DocumentConfig(**config_dict.get("document", {})),
                license=LicenseConfig(**config_dict.get("license", {})),
                storage=StorageConfig(**config_dict.get("storage", {})),
                logging=LoggingConfig(**logging_section)
            )
        except TypeError as e:
            raise ConfigurationError("Unknown configuration key", cause=e)

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Returns:
            Application configuration
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self) -> AppConfig:
        """
        Reload configuration from all sources.

        Returns:
            Reloaded application configuration
        """
        self._config = None
        return self.load_config()

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """
        Save current configuration to file.

        Args:
            config_path: Path to save configuration file
        """
        if config_path is None:
            config_path = self.config_file or Path("config.yaml")

        config_dict = self.get_config().to_dict()

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {config_path}")


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(',') if item.strip()]
    return list(value)


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        config_file: Path to configuration file (only used on first call)

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def get_config() -> AppConfig:
    """
    Get the current application configuration.

    Returns:
        Application configuration
    """
    return get_config_manager().get_config()


def reset_config_manager() -> None:
    """Drop the global configuration manager so the next call reloads."""
    global _config_manager
    _config_manager = None
