"""
Configuration management for the SBOM manager.
"""

from .config_manager import (
    ConfigManager, AppConfig, ProjectConfig, ScanningConfig, OutputConfig,
    DocumentConfig, LicenseConfig, StorageConfig, LoggingConfig,
    get_config_manager, get_config, reset_config_manager
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "ProjectConfig",
    "ScanningConfig",
    "OutputConfig",
    "DocumentConfig",
    "LicenseConfig",
    "StorageConfig",
    "LoggingConfig",
    "get_config_manager",
    "get_config",
    "reset_config_manager"
]
