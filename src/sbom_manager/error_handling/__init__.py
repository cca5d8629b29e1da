"""
Error taxonomy for the SBOM manager.
"""

from .exceptions import (
    SBOMManagerError, UnsupportedFileError, MalformedManifestError,
    ScanError, ValidationError, ExportError, PersistenceError,
    ConfigurationError
)

__all__ = [
    "SBOMManagerError",
    "UnsupportedFileError",
    "MalformedManifestError",
    "ScanError",
    "ValidationError",
    "ExportError",
    "PersistenceError",
    "ConfigurationError"
]
