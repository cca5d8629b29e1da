"""
Manifest parsers for the supported package ecosystems and the ingestion pipeline.
"""

from .base_scanner import ManifestParser
from .npm_parser import NpmParser
from .python_parser import PythonParser
from .java_parser import JavaParser
from .go_parser import GoParser
from .rust_parser import RustParser
from .parser_registry import (
    PARSERS, SUPPORTED_FILES, get_parser_for_file, parse_manifest,
    is_supported_file, detect_ecosystem
)
from .dependency_scanner import DependencyScanner, IngestionResult, FileSummary

__all__ = [
    "ManifestParser",
    "NpmParser",
    "PythonParser",
    "JavaParser",
    "GoParser",
    "RustParser",
    "PARSERS",
    "SUPPORTED_FILES",
    "get_parser_for_file",
    "parse_manifest",
    "is_supported_file",
    "detect_ecosystem",
    "DependencyScanner",
    "IngestionResult",
    "FileSummary"
]
