"""
Closed registry of ecosystem parsers and first-match dispatch.
"""

import logging
from pathlib import PurePath
from typing import Iterable, List, Optional

from ..models import Ecosystem, ParseResult
from ..error_handling.exceptions import UnsupportedFileError
from .base_scanner import ManifestParser
from .npm_parser import NpmParser
from .python_parser import PythonParser
from .java_parser import JavaParser
from .go_parser import GoParser
from .rust_parser import RustParser

logger = logging.getLogger(__name__)

# Basename sets are disjoint, so registration order never changes which
# parser wins; it only fixes the iteration order of SUPPORTED_FILES.
PARSERS: List[ManifestParser] = [
    NpmParser(),
    PythonParser(),
    JavaParser(),
    GoParser(),
    RustParser(),
]

SUPPORTED_FILES: List[str] = [name for parser in PARSERS for name in parser.supported_files]


def get_parser_for_file(file_name: str) -> Optional[ManifestParser]:
    """
    Find the first parser that claims a file's basename.

    Args:
        file_name: File name or path

    Returns:
        Matching parser or None
    """
    for parser in PARSERS:
        if parser.can_parse(file_name):
            return parser
    return None


def parse_manifest(file_name: str, content: str) -> ParseResult:
    """
    Parse manifest text with the matching ecosystem parser.

    Args:
        file_name: File name or path; only the basename selects the parser
        content: Raw manifest text

    Returns:
        ParseResult from the matching parser

    Raises:
        UnsupportedFileError: If no parser claims the basename
        MalformedManifestError: If the matching parser cannot read the content
    """
    parser = get_parser_for_file(file_name)
    if parser is None:
        raise UnsupportedFileError(
            f"No parser available for {PurePath(file_name).name}",
            file_name=file_name
        )
    return parser.parse(file_name, content)


def is_supported_file(file_name: str) -> bool:
    return PurePath(file_name).name in SUPPORTED_FILES


def detect_ecosystem(file_names: Iterable[str]) -> Ecosystem:
    """
    Guess the ecosystem of a set of files from their names.

    The first name that contains a known manifest name decides, so
    ``frontend/package.json`` counts as npm.

    Args:
        file_names: File names or paths

    Returns:
        Ecosystem of the first recognized name, UNKNOWN if none
    """
    for file_name in file_names:
        for parser in PARSERS:
            if any(pattern in file_name for pattern in parser.supported_files):
                return parser.ecosystem
    return Ecosystem.UNKNOWN
