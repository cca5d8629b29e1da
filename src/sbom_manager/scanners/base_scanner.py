"""
Base class and shared helpers for ecosystem manifest parsers.
"""

import re
import json
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import List, Optional, Dict, Any
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

from ..models import Component, Ecosystem, ParseResult, build_purl, UNKNOWN_VERSION
from ..error_handling.exceptions import MalformedManifestError, UnsupportedFileError

_TOML_LINE = re.compile(r"at line (\d+)")


class ManifestParser(ABC):
    """
    Abstract base class for ecosystem-specific manifest parsers.

    A parser is a pure function of ``(file_name, content)``: it keeps no
    state between calls, so one instance can be shared across threads.
    """

    @property
    @abstractmethod
    def ecosystem(self) -> Ecosystem:
        """
        Get the ecosystem this parser handles.

        Returns:
            Ecosystem enum member
        """
        pass

    @property
    @abstractmethod
    def supported_files(self) -> List[str]:
        """
        Get the exact file basenames this parser claims.

        Returns:
            List of basenames (e.g., ['package.json', 'package-lock.json'])
        """
        pass

    @abstractmethod
    def parse(self, file_name: str, content: str) -> ParseResult:
        """
        Extract components from manifest text.

        Args:
            file_name: Name or path of the manifest; only the basename is used
            content: Raw manifest text

        Returns:
            ParseResult with the components found

        Raises:
            UnsupportedFileError: If the basename is not claimed by this parser
            MalformedManifestError: If the content cannot be parsed
        """
        pass

    def can_parse(self, file_name: str) -> bool:
        """
        Check if this parser can handle the given file.

        Args:
            file_name: File name or path

        Returns:
            True if the basename is one of ``supported_files``
        """
        return PurePath(file_name).name in self.supported_files

    def _basename(self, file_name: str) -> str:
        base = PurePath(file_name).name
        if base not in self.supported_files:
            raise UnsupportedFileError(
                f"{self.__class__.__name__} cannot parse {base}",
                file_name=file_name
            )
        return base

    def _create_component(
        self,
        name: str,
        version: Optional[str],
        supplier: Optional[str] = None,
        origin: Optional[str] = None,
        purl_scheme: Optional[str] = None,
        license: Optional[str] = None,
        checksum_sha256: Optional[str] = None,
        dependencies: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None
    ) -> Component:
        """
        Create a Component stamped with this parser's ecosystem defaults.

        Args:
            name: Component name
            version: Component version (``unknown`` when missing)
            supplier: Supplier override, defaults to the ecosystem supplier
            origin: Origin override, defaults to the ecosystem origin tag
            purl_scheme: purl type override, defaults to the ecosystem scheme
            license: Raw license string
            checksum_sha256: SHA-256 digest when the manifest carries one
            dependencies: Names of declared dependencies
            metadata: Ecosystem-specific flags
            description: Component description

        Returns:
            Component object
        """
        version = version or UNKNOWN_VERSION
        component_metadata = {"ecosystem": self.ecosystem.value}
        if metadata:
            component_metadata.update(metadata)

        return Component(
            name=name,
            version=version,
            origin=origin or self.ecosystem.origin,
            supplier=supplier or self.ecosystem.supplier,
            license=license,
            purl=build_purl(purl_scheme or self.ecosystem.purl_scheme, name, version),
            checksum_sha256=checksum_sha256,
            description=description,
            dependencies=list(dependencies or []),
            metadata=component_metadata
        )

    def _load_json(self, file_name: str, content: str) -> Dict[str, Any]:
        """
        Decode a JSON manifest whose top level must be an object.

        Raises:
            MalformedManifestError: On invalid JSON or a non-object document
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedManifestError(
                f"Invalid JSON in {file_name}: {e.msg}",
                file_name=file_name,
                parser_type=self.ecosystem.value,
                line_number=e.lineno,
                cause=e
            )

        if not isinstance(data, dict):
            raise MalformedManifestError(
                f"Expected a JSON object at the top level of {file_name}",
                file_name=file_name,
                parser_type=self.ecosystem.value
            )
        return data

    def _load_toml(self, file_name: str, content: str) -> Dict[str, Any]:
        """
        Decode a TOML manifest.

        Raises:
            MalformedManifestError: On invalid TOML, with the line number
                tomllib reports when it names one
        """
        try:
            return tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            match = _TOML_LINE.search(str(e))
            raise MalformedManifestError(
                f"Invalid TOML in {file_name}: {e}",
                file_name=file_name,
                parser_type=self.ecosystem.value,
                line_number=int(match.group(1)) if match else None,
                cause=e
            )

    def _malformed(self, file_name: str, message: str, line_number: Optional[int] = None) -> MalformedManifestError:
        return MalformedManifestError(
            message,
            file_name=file_name,
            parser_type=self.ecosystem.value,
            line_number=line_number
        )

    def _result(self, components: List[Component], **metadata: Any) -> ParseResult:
        return ParseResult(
            ecosystem=self.ecosystem,
            components=components,
            metadata={k: v for k, v in metadata.items() if v is not None}
        )
