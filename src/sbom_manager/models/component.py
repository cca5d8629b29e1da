"""
Canonical component model shared by every ecosystem parser.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum
import json


class Ecosystem(Enum):
    """Supported package ecosystems."""
    NPM = "npm"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    RUST = "rust"
    UNKNOWN = "unknown"

    @property
    def purl_scheme(self) -> str:
        """Package URL type used for components of this ecosystem."""
        return _PURL_SCHEMES.get(self, "generic")

    @property
    def origin(self) -> str:
        """Origin tag stamped on components of this ecosystem."""
        return _ORIGINS.get(self, "unknown")

    @property
    def supplier(self) -> Optional[str]:
        """Default supplier name for components of this ecosystem."""
        return _SUPPLIERS.get(self)

    @classmethod
    def from_value(cls, value: Any) -> 'Ecosystem':
        """Coerce a string or enum into an Ecosystem, defaulting to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


_PURL_SCHEMES = {
    Ecosystem.NPM: "npm",
    Ecosystem.PYTHON: "pypi",
    Ecosystem.JAVA: "maven",
    Ecosystem.GO: "golang",
    Ecosystem.RUST: "cargo",
}

_ORIGINS = {
    Ecosystem.NPM: "npm",
    Ecosystem.PYTHON: "pypi",
    Ecosystem.JAVA: "maven",
    Ecosystem.GO: "golang",
    Ecosystem.RUST: "crates.io",
}

_SUPPLIERS = {
    Ecosystem.NPM: "npm",
    Ecosystem.PYTHON: "PyPI",
    Ecosystem.JAVA: "Maven Central",
    Ecosystem.GO: "Go Modules",
    Ecosystem.RUST: "crates.io",
}

UNKNOWN_VERSION = "unknown"


def build_purl(scheme: str, name: str, version: Optional[str]) -> str:
    """
    Build a package URL for a component.

    The result is always ``pkg:<scheme>/<name>@<version>``. Maven
    coordinates written as ``group:artifact`` use the purl namespace form
    ``group/artifact``.

    Args:
        scheme: purl type (npm, pypi, maven, golang, cargo, gradle)
        name: Component name as produced by the parser
        version: Component version, ``unknown`` when absent

    Returns:
        Package URL string
    """
    if scheme in ("maven", "gradle"):
        name = name.replace(":", "/")
    return f"pkg:{scheme}/{name}@{version or UNKNOWN_VERSION}"


@dataclass
class Component:
    """
    Canonical, ecosystem-agnostic representation of one dependency.

    Components are produced by the parsers, deduplicated by identity key
    and then treated as read-only: every document format is rendered from
    the same list.
    """

    name: str
    version: str
    origin: str
    supplier: Optional[str] = None
    license: Optional[str] = None
    purl: Optional[str] = None
    checksum_sha256: Optional[str] = None
    description: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def identity_key(self) -> str:
        """Deduplication key, ``name@version``."""
        return f"{self.name}@{self.version}"

    @property
    def ecosystem(self) -> Ecosystem:
        """Ecosystem recorded by the parser that produced this component."""
        return Ecosystem.from_value(self.metadata.get("ecosystem", "unknown"))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert component to dictionary for serialization.

        Returns:
            JSON-safe dictionary representation
        """
        return {
            "name": self.name,
            "version": self.version,
            "origin": self.origin,
            "supplier": self.supplier,
            "license": self.license,
            "purl": self.purl,
            "checksum_sha256": self.checksum_sha256,
            "description": self.description,
            "dependencies": list(self.dependencies),
            "metadata": dict(self.metadata)
        }

    def to_json(self) -> str:
        """Convert component to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Component':
        """
        Create component from dictionary.

        Args:
            data: Dictionary produced by ``to_dict``

        Returns:
            Component instance
        """
        return cls(
            name=data["name"],
            version=data.get("version", UNKNOWN_VERSION),
            origin=data.get("origin", "unknown"),
            supplier=data.get("supplier"),
            license=data.get("license"),
            purl=data.get("purl"),
            checksum_sha256=data.get("checksum_sha256"),
            description=data.get("description"),
            dependencies=list(data.get("dependencies", [])),
            metadata=dict(data.get("metadata", {}))
        )

    def __str__(self) -> str:
        return self.identity_key


@dataclass
class ParseResult:
    """
    Output of a single manifest parse.

    ``metadata`` carries ecosystem-specific facts such as the module name,
    Go version or build tool. Nothing downstream depends on it.
    """

    ecosystem: Ecosystem
    components: List[Component] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def component_count(self) -> int:
        return len(self.components)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ecosystem": self.ecosystem.value,
            "components": [c.to_dict() for c in self.components],
            "metadata": self.metadata
        }
