"""
Data models for the SBOM manager.
"""

from .component import Component, Ecosystem, ParseResult, build_purl, UNKNOWN_VERSION
from .sbom_document import SBOMDocument, DocumentPackage, Relationship, RelationshipType
from .vulnerability import VulnerabilityRecord, parse_vulnerability_map

__all__ = [
    "Component",
    "Ecosystem",
    "ParseResult",
    "build_purl",
    "UNKNOWN_VERSION",
    "SBOMDocument",
    "DocumentPackage",
    "Relationship",
    "RelationshipType",
    "VulnerabilityRecord",
    "parse_vulnerability_map"
]
