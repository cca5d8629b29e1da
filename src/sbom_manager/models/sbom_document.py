"""
Format-agnostic SBOM document graph.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum

from .component import Component


class RelationshipType(Enum):
    """Types of package relationships."""
    DEPENDS_ON = "DEPENDS_ON"
    DESCRIBES = "DESCRIBES"


@dataclass
class DocumentPackage:
    """
    One node of the document graph.

    The root package describes the scanned project and carries no
    component; every other package wraps exactly one canonical component.
    """

    package_id: str
    name: str
    version: str
    supplier: Optional[str] = None
    description: Optional[str] = None
    component: Optional[Component] = None

    @property
    def is_root(self) -> bool:
        return self.component is None

    @property
    def license(self) -> Optional[str]:
        return self.component.license if self.component else None

    @property
    def purl(self) -> Optional[str]:
        return self.component.purl if self.component else None

    @property
    def checksum_sha256(self) -> Optional[str]:
        return self.component.checksum_sha256 if self.component else None


@dataclass
class Relationship:
    """Directed edge ``(source, type, target)`` between two packages."""

    source_id: str
    target_id: str
    relationship_type: RelationshipType = RelationshipType.DEPENDS_ON

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "relationship_type": self.relationship_type.value,
            "target_id": self.target_id
        }


@dataclass
class SBOMDocument:
    """
    Represents a synthesized Software Bill of Materials.

    The document is a derived view of a canonical component list: a root
    package for the project, one package per component, and the directed
    relationships between them. It is rebuilt on demand and never mutated
    after synthesis.
    """

    document_id: str
    name: str
    namespace: str
    created: datetime
    creators: List[str]
    root: DocumentPackage
    project_name: str
    project_version: str
    packages: List[DocumentPackage] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    author: Optional[str] = None
    ecosystem: Optional[str] = None
    license_list_version: str = "3.21"

    @property
    def component_count(self) -> int:
        """Number of non-root packages."""
        return len(self.packages)

    @property
    def components(self) -> List[Component]:
        """Canonical components in package order."""
        return [p.component for p in self.packages if p.component is not None]

    @property
    def created_iso(self) -> str:
        """Creation timestamp in ISO 8601 with a trailing ``Z``."""
        return self.created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{self.created.microsecond // 1000:03d}Z"

    def get_package(self, package_id: str) -> Optional[DocumentPackage]:
        if package_id == self.root.package_id:
            return self.root
        for package in self.packages:
            if package.package_id == package_id:
                return package
        return None

    def edges_from(self, package_id: str) -> List[Relationship]:
        return [r for r in self.relationships if r.source_id == package_id]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Summarize the document graph.

        Returns:
            Dictionary with package, relationship and origin counts
        """
        origins: Dict[str, int] = {}
        for component in self.components:
            origins[component.origin] = origins.get(component.origin, 0) + 1

        root_edges = len(self.edges_from(self.root.package_id))
        return {
            "total_packages": len(self.packages) + 1,
            "total_components": len(self.packages),
            "total_relationships": len(self.relationships),
            "root_relationships": root_edges,
            "dependency_relationships": len(self.relationships) - root_edges,
            "origins": origins
        }
