"""
SBOM generator that builds the format-agnostic document graph from components.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from ..models import (
    Component, SBOMDocument, DocumentPackage, Relationship, RelationshipType
)
from ..config import get_config

logger = logging.getLogger(__name__)

ROOT_PACKAGE_ID = "SPDXRef-RootPackage"

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_id(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``-``."""
    return _INVALID_ID_CHARS.sub("-", value)


class SBOMGenerator:
    """
    Creates SBOM documents from canonical component lists.

    The generated document has a root package describing the project, one
    package per component and the directed relationships between them:
    a ``DEPENDS_ON`` edge from the root to every package, plus best-effort
    edges between components for dependency names the list can resolve.
    """

    def __init__(self):
        """Initialize the SBOM generator."""
        self.config = get_config()

        self._generation_statistics = {
            "sboms_generated": 0,
            "components_processed": 0,
            "relationships_created": 0,
            "unresolved_dependencies": 0
        }

    def create_sbom(
        self,
        components: List[Component],
        project_name: str,
        project_version: str,
        author: Optional[str] = None,
        ecosystem: Optional[str] = None
    ) -> SBOMDocument:
        """
        Generate an SBOM document graph from components.

        Args:
            components: Deduplicated components in canonical order
            project_name: Name of the scanned project
            project_version: Version of the scanned project
            author: Optional person credited as document creator
            ecosystem: Optional ecosystem tag recorded on every package

        Returns:
            Generated SBOM document
        """
        logger.info(f"Creating SBOM for {project_name} with {len(components)} components")

        document_settings = self.config.document
        document_id = str(uuid.uuid4())
        namespace = f"{document_settings.namespace_base.rstrip('/')}/{project_name}/{document_id}"

        creators = [
            f"Tool: {document_settings.tool_name}",
            f"Person: {author}" if author else "Organization: Unknown"
        ]

        root = DocumentPackage(
            package_id=ROOT_PACKAGE_ID,
            name=project_name,
            version=project_version,
            supplier=author or "Unknown",
            description=f"SBOM for {project_name}"
        )

        packages = []
        relationships = []
        package_ids: Dict[str, str] = {}

        for index, component in enumerate(components):
            package_id = f"SPDXRef-Package-{sanitize_id(component.name or '')}-{index}"
            package_ids.setdefault(component.identity_key, package_id)
            packages.append(DocumentPackage(
                package_id=package_id,
                name=component.name,
                version=component.version,
                supplier=component.supplier,
                description=component.description,
                component=component
            ))
            relationships.append(Relationship(ROOT_PACKAGE_ID, package_id))

        relationships.extend(self._generate_relationships(packages, package_ids))

        sbom = SBOMDocument(
            document_id=document_id,
            name=f"{project_name}-{project_version}-sbom",
            namespace=namespace,
            created=datetime.now(timezone.utc),
            creators=creators,
            root=root,
            project_name=project_name,
            project_version=project_version,
            packages=packages,
            relationships=relationships,
            author=author,
            ecosystem=ecosystem,
            license_list_version=document_settings.license_list_version
        )

        self._generation_statistics["sboms_generated"] += 1
        self._generation_statistics["components_processed"] += len(components)
        self._generation_statistics["relationships_created"] += len(relationships)

        logger.info(f"Created SBOM {document_id} with {sbom.component_count} packages "
                    f"and {len(relationships)} relationships")
        return sbom

    def _generate_relationships(
        self,
        packages: List[DocumentPackage],
        package_ids: Dict[str, str]
    ) -> List[Relationship]:
        """
        Resolve declared dependency names to packages.

        A name resolves to the first package, in insertion order, whose
        identity key starts with ``<name>@``. Unresolved names produce no edge.
        """
        relationships = []
        for package in packages:
            for dependency_name in package.component.dependencies:
                prefix = f"{dependency_name}@"
                target = next(
                    (pid for key, pid in package_ids.items() if key.startswith(prefix)),
                    None
                )
                if target is None:
                    self._generation_statistics["unresolved_dependencies"] += 1
                    logger.debug(f"Unresolved dependency {dependency_name} of {package.name}")
                    continue
                relationships.append(
                    Relationship(package.package_id, target, RelationshipType.DEPENDS_ON)
                )
        return relationships

    def get_generation_statistics(self) -> Dict[str, Any]:
        """
        Get SBOM generation statistics.

        Returns:
            Dictionary of generation statistics
        """
        return self._generation_statistics.copy()

    def reset_statistics(self) -> None:
        """Reset generation statistics."""
        self._generation_statistics = {
            "sboms_generated": 0,
            "components_processed": 0,
            "relationships_created": 0,
            "unresolved_dependencies": 0
        }
