"""
SPDX formatter for exporting SBOM documents as SPDX 2.3 JSON.
"""

import logging
from typing import Dict, Any, List, Optional

from ..models import Component, SBOMDocument, DocumentPackage
from ..error_handling.exceptions import ValidationError
from .base_generator import BaseFormatter
from .sbom_generator import SBOMGenerator

logger = logging.getLogger(__name__)

NOASSERTION = "NOASSERTION"


class SPDXFormatter(BaseFormatter):
    """
    Formatter for SPDX (Software Package Data Exchange) format.

    This formatter converts SBOM documents to JSON compliant with the
    SPDX specification version 2.3.
    """

    def __init__(self, generator: Optional[SBOMGenerator] = None):
        """Initialize the SPDX formatter."""
        self.spdx_version = "SPDX-2.3"
        self.data_license = "CC0-1.0"
        self._generator = generator

    @property
    def generator(self) -> SBOMGenerator:
        if self._generator is None:
            self._generator = SBOMGenerator()
        return self._generator

    @property
    def format_name(self) -> str:
        """Get the name of this format."""
        return "SPDX"

    @property
    def file_extension(self) -> str:
        """Get the recommended file extension for this format."""
        return ".spdx.json"

    def format_document(self, sbom: SBOMDocument, **kwargs) -> Dict[str, Any]:
        """
        Format SBOM document into an SPDX 2.3 JSON document.

        Args:
            sbom: SBOM document to format

        Returns:
            SPDX document as a dictionary
        """
        logger.info(f"Formatting SBOM {sbom.document_id} as SPDX")

        packages = [self._format_root_package(sbom.root)]
        packages.extend(self._format_package(package, sbom.ecosystem) for package in sbom.packages)

        document = {
            "spdxVersion": self.spdx_version,
            "dataLicense": self.data_license,
            "SPDXID": "SPDXRef-DOCUMENT",
            "name": sbom.name,
            "documentNamespace": sbom.namespace,
            "creationInfo": {
                "created": sbom.created_iso,
                "creators": list(sbom.creators),
                "licenseListVersion": sbom.license_list_version
            },
            "packages": packages,
            "relationships": [
                {
                    "spdxElementId": relationship.source_id,
                    "relationshipType": relationship.relationship_type.value,
                    "relatedSpdxElement": relationship.target_id
                }
                for relationship in sbom.relationships
            ],
            "documentDescribes": [sbom.root.package_id]
        }

        logger.info(f"Generated SPDX document with {len(packages)} packages")
        return document

    def _format_root_package(self, root: DocumentPackage) -> Dict[str, Any]:
        return {
            "SPDXID": root.package_id,
            "name": root.name,
            "versionInfo": root.version,
            "downloadLocation": NOASSERTION,
            "filesAnalyzed": False,
            "supplier": f"Organization: {root.supplier or 'Unknown'}",
            "description": root.description,
            "copyrightText": NOASSERTION
        }

    def _format_package(self, package: DocumentPackage, ecosystem: Optional[str]) -> Dict[str, Any]:
        """Format one component package, omitting empty optional fields."""
        component = package.component
        spdx_package = {
            "SPDXID": package.package_id,
            "name": package.name,
            "versionInfo": package.version,
            "downloadLocation": component.purl or NOASSERTION,
            "filesAnalyzed": False,
            "supplier": f"Organization: {component.supplier}" if component.supplier else NOASSERTION,
            "licenseConcluded": component.license or NOASSERTION,
            "licenseDeclared": component.license or NOASSERTION,
            "copyrightText": NOASSERTION
        }

        if component.description:
            spdx_package["description"] = component.description

        if component.purl:
            spdx_package["externalRefs"] = [{
                "referenceCategory": "PACKAGE-MANAGER",
                "referenceType": "purl",
                "referenceLocator": component.purl
            }]

        if component.checksum_sha256:
            spdx_package["checksums"] = [{
                "algorithm": "SHA256",
                "checksumValue": component.checksum_sha256
            }]

        comment = self._format_comment(component, ecosystem)
        if comment:
            spdx_package["comment"] = comment

        return spdx_package

    @staticmethod
    def _format_comment(component: Component, ecosystem: Optional[str]) -> str:
        fields = []
        if component.origin:
            fields.append(f"Origin: {component.origin}")
        if component.metadata.get("criticality"):
            fields.append(f"Criticality: {component.metadata['criticality']}")
        if component.metadata.get("usageRestrictions"):
            fields.append(f"Usage Restrictions: {component.metadata['usageRestrictions']}")
        if ecosystem:
            fields.append(f"Ecosystem: {ecosystem}")
        return " | ".join(fields)

    def validate_document(self, document: Dict[str, Any]) -> List[str]:
        """
        Validate a rendered SPDX document.

        Args:
            document: SPDX document dictionary

        Returns:
            List of validation errors, empty when the document is valid
        """
        errors = []

        for field_name in ("spdxVersion", "dataLicense", "SPDXID", "name",
                           "documentNamespace", "creationInfo"):
            if not document.get(field_name):
                errors.append(f"Missing {field_name}")

        packages = document.get("packages") or []
        if not packages:
            errors.append("No packages defined")

        for index, package in enumerate(packages):
            for field_name in ("SPDXID", "name", "versionInfo"):
                if not package.get(field_name):
                    errors.append(f"Package {index}: Missing {field_name}")
            if package.get("downloadLocation") is None:
                errors.append(f"Package {index}: Missing downloadLocation")

        if errors:
            logger.warning(f"SPDX validation failed with {len(errors)} errors")
            for error in errors:
                logger.debug(f"  - {error}")
        else:
            logger.debug("SPDX format validation passed")

        return errors

    def generate(
        self,
        components: List[Component],
        project_name: str,
        project_version: str,
        author: Optional[str] = None,
        ecosystem: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create, render and validate an SPDX document in one step.

        Args:
            components: Deduplicated components
            project_name: Name of the scanned project
            project_version: Version of the scanned project
            author: Optional document author
            ecosystem: Optional ecosystem tag

        Returns:
            Valid SPDX document

        Raises:
            ValidationError: If the rendered document is missing required fields
        """
        sbom = self.generator.create_sbom(
            components, project_name, project_version, author=author, ecosystem=ecosystem
        )
        document = self.format_document(sbom)
        errors = self.validate_document(document)
        if errors:
            raise ValidationError(
                f"SPDX document for {project_name} failed validation",
                errors=errors,
                document_format="spdx"
            )
        return document
