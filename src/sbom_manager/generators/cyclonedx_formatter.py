"""
CycloneDX formatter for exporting SBOM documents as CycloneDX 1.5 JSON.
"""

import logging
from typing import Dict, Any, List, Optional

from ..models import SBOMDocument, DocumentPackage, VulnerabilityRecord
from .base_generator import BaseFormatter

logger = logging.getLogger(__name__)

VulnerabilityMap = Dict[str, List[VulnerabilityRecord]]


class CycloneDXFormatter(BaseFormatter):
    """
    Formatter for CycloneDX format.

    Components carry optional fields only when they have a value, and the
    ``vulnerabilities`` section appears only when at least one record is
    attached to a component.
    """

    def __init__(self, tool_name: str = "SBOM Manager", tool_version: str = "1.0.0"):
        """
        Initialize the CycloneDX formatter.

        Args:
            tool_name: Tool name recorded in ``metadata.tools``
            tool_version: Tool version recorded in ``metadata.tools``
        """
        self.spec_version = "1.5"
        self.tool_name = tool_name
        self.tool_version = tool_version

    @property
    def format_name(self) -> str:
        return "CycloneDX"

    @property
    def file_extension(self) -> str:
        return ".cdx.json"

    def format_document(
        self,
        sbom: SBOMDocument,
        vulnerabilities: Optional[VulnerabilityMap] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Format SBOM document into a CycloneDX 1.5 JSON document.

        Args:
            sbom: SBOM document to format
            vulnerabilities: Records keyed by component identity ``name@version``

        Returns:
            CycloneDX document as a dictionary
        """
        logger.info(f"Formatting SBOM {sbom.document_id} as CycloneDX")
        vulnerabilities = vulnerabilities or {}

        metadata: Dict[str, Any] = {
            "timestamp": sbom.created_iso,
            "tools": [{"name": self.tool_name, "version": self.tool_version}]
        }
        if sbom.author:
            metadata["authors"] = [{"name": sbom.author}]
        metadata["component"] = {
            "type": "application",
            "name": sbom.project_name,
            "version": sbom.project_version,
            "description": sbom.root.description or ""
        }

        document: Dict[str, Any] = {
            "bomFormat": "CycloneDX",
            "specVersion": self.spec_version,
            "serialNumber": f"urn:uuid:{sbom.document_id}",
            "version": 1,
            "metadata": metadata,
            "components": [self._format_component(package) for package in sbom.packages]
        }

        entries = []
        for package in sbom.packages:
            for record in vulnerabilities.get(package.component.identity_key, []):
                entries.append(self._format_vulnerability(record, package.package_id))
        if entries:
            document["vulnerabilities"] = entries

        logger.info(f"Generated CycloneDX document with {len(document['components'])} components "
                    f"and {len(entries)} vulnerabilities")
        return document

    def _format_component(self, package: DocumentPackage) -> Dict[str, Any]:
        component = package.component
        entry: Dict[str, Any] = {
            "type": "library",
            "bom-ref": package.package_id,
            "name": package.name,
            "version": package.version
        }
        if component.supplier:
            entry["supplier"] = {"name": component.supplier}
        if component.purl:
            entry["purl"] = component.purl
        if component.description:
            entry["description"] = component.description
        if component.license:
            entry["licenses"] = [{"license": {"id": component.license}}]
        if component.checksum_sha256:
            entry["hashes"] = [{"alg": "SHA-256", "content": component.checksum_sha256}]
        return entry

    @staticmethod
    def _format_vulnerability(record: VulnerabilityRecord, ref: str) -> Dict[str, Any]:
        rating: Dict[str, Any] = {"severity": (record.severity or "").upper()}
        if record.cvss_score is not None:
            rating["score"] = float(record.cvss_score)

        entry: Dict[str, Any] = {}
        if record.id:
            entry["bom-ref"] = record.id
        entry.update({
            "id": record.cve_id,
            "source": {
                "name": "NVD",
                "url": f"https://nvd.nist.gov/vuln/detail/{record.cve_id}"
            },
            "ratings": [rating],
            "description": record.description or ""
        })
        if record.fixed_version:
            entry["recommendation"] = f"Upgrade to version {record.fixed_version}"
        entry["affects"] = [{"ref": ref}]
        return entry

    def validate_document(self, document: Dict[str, Any]) -> List[str]:
        """
        Validate a rendered CycloneDX document.

        Args:
            document: CycloneDX document dictionary

        Returns:
            List of validation errors, empty when the document is valid
        """
        errors = []

        if document.get("bomFormat") != "CycloneDX":
            errors.append("Missing or invalid bomFormat")
        if not document.get("specVersion"):
            errors.append("Missing specVersion")
        if not document.get("serialNumber"):
            errors.append("Missing serialNumber")
        if not document.get("metadata"):
            errors.append("Missing metadata")

        for index, component in enumerate(document.get("components") or []):
            for field_name in ("type", "bom-ref", "name", "version"):
                if not component.get(field_name):
                    errors.append(f"Component {index}: Missing {field_name}")

        refs = {component.get("bom-ref") for component in document.get("components") or []}
        for index, vulnerability in enumerate(document.get("vulnerabilities") or []):
            if not vulnerability.get("id"):
                errors.append(f"Vulnerability {index}: Missing id")
            for affected in vulnerability.get("affects") or []:
                if affected.get("ref") not in refs:
                    errors.append(f"Vulnerability {index}: Unknown affected ref {affected.get('ref')}")

        if errors:
            logger.warning(f"CycloneDX validation failed with {len(errors)} errors")
        return errors
