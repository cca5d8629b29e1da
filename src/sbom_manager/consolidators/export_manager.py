"""
Export manager that renders canonical components into downloadable artifacts.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models import Component, VulnerabilityRecord
from ..generators import (
    SBOMGenerator, SPDXFormatter, CycloneDXFormatter, TabularFormatter,
    ExportContext, SBOMFormat
)
from ..error_handling.exceptions import ExportError, ValidationError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_FILENAME_SUFFIXES = {
    SBOMFormat.SPDX: "-spdx.json",
    SBOMFormat.CYCLONEDX: "-cdx.json",
    SBOMFormat.CSV: ".csv",
    SBOMFormat.JSON: ".json",
    SBOMFormat.XLSX: ".xlsx",
}


@dataclass
class ExportArtifact:
    """A rendered export ready to be written or served."""
    filename: str
    media_type: str
    content: Union[str, bytes]

    @property
    def size(self) -> int:
        if isinstance(self.content, bytes):
            return len(self.content)
        return len(self.content.encode("utf-8"))


class ExportManager:
    """
    Export manager with multiple format support.

    Documents are rebuilt from the canonical component list on every call;
    nothing rendered here is cached or persisted.
    """

    def __init__(
        self,
        sbom_generator: Optional[SBOMGenerator] = None,
        tabular_formatter: Optional[TabularFormatter] = None
    ):
        """
        Initialize export manager.

        Args:
            sbom_generator: Optional SBOM generator instance
            tabular_formatter: Optional tabular formatter instance
        """
        self.sbom_generator = sbom_generator or SBOMGenerator()
        self.spdx_formatter = SPDXFormatter(self.sbom_generator)
        self.cyclonedx_formatter = CycloneDXFormatter()
        self.tabular_formatter = tabular_formatter or TabularFormatter()

        self._export_statistics = {
            "exports_performed": 0,
            "formats_exported": {},
            "files_created": 0,
            "total_size_bytes": 0,
            "errors": []
        }

    @staticmethod
    def build_filename(fmt: Union[str, SBOMFormat], project_name: Optional[str], version: str) -> str:
        """Build ``sbom-<project>-v<version>`` plus the format suffix."""
        sbom_format = SBOMFormat(fmt) if isinstance(fmt, str) else fmt
        return f"sbom-{project_name or 'unknown'}-v{version}{_FILENAME_SUFFIXES[sbom_format]}"

    def export(
        self,
        fmt: Union[str, SBOMFormat],
        components: List[Component],
        context: ExportContext,
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None,
        ecosystem: Optional[str] = None
    ) -> ExportArtifact:
        """
        Render components in one export format.

        Args:
            fmt: One of ``spdx``, ``cyclonedx``, ``csv``, ``json``, ``xlsx``
            components: Canonical components of the SBOM
            context: Document and project facts
            vulnerabilities: Records keyed by component identity ``name@version``
            ecosystem: Optional ecosystem tag for standards documents

        Returns:
            ExportArtifact with filename, media type and content

        Raises:
            ExportError: If the format is not supported
            ValidationError: If a standards document fails validation
        """
        try:
            sbom_format = SBOMFormat(fmt.lower()) if isinstance(fmt, str) else fmt
        except ValueError:
            raise ExportError(f"Unsupported export format: {fmt}", export_format=str(fmt))

        logger.info(f"Exporting {len(components)} components as {sbom_format.value}")

        try:
            if sbom_format in (SBOMFormat.SPDX, SBOMFormat.CYCLONEDX):
                content = self._export_standard(sbom_format, components, context, vulnerabilities, ecosystem)
                media_type = JSON_MEDIA_TYPE
            elif sbom_format == SBOMFormat.CSV:
                content = self.tabular_formatter.to_csv(components, vulnerabilities)
                media_type = "text/csv"
            elif sbom_format == SBOMFormat.JSON:
                document = self.tabular_formatter.to_json(context, components, vulnerabilities)
                content = json.dumps(document, indent=2, ensure_ascii=False)
                media_type = JSON_MEDIA_TYPE
            else:
                content = self.tabular_formatter.to_xlsx(context, components, vulnerabilities)
                media_type = XLSX_MEDIA_TYPE
        except ValidationError as e:
            self._export_statistics["errors"].append(str(e))
            logger.error(
                f"Failed to export {sbom_format.value} format: {e.message}",
                extra={"sbom_id": context.sbom_id, "export_format": sbom_format.value}
            )
            raise

        artifact = ExportArtifact(
            filename=self.build_filename(sbom_format, context.project_name, context.version),
            media_type=media_type,
            content=content
        )

        self._export_statistics["exports_performed"] += 1
        formats = self._export_statistics["formats_exported"]
        formats[sbom_format.value] = formats.get(sbom_format.value, 0) + 1

        logger.info(
            f"Exported {artifact.filename} ({artifact.size} bytes)",
            extra={"sbom_id": context.sbom_id, "export_format": sbom_format.value, "component_count": len(components)}
        )
        return artifact

    def _export_standard(
        self,
        sbom_format: SBOMFormat,
        components: List[Component],
        context: ExportContext,
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]],
        ecosystem: Optional[str]
    ) -> str:
        sbom = self.sbom_generator.create_sbom(
            components,
            context.project_name or "Unknown",
            context.version,
            author=context.author,
            ecosystem=ecosystem
        )

        formatter = self.spdx_formatter if sbom_format == SBOMFormat.SPDX else self.cyclonedx_formatter
        document = formatter.format_document(sbom, vulnerabilities=vulnerabilities)
        errors = formatter.validate_document(document)
        if errors:
            raise ValidationError(
                f"{formatter.format_name} document failed validation",
                errors=errors,
                document_format=sbom_format.value
            )
        return formatter.to_json(document)

    def write(self, artifact: ExportArtifact, directory: Union[str, Path]) -> Path:
        """
        Write an artifact into a directory.

        Args:
            artifact: Rendered export
            directory: Target directory, created if missing

        Returns:
            Path of the written file

        Raises:
            ExportError: If the file cannot be written
        """
        output_dir = Path(directory)
        file_path = output_dir / artifact.filename
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            if isinstance(artifact.content, bytes):
                file_path.write_bytes(artifact.content)
            else:
                file_path.write_text(artifact.content, encoding="utf-8")
        except OSError as e:
            self._export_statistics["errors"].append(str(e))
            raise ExportError(
                f"Failed to write {artifact.filename}",
                output_path=str(file_path),
                cause=e
            )

        self._export_statistics["files_created"] += 1
        self._export_statistics["total_size_bytes"] += artifact.size
        logger.info(f"Wrote {file_path} ({artifact.size} bytes)")
        return file_path

    def get_export_statistics(self) -> Dict[str, Any]:
        """Get export statistics."""
        stats = self._export_statistics.copy()
        stats["total_size_mb"] = stats["total_size_bytes"] / (1024 * 1024)
        return stats

    def reset_statistics(self) -> None:
        """Reset export statistics."""
        self._export_statistics = {
            "exports_performed": 0,
            "formats_exported": {},
            "files_created": 0,
            "total_size_bytes": 0,
            "errors": []
        }
