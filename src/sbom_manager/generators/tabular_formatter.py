"""
Tabular exports: CSV, native JSON and XLSX workbooks.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from ..models import Component, VulnerabilityRecord

logger = logging.getLogger(__name__)

COLUMNS = [
    "Component Name",
    "Version",
    "License",
    "Supplier",
    "PURL",
    "Description",
    "CVE ID",
    "Severity",
    "CVSS Score",
    "Vulnerability Description",
    "Fixed Version",
    "Status",
]

COLUMN_WIDTHS = [30, 12, 20, 20, 40, 40, 18, 12, 12, 50, 15, 12]

SUMMARY_COLUMN_WIDTHS = [20, 40]


@dataclass
class ExportContext:
    """Document and project facts shown alongside the component table."""
    sbom_id: str
    version: str
    format: str = "spdx"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    author: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    project_description: Optional[str] = None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class TabularFormatter:
    """
    Flattens components and their vulnerability records into table rows.

    A component without vulnerability records yields one row whose last six
    columns are blank. A component with records yields one row per record,
    each repeating the six component columns.
    """

    def build_rows(
        self,
        components: List[Component],
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None
    ) -> List[List[Any]]:
        """
        Build the data rows, header excluded.

        Args:
            components: Components in canonical order
            vulnerabilities: Records keyed by component identity ``name@version``

        Returns:
            One list of twelve cells per row
        """
        vulnerabilities = vulnerabilities or {}
        rows = []
        for component in components:
            fixed = [
                component.name,
                component.version,
                component.license or "",
                component.supplier or "",
                component.purl or "",
                component.description or "",
            ]
            records = vulnerabilities.get(component.identity_key, [])
            if not records:
                rows.append(fixed + [""] * 6)
                continue
            for record in records:
                rows.append(fixed + [
                    record.cve_id or "",
                    record.severity or "",
                    record.cvss_score if record.cvss_score is not None else "",
                    record.description or "",
                    record.fixed_version or "",
                    record.status or "",
                ])
        return rows

    def to_csv(
        self,
        components: List[Component],
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None
    ) -> str:
        """
        Render the component table as CSV.

        Every field is wrapped in double quotes with embedded quotes doubled.
        Rows are joined with ``\\n`` and there is no trailing newline.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(COLUMNS)
        for row in self.build_rows(components, vulnerabilities):
            writer.writerow([_text(cell) for cell in row])

        content = buffer.getvalue()
        if content.endswith("\n"):
            content = content[:-1]
        return content

    def to_json(
        self,
        context: ExportContext,
        components: List[Component],
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None
    ) -> Dict[str, Any]:
        """
        Build the native JSON export.

        Args:
            context: Document and project facts
            components: Components in canonical order
            vulnerabilities: Records keyed by component identity

        Returns:
            Dictionary with ``sbom``, ``project``, ``components`` and ``metadata``
        """
        vulnerabilities = vulnerabilities or {}
        entries = []
        total_vulnerabilities = 0
        for component in components:
            records = vulnerabilities.get(component.identity_key, [])
            total_vulnerabilities += len(records)
            entries.append({
                "name": component.name,
                "version": component.version,
                "license": component.license,
                "supplier": component.supplier,
                "purl": component.purl,
                "description": component.description,
                "vulnerabilities": [
                    {
                        "cveId": record.cve_id,
                        "severity": record.severity,
                        "cvssScore": record.cvss_score,
                        "description": record.description,
                        "fixedVersion": record.fixed_version,
                        "status": record.status
                    }
                    for record in records
                ]
            })

        return {
            "sbom": {
                "id": context.sbom_id,
                "version": context.version,
                "format": context.format,
                "createdAt": context.created_at.isoformat(),
                "author": context.author
            },
            "project": {
                "id": context.project_id,
                "name": context.project_name,
                "description": context.project_description
            },
            "components": entries,
            "metadata": {
                "totalComponents": len(components),
                "totalVulnerabilities": total_vulnerabilities,
                "exportedAt": datetime.now(timezone.utc).isoformat()
            }
        }

    def to_xlsx(
        self,
        context: ExportContext,
        components: List[Component],
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None
    ) -> bytes:
        """
        Render a workbook with a ``Components`` sheet and a ``Summary`` sheet.

        Args:
            context: Document and project facts for the summary sheet
            components: Components in canonical order
            vulnerabilities: Records keyed by component identity

        Returns:
            XLSX file content
        """
        workbook = Workbook()

        sheet = workbook.active
        sheet.title = "Components"
        sheet.append(COLUMNS)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in self.build_rows(components, vulnerabilities):
            sheet.append(row)
        self._set_widths(sheet, COLUMN_WIDTHS)

        summary = workbook.create_sheet("Summary")
        summary.append(["SBOM Report"])
        summary["A1"].font = Font(bold=True)
        summary.append([""])
        summary.append(["Project", context.project_name or "Unknown"])
        summary.append(["SBOM Version", context.version])
        summary.append(["Format", context.format.upper()])
        summary.append(["Created", context.created_at.strftime("%Y-%m-%d %H:%M:%S")])
        summary.append(["Author", context.author or "Unknown"])
        summary.append(["Total Components", len(components)])
        self._set_widths(summary, SUMMARY_COLUMN_WIDTHS)

        buffer = io.BytesIO()
        workbook.save(buffer)
        logger.debug(f"Built XLSX workbook with {sheet.max_row - 1} component rows")
        return buffer.getvalue()

    @staticmethod
    def _set_widths(sheet, widths: List[int]) -> None:
        for index, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width
