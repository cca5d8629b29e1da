"""
Unit tests for document synthesis and output formatters.

Tests cover:
- Document graph construction (root package, edges, ids)
- SPDX 2.3 rendering and validation
- CycloneDX 1.5 rendering, vulnerabilities and validation
- Tabular rows, CSV, native JSON and XLSX
"""

import csv
import io
import json
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from sbom_manager.error_handling import ValidationError
from sbom_manager.generators import (
    COLUMNS,
    ROOT_PACKAGE_ID,
    CycloneDXFormatter,
    ExportContext,
    SBOMGenerator,
    SPDXFormatter,
    TabularFormatter,
    sanitize_id,
)
from sbom_manager.models import Component, RelationshipType, VulnerabilityRecord


@pytest.fixture
def sbom(components):
    return SBOMGenerator().create_sbom(components, "demo", "1.0.0", ecosystem="npm")


@pytest.fixture
def vulnerabilities():
    return {
        "express@4.18.2": [
            VulnerabilityRecord(
                cve_id="CVE-2024-0001",
                severity="high",
                cvss_score=7.5,
                description="Open redirect",
                fixed_version="4.19.2",
                status="open",
            ),
            VulnerabilityRecord(cve_id="CVE-2024-0002", severity="low", id="vuln-2"),
        ]
    }


@pytest.fixture
def context():
    return ExportContext(
        sbom_id="sbom-1",
        version="1.0.0",
        created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        author="alice",
        project_id="demo",
        project_name="demo",
    )


# =============================================================================
# SBOMGenerator Tests
# =============================================================================


class TestSBOMGenerator:
    """Tests for the document graph."""

    def test_package_ids(self, sbom):
        """Test package ids combine the sanitized name and position."""
        assert [p.package_id for p in sbom.packages] == [
            "SPDXRef-Package-express-0",
            "SPDXRef-Package-body-parser-1",
            "SPDXRef-Package-readline-sync-2",
        ]

    def test_root_edges(self, sbom):
        """Test the root depends on every package."""
        root_edges = sbom.edges_from(ROOT_PACKAGE_ID)
        assert [edge.target_id for edge in root_edges] == [p.package_id for p in sbom.packages]
        assert all(edge.relationship_type == RelationshipType.DEPENDS_ON for edge in root_edges)

    def test_dependency_edges(self, sbom):
        """Test declared dependency names resolve to package edges."""
        edges = sbom.edges_from("SPDXRef-Package-express-0")
        assert [edge.target_id for edge in edges] == ["SPDXRef-Package-body-parser-1"]
        assert len(sbom.relationships) == 4

    def test_unresolved_dependencies_are_counted(self):
        """Test unknown dependency names produce no edge."""
        generator = SBOMGenerator()
        component = Component(name="a", version="1", origin="npm", dependencies=["ghost"])
        sbom = generator.create_sbom([component], "demo", "1.0.0")

        assert len(sbom.relationships) == 1
        assert generator.get_generation_statistics()["unresolved_dependencies"] == 1

    def test_document_identity(self, sbom):
        """Test name, namespace and creators."""
        assert sbom.name == "demo-1.0.0-sbom"
        assert sbom.namespace == f"https://sbom-manager.local/demo/{sbom.document_id}"
        assert sbom.creators == ["Tool: SBOM-Manager-1.0", "Organization: Unknown"]
        assert sbom.root.supplier == "Unknown"
        assert sbom.root.description == "SBOM for demo"

    def test_author_creator(self, components):
        """Test an author is credited as a person."""
        sbom = SBOMGenerator().create_sbom(components, "demo", "1.0.0", author="alice")
        assert sbom.creators[1] == "Person: alice"
        assert sbom.root.supplier == "alice"

    def test_namespace_base_from_configuration(self, monkeypatch, components):
        """Test the namespace base comes from configuration."""
        monkeypatch.setenv("SBOM_NAMESPACE_BASE", "https://sboms.example.com/")
        sbom = SBOMGenerator().create_sbom(components, "demo", "1.0.0")
        assert sbom.namespace.startswith("https://sboms.example.com/demo/")

    def test_statistics(self, sbom):
        """Test document statistics."""
        stats = sbom.get_statistics()
        assert stats["total_packages"] == 4
        assert stats["root_relationships"] == 3
        assert stats["dependency_relationships"] == 1

    def test_sanitize_id(self):
        """Test characters outside the id alphabet become dashes."""
        assert sanitize_id("@scope/pkg") == "-scope-pkg"
        assert sanitize_id("org.example:lib_1") == "org.example-lib_1"


# =============================================================================
# SPDX Tests
# =============================================================================


class TestSPDXFormatter:
    """Tests for SPDXFormatter."""

    def test_document_header(self, sbom):
        """Test SPDX top-level fields."""
        document = SPDXFormatter().format_document(sbom)

        assert document["spdxVersion"] == "SPDX-2.3"
        assert document["dataLicense"] == "CC0-1.0"
        assert document["SPDXID"] == "SPDXRef-DOCUMENT"
        assert document["documentDescribes"] == [ROOT_PACKAGE_ID]
        assert document["creationInfo"]["licenseListVersion"] == "3.21"
        assert document["creationInfo"]["created"].endswith("Z")

    def test_packages(self, sbom):
        """Test the root plus one package per component."""
        document = SPDXFormatter().format_document(sbom)
        packages = document["packages"]

        assert len(packages) == 4
        root = packages[0]
        assert root["SPDXID"] == ROOT_PACKAGE_ID
        assert root["downloadLocation"] == "NOASSERTION"
        assert root["supplier"] == "Organization: Unknown"

    def test_component_package_fields(self, sbom):
        """Test optional fields appear only when present."""
        packages = SPDXFormatter().format_document(sbom)["packages"]
        express, body_parser, readline = packages[1:]

        assert express["downloadLocation"] == "pkg:npm/express@4.18.2"
        assert express["supplier"] == "Organization: npm"
        assert express["licenseConcluded"] == "MIT"
        assert express["externalRefs"][0]["referenceLocator"] == "pkg:npm/express@4.18.2"
        assert express["comment"] == "Origin: npm | Ecosystem: npm"
        assert "checksums" not in express

        assert body_parser["checksums"] == [{"algorithm": "SHA256", "checksumValue": "abc123"}]
        assert readline["supplier"] == "NOASSERTION"

    def test_missing_license(self):
        """Test a missing license renders as NOASSERTION."""
        component = Component(name="a", version="1", origin="npm")
        sbom = SBOMGenerator().create_sbom([component], "demo", "1.0.0")
        package = SPDXFormatter().format_document(sbom)["packages"][1]

        assert package["licenseDeclared"] == "NOASSERTION"
        assert package["downloadLocation"] == "NOASSERTION"
        assert "externalRefs" not in package

    def test_relationships(self, sbom):
        """Test relationship rendering."""
        relationships = SPDXFormatter().format_document(sbom)["relationships"]
        assert relationships[0] == {
            "spdxElementId": ROOT_PACKAGE_ID,
            "relationshipType": "DEPENDS_ON",
            "relatedSpdxElement": "SPDXRef-Package-express-0",
        }

    def test_valid_document(self, sbom):
        """Test a generated document validates."""
        formatter = SPDXFormatter()
        assert formatter.validate_document(formatter.format_document(sbom)) == []

    def test_validation_errors(self):
        """Test missing fields are reported."""
        errors = SPDXFormatter().validate_document({"packages": [{"SPDXID": "x"}]})

        assert "Missing name" in errors
        assert "Package 0: Missing name" in errors
        assert "Package 0: Missing downloadLocation" in errors
        assert "No packages defined" in SPDXFormatter().validate_document({})

    def test_generate_rejects_invalid(self):
        """Test generate raises ValidationError for an unnamed component."""
        component = Component(name="", version="1", origin="npm")
        with pytest.raises(ValidationError) as exc_info:
            SPDXFormatter().generate([component], "demo", "1.0.0")

        assert "Package 1: Missing name" in exc_info.value.errors
        assert exc_info.value.document_format == "spdx"

    def test_generate_rejects_missing_name(self):
        """Test a component without any name is a validation failure, not a crash."""
        component = Component(name=None, version="1", origin="npm")
        with pytest.raises(ValidationError) as exc_info:
            SPDXFormatter().generate([component], "demo", "1.0.0")

        assert "Package 1: Missing name" in exc_info.value.errors

    def test_missing_name_package_id(self):
        """Test the package id of an unnamed component is still well formed."""
        sbom = SBOMGenerator().create_sbom([Component(name=None, version="1", origin="npm")], "demo", "1.0.0")
        assert sbom.packages[0].package_id == "SPDXRef-Package--0"

    def test_generate_empty_component_list(self):
        """Test an empty scan still yields a valid document."""
        document = SPDXFormatter().generate([], "demo", "1.0.0")
        assert len(document["packages"]) == 1
        assert document["relationships"] == []


# =============================================================================
# CycloneDX Tests
# =============================================================================


class TestCycloneDXFormatter:
    """Tests for CycloneDXFormatter."""

    def test_document_header(self, sbom):
        """Test CycloneDX top-level fields."""
        document = CycloneDXFormatter().format_document(sbom)

        assert document["bomFormat"] == "CycloneDX"
        assert document["specVersion"] == "1.5"
        assert document["serialNumber"] == f"urn:uuid:{sbom.document_id}"
        assert document["version"] == 1
        assert document["metadata"]["component"] == {
            "type": "application",
            "name": "demo",
            "version": "1.0.0",
            "description": "SBOM for demo",
        }
        assert "authors" not in document["metadata"]

    def test_components(self, sbom):
        """Test component entries and optional fields."""
        components = CycloneDXFormatter().format_document(sbom)["components"]
        express, body_parser, readline = components

        assert express["type"] == "library"
        assert express["bom-ref"] == "SPDXRef-Package-express-0"
        assert express["supplier"] == {"name": "npm"}
        assert express["licenses"] == [{"license": {"id": "MIT"}}]
        assert body_parser["hashes"] == [{"alg": "SHA-256", "content": "abc123"}]
        assert "supplier" not in readline
        assert "hashes" not in readline

    def test_no_vulnerabilities_section(self, sbom):
        """Test the section is omitted without records."""
        assert "vulnerabilities" not in CycloneDXFormatter().format_document(sbom)

    def test_vulnerabilities(self, sbom, vulnerabilities):
        """Test records attach to the matching component."""
        document = CycloneDXFormatter().format_document(sbom, vulnerabilities=vulnerabilities)
        first, second = document["vulnerabilities"]

        assert first["id"] == "CVE-2024-0001"
        assert first["source"]["url"] == "https://nvd.nist.gov/vuln/detail/CVE-2024-0001"
        assert first["ratings"] == [{"severity": "HIGH", "score": 7.5}]
        assert first["recommendation"] == "Upgrade to version 4.19.2"
        assert first["affects"] == [{"ref": "SPDXRef-Package-express-0"}]
        assert "bom-ref" not in first

        assert second["bom-ref"] == "vuln-2"
        assert second["ratings"] == [{"severity": "LOW"}]
        assert "recommendation" not in second

    def test_author_metadata(self, components):
        """Test authors appear when the document has one."""
        sbom = SBOMGenerator().create_sbom(components, "demo", "1.0.0", author="alice")
        document = CycloneDXFormatter().format_document(sbom)
        assert document["metadata"]["authors"] == [{"name": "alice"}]

    def test_valid_document(self, sbom, vulnerabilities):
        """Test a generated document validates."""
        formatter = CycloneDXFormatter()
        document = formatter.format_document(sbom, vulnerabilities=vulnerabilities)
        assert formatter.validate_document(document) == []

    def test_unknown_affected_ref(self, sbom, vulnerabilities):
        """Test validation catches dangling vulnerability refs."""
        formatter = CycloneDXFormatter()
        document = formatter.format_document(sbom, vulnerabilities=vulnerabilities)
        document["vulnerabilities"][0]["affects"] = [{"ref": "nowhere"}]

        assert formatter.validate_document(document) == [
            "Vulnerability 0: Unknown affected ref nowhere"
        ]

    def test_missing_name_reported(self):
        """Test an unnamed component renders and fails validation."""
        sbom = SBOMGenerator().create_sbom([Component(name=None, version="1", origin="npm")], "demo", "1.0.0")
        formatter = CycloneDXFormatter()
        document = formatter.format_document(sbom)

        assert formatter.validate_document(document) == ["Component 0: Missing name"]

    def test_to_json(self, sbom):
        """Test serialization round-trips through json."""
        formatter = CycloneDXFormatter()
        text = formatter.to_json(formatter.format_document(sbom))
        assert json.loads(text)["bomFormat"] == "CycloneDX"
        assert text.startswith('{\n  "bomFormat"')


# =============================================================================
# Tabular Tests
# =============================================================================


class TestTabularFormatter:
    """Tests for TabularFormatter."""

    def test_rows_without_vulnerabilities(self, components):
        """Test one row per component with blank vulnerability cells."""
        rows = TabularFormatter().build_rows(components)

        assert len(rows) == 3
        assert all(len(row) == len(COLUMNS) == 12 for row in rows)
        assert rows[0][:5] == ["express", "4.18.2", "MIT", "npm", "pkg:npm/express@4.18.2"]
        assert rows[0][6:] == [""] * 6

    def test_rows_expand_per_vulnerability(self, components, vulnerabilities):
        """Test a component with N records yields N rows."""
        rows = TabularFormatter().build_rows(components, vulnerabilities)

        assert len(rows) == 4
        assert rows[0][0] == rows[1][0] == "express"
        assert rows[0][6:] == ["CVE-2024-0001", "high", 7.5, "Open redirect", "4.19.2", "open"]
        assert rows[1][6:9] == ["CVE-2024-0002", "low", ""]

    def test_csv(self, components):
        """Test every field is quoted and there is no trailing newline."""
        components[0].description = 'Fast, "minimalist" framework'
        content = TabularFormatter().to_csv(components)
        lines = content.split("\n")

        assert lines[0] == ",".join(f'"{column}"' for column in COLUMNS)
        assert len(lines) == 4
        assert not content.endswith("\n")
        assert '"Fast, ""minimalist"" framework"' in lines[1]
        assert lines[3].startswith('"readline-sync","1.4.10","GPL-3.0","",')

    def test_csv_parses_back(self, components, vulnerabilities):
        """Test the CSV is readable by the csv module."""
        content = TabularFormatter().to_csv(components, vulnerabilities)
        rows = list(csv.reader(io.StringIO(content)))

        assert rows[0] == COLUMNS
        assert rows[1][8] == "7.5"
        assert len(rows) == 5

    def test_json_export(self, context, components, vulnerabilities):
        """Test the native JSON export structure."""
        data = TabularFormatter().to_json(context, components, vulnerabilities)

        assert data["sbom"]["id"] == "sbom-1"
        assert data["sbom"]["createdAt"] == "2024-01-02T03:04:05+00:00"
        assert data["project"] == {"id": "demo", "name": "demo", "description": None}
        assert data["metadata"]["totalComponents"] == 3
        assert data["metadata"]["totalVulnerabilities"] == 2
        assert data["components"][0]["vulnerabilities"][0]["cveId"] == "CVE-2024-0001"
        assert data["components"][2]["vulnerabilities"] == []

    def test_xlsx_components_sheet(self, context, components, vulnerabilities):
        """Test the Components sheet header, rows and widths."""
        content = TabularFormatter().to_xlsx(context, components, vulnerabilities)
        workbook = load_workbook(io.BytesIO(content))

        assert workbook.sheetnames == ["Components", "Summary"]
        sheet = workbook["Components"]
        assert [cell.value for cell in sheet[1]] == COLUMNS
        assert sheet["A1"].font.bold is True
        assert sheet.max_row == 5
        assert sheet.column_dimensions["A"].width == 30
        assert sheet.column_dimensions["J"].width == 50

    def test_xlsx_summary_sheet(self, context, components):
        """Test the Summary sheet facts."""
        content = TabularFormatter().to_xlsx(context, components)
        summary = load_workbook(io.BytesIO(content))["Summary"]

        assert summary["A1"].value == "SBOM Report"
        assert summary["B3"].value == "demo"
        assert summary["B5"].value == "SPDX"
        assert summary["B6"].value == "2024-01-02 03:04:05"
        assert summary["B7"].value == "alice"
        assert summary["B8"].value == 3
