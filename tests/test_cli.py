"""
Tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from sbom_manager.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path, write_manifest, package_json, go_mod):
    directory = tmp_path / "project"
    write_manifest("package.json", package_json, directory)
    write_manifest("go.mod", go_mod, directory)
    return directory


def sbom_id_from(output):
    for line in output.splitlines():
        if line.startswith("SBOM ID: "):
            return line[len("SBOM ID: "):].strip()
    raise AssertionError(f"no SBOM ID in output:\n{output}")


# =============================================================================
# Scan and Export Tests
# =============================================================================


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_directory(self, runner, project, tmp_path):
        """Test a directory scan reports the persisted SBOM."""
        result = runner.invoke(cli, [
            "scan", str(project), "-n", "shop", "--project-version", "2.0.0",
            "--store", str(tmp_path / "store"),
        ])

        assert result.exit_code == 0, result.output
        assert "Project: shop" in result.output
        assert "Components: 6" in result.output
        assert "Files processed: 2" in result.output

        sbom_id = sbom_id_from(result.output)
        assert (tmp_path / "store" / sbom_id / "document.json").exists()

    def test_scan_with_exports(self, runner, project, tmp_path):
        """Test formats requested at scan time are written."""
        output_dir = tmp_path / "out"
        result = runner.invoke(cli, [
            "scan", str(project / "package.json"), "-n", "shop", "--project-version", "2.0.0",
            "--store", str(tmp_path / "store"), "-o", str(output_dir), "-f", "cyclonedx", "-f", "CSV",
        ])

        assert result.exit_code == 0, result.output
        assert (output_dir / "sbom-shop-v2.0.0-cdx.json").exists()
        assert (output_dir / "sbom-shop-v2.0.0.csv").exists()

    def test_malformed_manifest(self, runner, tmp_path, write_manifest):
        """Test a parse failure exits with status 1."""
        manifest = write_manifest("package.json", "{not json")
        result = runner.invoke(cli, ["scan", str(manifest), "--store", str(tmp_path / "store")])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not (tmp_path / "store").exists() or not any((tmp_path / "store").iterdir())

    def test_directory_without_manifests(self, runner, tmp_path):
        """Test scanning an empty directory fails."""
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(cli, ["scan", str(empty), "--store", str(tmp_path / "store")])

        assert result.exit_code == 1
        assert "No dependency files found" in result.output


class TestExportCommand:
    """Tests for the export command."""

    def test_export_csv(self, runner, project, tmp_path):
        """Test a stored SBOM is exported to CSV."""
        store = str(tmp_path / "store")
        scanned = runner.invoke(cli, ["scan", str(project), "-n", "shop", "--store", store])
        sbom_id = sbom_id_from(scanned.output)

        output_dir = tmp_path / "exports"
        result = runner.invoke(cli, ["export", sbom_id, "--store", store, "-f", "csv", "-o", str(output_dir)])

        assert result.exit_code == 0, result.output
        target = output_dir / "sbom-shop-v1.0.0.csv"
        assert f"csv: {target}" in result.output
        assert target.read_text(encoding="utf-8").startswith('"Component Name"')

    def test_export_with_vulnerabilities(self, runner, project, tmp_path):
        """Test vulnerability records are attached to JSON exports."""
        store = str(tmp_path / "store")
        sbom_id = sbom_id_from(runner.invoke(cli, ["scan", str(project), "-n", "shop", "--store", store]).output)

        vulns = tmp_path / "vulns.json"
        vulns.write_text(json.dumps({
            "github.com/gin-gonic/gin@1.9.1": [{"cve_id": "CVE-2023-29401", "severity": "medium"}]
        }))
        result = runner.invoke(cli, [
            "export", sbom_id, "--store", store, "-f", "cyclonedx",
            "--vulnerabilities", str(vulns), "-o", str(tmp_path / "exports"),
        ])

        assert result.exit_code == 0, result.output
        document = json.loads((tmp_path / "exports" / "sbom-shop-v1.0.0-cdx.json").read_text())
        assert document["vulnerabilities"][0]["id"] == "CVE-2023-29401"

    def test_export_unknown_sbom(self, runner, tmp_path):
        """Test exporting an unknown id fails."""
        result = runner.invoke(cli, ["export", "missing", "--store", str(tmp_path), "-f", "json"])

        assert result.exit_code == 1
        assert "Error: SBOM not found: missing" in result.output


# =============================================================================
# License Tests
# =============================================================================


class TestLicenseCommands:
    """Tests for the license command group."""

    def test_normalize(self, runner):
        """Test aliases normalize to SPDX ids."""
        result = runner.invoke(cli, ["license", "normalize", "Apache 2.0"])
        assert result.output.strip() == "Apache-2.0"

    def test_check_text(self, runner):
        """Test the text decision line."""
        result = runner.invoke(cli, ["license", "check", "GPLv3"])

        assert result.exit_code == 0
        assert result.output.strip() == (
            "GPL-3.0: not allowed under 'commercial' (risk: high) "
            "- License GPL-3.0 is explicitly blocked by policy"
        )

    def test_check_json(self, runner):
        """Test the JSON decision."""
        result = runner.invoke(cli, ["license", "check", "mit", "-p", "permissive", "-f", "json"])

        assert json.loads(result.output) == {
            "license": "MIT",
            "policy": "permissive",
            "allowed": True,
            "risk_level": "low",
            "reason": None,
        }

    def test_check_unknown_policy(self, runner):
        """Test an unknown policy fails."""
        result = runner.invoke(cli, ["license", "check", "MIT", "-p", "nope"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_policies(self, runner):
        """Test the default policy is marked."""
        result = runner.invoke(cli, ["license", "policies"])
        lines = result.output.splitlines()

        assert len(lines) == 4
        assert lines[0].startswith("* commercial")
        assert lines[1].startswith("  permissive")

    def test_summary_json(self, runner, project, tmp_path):
        """Test a stored SBOM's license summary."""
        store = str(tmp_path / "store")
        sbom_id = sbom_id_from(runner.invoke(cli, ["scan", str(project), "--store", store]).output)

        result = runner.invoke(cli, ["license", "summary", sbom_id, "--store", store, "-f", "json"])
        summary = json.loads(result.output)

        assert summary["sbom_id"] == sbom_id
        assert summary["policy"] == "commercial"
        assert summary["total_components"] == 6

    def test_summary_table(self, runner, project, tmp_path):
        """Test the table summary."""
        store = str(tmp_path / "store")
        sbom_id = sbom_id_from(runner.invoke(cli, ["scan", str(project), "--store", store]).output)

        result = runner.invoke(cli, ["license", "summary", sbom_id, "--store", store, "-p", "open-source"])
        assert f"License summary for SBOM {sbom_id} (policy: open-source)" in result.output
        assert "Total components: 6" in result.output


# =============================================================================
# Config Tests
# =============================================================================


class TestConfigCommand:
    """Tests for the config command."""

    def test_json(self, runner):
        """Test configuration as JSON."""
        result = runner.invoke(cli, ["config", "-f", "json"])
        assert json.loads(result.output)["project"]["default_name"] == "project"

    def test_config_file(self, runner, tmp_path):
        """Test a configuration file is applied."""
        path = tmp_path / "config.yaml"
        path.write_text("license:\n  default_policy: permissive\n")

        result = runner.invoke(cli, ["-c", str(path), "config", "-f", "json"])
        assert json.loads(result.output)["license"]["default_policy"] == "permissive"

    def test_invalid_config_file(self, runner, tmp_path):
        """Test an invalid configuration fails before any command runs."""
        path = tmp_path / "config.yaml"
        path.write_text("output:\n  format: [pdf]\n")

        result = runner.invoke(cli, ["-c", str(path), "config"])
        assert result.exit_code == 1
        assert "Error: Invalid output format: pdf" in result.output

    def test_table(self, runner):
        """Test the table layout lists sections."""
        result = runner.invoke(cli, ["config"])
        assert "[License]" in result.output
        assert "default_policy: commercial" in result.output
