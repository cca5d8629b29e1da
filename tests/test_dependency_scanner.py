"""
Unit tests for the manifest ingestion pipeline.

Tests cover:
- File discovery, recursive and flat
- Ordered aggregation across ecosystems
- Skipping unrecognized files
- Fail-fast on malformed manifests
- Deterministic ordering with parallel parsing
"""

import pytest

from sbom_manager.error_handling import MalformedManifestError, ScanError
from sbom_manager.models import Ecosystem
from sbom_manager.scanners import DependencyScanner


# =============================================================================
# Discovery Tests
# =============================================================================


class TestDiscovery:
    """Tests for DependencyScanner.discover_files."""

    def test_flat_discovery(self, tmp_path, write_manifest, package_json, go_mod):
        """Test only top-level manifests are found without recursion."""
        write_manifest("package.json", package_json)
        write_manifest("go.mod", go_mod)
        write_manifest("README.md", "# readme")
        write_manifest("package.json", package_json, tmp_path / "nested")

        scanner = DependencyScanner(recursive=False)
        names = [path.name for path in scanner.discover_files(tmp_path)]

        assert names == ["go.mod", "package.json"]

    def test_recursive_discovery_skips_ignored(self, tmp_path, write_manifest, package_json):
        """Test recursion honors ignored directory names."""
        write_manifest("package.json", package_json)
        write_manifest("package.json", package_json, tmp_path / "web")
        write_manifest("package.json", package_json, tmp_path / "node_modules" / "dep")

        scanner = DependencyScanner(recursive=True, ignore_directories=["node_modules"])
        found = [path.relative_to(tmp_path).as_posix() for path in scanner.discover_files(tmp_path)]

        assert found == ["package.json", "web/package.json"]

    def test_missing_directory(self, tmp_path):
        """Test a missing directory raises ScanError."""
        with pytest.raises(ScanError):
            DependencyScanner().discover_files(tmp_path / "missing")

    def test_empty_directory(self, tmp_path):
        """Test scanning a directory without manifests raises ScanError."""
        with pytest.raises(ScanError):
            DependencyScanner().scan_directory(tmp_path)


# =============================================================================
# Ingestion Tests
# =============================================================================


class TestIngestion:
    """Tests for scan_files, scan_contents and scan_directory."""

    def test_components_follow_file_order(self, package_json, requirements_txt):
        """Test components are concatenated in input order."""
        result = DependencyScanner().scan_contents([
            ("package.json", package_json),
            ("requirements.txt", requirements_txt),
        ])

        names = [c.name for c in result.components]
        assert names[:3] == ["lodash", "express", "jest"]
        assert names[3:] == ["django", "requests", "flask", "uvicorn"]

    def test_ecosystem_of_last_file(self, package_json, requirements_txt):
        """Test the reported ecosystem is that of the last parsed file."""
        result = DependencyScanner().scan_contents([
            ("package.json", package_json),
            ("requirements.txt", requirements_txt),
        ])

        assert result.ecosystem == Ecosystem.PYTHON
        assert result.ecosystems == {Ecosystem.NPM, Ecosystem.PYTHON}
        assert result.ecosystem_names == ["npm", "python"]

    def test_unrecognized_files_are_skipped(self, package_json):
        """Test unknown files are skipped, not fatal."""
        scanner = DependencyScanner()
        result = scanner.scan_contents([
            ("notes.txt", "hello"),
            ("uploads/package.json", package_json),
        ])

        assert [summary.file_name for summary in result.files_processed] == ["package.json"]
        assert scanner.get_scan_statistics()["files_skipped"] == 1

    def test_no_parseable_files(self):
        """Test an ingestion with nothing parseable is empty."""
        result = DependencyScanner().scan_contents([("notes.txt", "hello")])
        assert result.components == []
        assert result.ecosystem == Ecosystem.UNKNOWN

    def test_fail_fast(self, package_json):
        """Test one malformed manifest aborts the whole ingestion."""
        with pytest.raises(MalformedManifestError):
            DependencyScanner().scan_contents([
                ("package.json", package_json),
                ("go.sum", "truncated-line\n"),
            ])

    def test_duplicates_are_kept_for_dedup(self, package_json):
        """Test ingestion does not deduplicate on its own."""
        result = DependencyScanner().scan_contents([
            ("a/package.json", package_json),
            ("b/package.json", package_json),
        ])
        assert len(result.components) == 6

    def test_scan_files_reads_disk(self, write_manifest, go_mod, cargo_lock):
        """Test scan_files reads manifests and summarizes each file."""
        paths = [write_manifest("go.mod", go_mod), write_manifest("Cargo.lock", cargo_lock)]
        result = DependencyScanner().scan_files(paths)

        assert [s.to_dict() for s in result.files_processed] == [
            {"file_name": "go.mod", "ecosystem": "go", "component_count": 3},
            {"file_name": "Cargo.lock", "ecosystem": "rust", "component_count": 2},
        ]

    def test_scan_directory(self, tmp_path, write_manifest, go_mod, package_json):
        """Test scan_directory parses discovered files in sorted order."""
        write_manifest("package.json", package_json)
        write_manifest("go.mod", go_mod)

        result = DependencyScanner(recursive=False).scan_directory(tmp_path)

        assert [s.file_name for s in result.files_processed] == ["go.mod", "package.json"]
        assert result.ecosystem == Ecosystem.NPM

    def test_parallel_matches_serial(self, package_json, requirements_txt, go_mod, cargo_lock):
        """Test thread-pool parsing preserves input order."""
        files = [
            ("go.mod", go_mod),
            ("package.json", package_json),
            ("Cargo.lock", cargo_lock),
            ("requirements.txt", requirements_txt),
        ] * 3

        serial = DependencyScanner(max_workers=1).scan_contents(files)
        parallel = DependencyScanner(max_workers=4).scan_contents(files)

        assert [c.identity_key for c in parallel.components] == \
            [c.identity_key for c in serial.components]
        assert parallel.ecosystem == serial.ecosystem == Ecosystem.PYTHON

    def test_parallel_fail_fast(self, package_json):
        """Test a failure inside the pool still propagates."""
        files = [("package.json", package_json), ("go.mod", "require (\n")] * 2
        with pytest.raises(MalformedManifestError):
            DependencyScanner(max_workers=3).scan_contents(files)

    def test_statistics(self, package_json):
        """Test scan statistics track parsed files and parsers."""
        scanner = DependencyScanner()
        scanner.scan_contents([("package.json", package_json)])
        stats = scanner.get_scan_statistics()

        assert stats["files_parsed"] == 1
        assert stats["components_found"] == 3
        assert stats["parsers_used"] == ["NpmParser"]

        scanner.reset_statistics()
        assert scanner.get_scan_statistics()["files_parsed"] == 0

    def test_defaults_from_configuration(self, monkeypatch):
        """Test worker count and recursion come from configuration."""
        monkeypatch.setenv("SBOM_SCAN_WORKERS", "3")
        monkeypatch.setenv("SBOM_RECURSIVE", "true")

        scanner = DependencyScanner()

        assert scanner.max_workers == 3
        assert scanner.recursive is True
