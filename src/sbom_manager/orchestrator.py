"""
Orchestration manager for the scan, synthesize and persist workflow.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any, Optional, Sequence, Tuple, Union

from .models import Component, VulnerabilityRecord
from .config import get_config, AppConfig
from .scanners import DependencyScanner, IngestionResult, FileSummary
from .consolidators import Deduplicator, ExportManager, ExportArtifact
from .generators import SBOMGenerator, SPDXFormatter, ExportContext
from .licensing import PolicyEngine, load_catalog
from .storage import SBOMStore, InMemorySBOMStore

logger = logging.getLogger(__name__)


@dataclass
class ScanOptions:
    """
    Per-scan project settings.

    ``project_name`` and ``project_version`` fall back to the ``project``
    config section (``project`` and ``1.0.0`` by default); ``project_id``
    falls back to the project name.
    """
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    project_version: Optional[str] = None
    author: Optional[str] = None


@dataclass
class ScanResult:
    """Outcome of a persisted scan."""
    project_id: str
    sbom_id: str
    ecosystem: str
    ecosystems: List[str] = field(default_factory=list)
    components_count: int = 0
    components: List[Component] = field(default_factory=list)
    sbom_content: Dict[str, Any] = field(default_factory=dict)
    files_processed: List[FileSummary] = field(default_factory=list)

    def to_dict(self, include_components: bool = False) -> Dict[str, Any]:
        data = {
            "project_id": self.project_id,
            "sbom_id": self.sbom_id,
            "ecosystem": self.ecosystem,
            "ecosystems": list(self.ecosystems),
            "components_count": self.components_count,
            "files_processed": [summary.to_dict() for summary in self.files_processed]
        }
        if include_components:
            data["components"] = [component.to_dict() for component in self.components]
        return data


class OrchestrationManager:
    """
    Coordinates the SBOM workflow.

    A scan runs ingestion, keep-first deduplication, SPDX synthesis and
    validation, then persists the document followed by its components.
    A document that fails validation is never persisted. Exports are
    re-rendered from the persisted components on demand.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[SBOMStore] = None,
        scanner: Optional[DependencyScanner] = None,
        export_manager: Optional[ExportManager] = None
    ):
        """
        Initialize the orchestration manager.

        Args:
            config: Application configuration
            store: SBOM store, defaults to an in-memory store
            scanner: Dependency scanner, defaults to one built from config
            export_manager: Export manager instance
        """
        self.config = config or get_config()
        self.store = store or InMemorySBOMStore()

        self.dependency_scanner = scanner or DependencyScanner(
            max_workers=self.config.scanning.max_workers,
            recursive=self.config.scanning.recursive,
            ignore_directories=self.config.scanning.ignore_directories
        )
        self.deduplicator = Deduplicator()
        self.sbom_generator = SBOMGenerator()
        self.spdx_formatter = SPDXFormatter(self.sbom_generator)
        self.export_manager = export_manager or ExportManager(self.sbom_generator)
        self.policy_engine = PolicyEngine(load_catalog(self.config.license.policies_file))

        self._orchestration_statistics = {
            "scans_completed": 0,
            "scans_failed": 0,
            "components_persisted": 0,
            "exports_rendered": 0,
            "last_scan_time": None,
            "errors": []
        }

    def scan_directory(self, directory: Union[str, Path], options: Optional[ScanOptions] = None) -> ScanResult:
        """
        Scan every manifest in a directory and persist the resulting SBOM.

        Args:
            directory: Directory holding manifest files
            options: Project settings for the SBOM

        Returns:
            ScanResult describing the persisted SBOM

        Raises:
            ScanError: If the directory is missing or holds no manifests
            MalformedManifestError: If any manifest cannot be parsed
            ValidationError: If the synthesized document is invalid
            PersistenceError: If the store rejects the document or components
        """
        logger.info(f"Scanning directory {directory}")
        return self._run(lambda: self.dependency_scanner.scan_directory(directory), options)

    def scan_files(self, paths: Sequence[Union[str, Path]], options: Optional[ScanOptions] = None) -> ScanResult:
        """Scan the given manifest files in order and persist the SBOM."""
        logger.info(f"Scanning {len(paths)} files")
        return self._run(lambda: self.dependency_scanner.scan_files(paths), options)

    def scan_contents(self, files: Sequence[Tuple[str, str]], options: Optional[ScanOptions] = None) -> ScanResult:
        """Scan in-memory ``(file_name, content)`` pairs and persist the SBOM."""
        logger.info(f"Scanning {len(files)} uploaded files")
        return self._run(lambda: self.dependency_scanner.scan_contents(files), options)

    def _run(self, ingest, options: Optional[ScanOptions]) -> ScanResult:
        try:
            result = self._finalize(ingest(), options or ScanOptions())
        except Exception as e:
            self._orchestration_statistics["scans_failed"] += 1
            self._orchestration_statistics["errors"].append(str(e))
            logger.error(f"Scan failed: {e}")
            raise

        self._orchestration_statistics["scans_completed"] += 1
        self._orchestration_statistics["components_persisted"] += result.components_count
        self._orchestration_statistics["last_scan_time"] = datetime.now(timezone.utc).isoformat()
        return result

    def _finalize(self, ingestion: IngestionResult, options: ScanOptions) -> ScanResult:
        project = self.config.project
        project_name = options.project_name or project.default_name
        project_version = options.project_version or project.default_version
        project_id = options.project_id or project_name
        author = options.author or project.author
        ecosystem = ingestion.ecosystem.value

        components = self.deduplicator.deduplicate(ingestion.components)

        document = self.spdx_formatter.generate(
            components, project_name, project_version, author=author, ecosystem=ecosystem
        )

        sbom_id = self.store.persist_document(
            project_id,
            project_version,
            "spdx",
            document,
            author=author,
            project_name=project_name,
            ecosystem=ecosystem
        )
        self.store.persist_components(sbom_id, components)

        logger.info(
            f"Persisted SBOM {sbom_id} for {project_name} with {len(components)} components",
            extra={"sbom_id": sbom_id, "ecosystem": ecosystem, "component_count": len(components)}
        )

        return ScanResult(
            project_id=project_id,
            sbom_id=sbom_id,
            ecosystem=ecosystem,
            ecosystems=ingestion.ecosystem_names,
            components_count=len(components),
            components=components,
            sbom_content=document,
            files_processed=list(ingestion.files_processed)
        )

    def render(
        self,
        sbom_id: str,
        fmt: str,
        project_name: Optional[str] = None,
        version: Optional[str] = None,
        vulnerabilities: Optional[Dict[str, List[VulnerabilityRecord]]] = None
    ) -> ExportArtifact:
        """
        Re-render a persisted SBOM in an export format.

        Args:
            sbom_id: Persisted SBOM id
            fmt: Export format name
            project_name: Override for the stored project name
            version: Override for the stored version
            vulnerabilities: Records keyed by component identity

        Returns:
            Rendered ExportArtifact

        Raises:
            PersistenceError: If the SBOM is unknown
            ExportError: If the format is unsupported
            ValidationError: If a standards document fails validation
        """
        record = self.store.get_record(sbom_id)
        components = self.store.load_components(sbom_id)

        context = ExportContext(
            sbom_id=sbom_id,
            version=version or record.version,
            format=record.format,
            created_at=record.created_at,
            author=record.author,
            project_id=record.project_id,
            project_name=project_name or record.project_name
        )

        artifact = self.export_manager.export(
            fmt, components, context, vulnerabilities=vulnerabilities, ecosystem=record.ecosystem
        )
        self._orchestration_statistics["exports_rendered"] += 1
        return artifact

    def license_summary(self, sbom_id: str, policy: Optional[str] = None) -> Dict[str, Any]:
        """
        Summarize the licenses of a persisted SBOM.

        Args:
            sbom_id: Persisted SBOM id
            policy: Policy key, defaults to ``license.default_policy``

        Returns:
            License summary dictionary with the policy key added
        """
        policy = policy or self.config.license.default_policy
        summary = self.policy_engine.summarize_licenses(self.store.load_components(sbom_id), policy)
        summary["policy"] = policy
        summary["sbom_id"] = sbom_id
        return summary

    def get_orchestration_statistics(self) -> Dict[str, Any]:
        """Get orchestration statistics."""
        stats = self._orchestration_statistics.copy()
        stats["scanner"] = self.dependency_scanner.get_scan_statistics()
        stats["deduplication"] = self.deduplicator.get_deduplication_statistics()
        stats["export"] = self.export_manager.get_export_statistics()
        return stats
