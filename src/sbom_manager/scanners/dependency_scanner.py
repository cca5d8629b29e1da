"""
Manifest ingestion pipeline that coordinates the ecosystem parsers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union, Any

from ..models import Component, Ecosystem, ParseResult
from ..config import get_config
from ..error_handling.exceptions import ScanError, SBOMManagerError
from .base_scanner import ManifestParser
from .parser_registry import PARSERS, SUPPORTED_FILES

logger = logging.getLogger(__name__)


@dataclass
class FileSummary:
    """Per-file outcome of a scan."""
    file_name: str
    ecosystem: str
    component_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "ecosystem": self.ecosystem,
            "component_count": self.component_count
        }


@dataclass
class IngestionResult:
    """
    Aggregated parser output for one scan, before deduplication.

    ``ecosystem`` is the ecosystem of the last successfully parsed file;
    ``ecosystems`` holds every ecosystem seen.
    """
    components: List[Component] = field(default_factory=list)
    ecosystem: Ecosystem = Ecosystem.UNKNOWN
    ecosystems: Set[Ecosystem] = field(default_factory=set)
    files_processed: List[FileSummary] = field(default_factory=list)
    parse_results: List[ParseResult] = field(default_factory=list)

    @property
    def ecosystem_names(self) -> List[str]:
        return sorted(e.value for e in self.ecosystems)


class DependencyScanner:
    """
    Discovers manifest files and runs them through the matching parsers.

    Files are parsed in discovery order. With ``max_workers > 1`` parsing
    runs on a thread pool, and results are collected back in input order so
    that keep-first deduplication sees the same sequence as a serial scan.
    The first file that fails to read or parse aborts the whole scan.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        recursive: Optional[bool] = None,
        ignore_directories: Optional[Sequence[str]] = None,
        parsers: Optional[List[ManifestParser]] = None
    ):
        """
        Initialize the scanner.

        Args:
            max_workers: Parser threads; defaults to ``scanning.max_workers``
            recursive: Descend into subdirectories; defaults to ``scanning.recursive``
            ignore_directories: Directory names skipped in recursive mode
            parsers: Parser list override, defaults to the built-in registry
        """
        config = get_config().scanning
        self.max_workers = max_workers if max_workers is not None else config.max_workers
        self.recursive = recursive if recursive is not None else config.recursive
        self.ignore_directories = set(
            ignore_directories if ignore_directories is not None else config.ignore_directories
        )
        self._parsers = list(parsers) if parsers is not None else list(PARSERS)

        self._scan_statistics = self._empty_statistics()

    @staticmethod
    def _empty_statistics() -> Dict[str, Any]:
        return {
            "scans_completed": 0,
            "files_discovered": 0,
            "files_parsed": 0,
            "files_skipped": 0,
            "components_found": 0,
            "parsers_used": set()
        }

    @property
    def supported_files(self) -> List[str]:
        return [name for parser in self._parsers for name in parser.supported_files]

    def _find_parser(self, file_name: str) -> Optional[ManifestParser]:
        # First match wins; the built-in basename sets are disjoint
        for parser in self._parsers:
            if parser.can_parse(file_name):
                return parser
        return None

    def discover_files(self, directory: Union[str, Path]) -> List[Path]:
        """
        Find recognized manifests in a directory.

        Args:
            directory: Directory to scan

        Returns:
            Sorted list of manifest paths

        Raises:
            ScanError: If the directory does not exist
        """
        root = Path(directory)
        if not root.is_dir():
            raise ScanError(f"Directory does not exist: {root}", path=str(root))

        supported = set(self.supported_files)
        if self.recursive:
            candidates = [
                path for path in root.rglob("*")
                if path.is_file() and path.name in supported
                and not any(part in self.ignore_directories for part in path.relative_to(root).parts[:-1])
            ]
        else:
            candidates = [path for path in root.iterdir() if path.is_file() and path.name in supported]

        found = sorted(candidates, key=lambda p: p.relative_to(root).as_posix())
        self._scan_statistics["files_discovered"] += len(found)
        logger.info(f"Found {len(found)} dependency files in {root}")
        return found

    def scan_directory(self, directory: Union[str, Path]) -> IngestionResult:
        """
        Discover and parse every manifest in a directory.

        Raises:
            ScanError: If the directory is missing or holds no manifests
            MalformedManifestError: If any manifest cannot be parsed
        """
        files = self.discover_files(directory)
        if not files:
            raise ScanError(f"No dependency files found in {directory}", path=str(directory))
        return self.scan_files(files)

    def scan_files(self, paths: Sequence[Union[str, Path]]) -> IngestionResult:
        """
        Read and parse manifest files in the given order.

        Args:
            paths: Manifest paths

        Returns:
            IngestionResult with all components in file order
        """
        entries = []
        for path in map(Path, paths):
            if self._find_parser(path.name) is None:
                self._skip(path.name)
                continue
            entries.append((path.name, path))

        return self._ingest(entries, self._read_file)

    def scan_contents(self, files: Sequence[Tuple[str, str]]) -> IngestionResult:
        """
        Parse manifests supplied in memory, e.g. uploaded files.

        Args:
            files: ``(file_name, content)`` pairs

        Returns:
            IngestionResult with all components in input order
        """
        entries = []
        for file_name, content in files:
            base = Path(file_name).name
            if self._find_parser(base) is None:
                self._skip(base)
                continue
            entries.append((base, content))

        return self._ingest(entries, lambda text: text)

    def _skip(self, file_name: str) -> None:
        logger.warning(f"No parser found for file: {file_name}", extra={"file_name": file_name})
        self._scan_statistics["files_skipped"] += 1

    @staticmethod
    def _read_file(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ScanError(f"Failed to read {path.name}", path=str(path), cause=e)

    def _ingest(self, entries: List[Tuple[str, Any]], load) -> IngestionResult:
        def parse_one(entry: Tuple[str, Any]) -> Tuple[str, ManifestParser, ParseResult]:
            file_name, source = entry
            parser = self._find_parser(file_name)
            logger.debug(f"Parsing {file_name} with {parser.__class__.__name__}")
            return file_name, parser, parser.parse(file_name, load(source))

        if self.max_workers > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map() yields in submission order, which keeps dedup deterministic
                outcomes = self._collect(executor.map(parse_one, entries), entries)
        else:
            outcomes = self._collect(map(parse_one, entries), entries)

        result = IngestionResult()
        for file_name, parser, parse_result in outcomes:
            result.components.extend(parse_result.components)
            result.parse_results.append(parse_result)
            result.ecosystem = parser.ecosystem
            result.ecosystems.add(parser.ecosystem)
            result.files_processed.append(FileSummary(
                file_name=file_name,
                ecosystem=parser.ecosystem.value,
                component_count=parse_result.component_count
            ))
            self._scan_statistics["parsers_used"].add(parser.__class__.__name__)

        self._scan_statistics["files_parsed"] += len(outcomes)
        self._scan_statistics["components_found"] += len(result.components)
        self._scan_statistics["scans_completed"] += 1

        logger.info(
            f"Parsed {len(outcomes)} files into {len(result.components)} components "
            f"(ecosystem: {result.ecosystem.value})",
            extra={"ecosystem": result.ecosystem.value, "component_count": len(result.components)}
        )
        return result

    def _collect(self, outcomes, entries) -> List[Tuple[str, ManifestParser, ParseResult]]:
        collected = []
        try:
            for outcome in outcomes:
                collected.append(outcome)
        except SBOMManagerError as e:
            failed = entries[len(collected)][0]
            logger.error(f"Failed to parse {failed}: {e.message}", extra={"file_name": failed})
            raise
        return collected

    def get_scan_statistics(self) -> Dict[str, Any]:
        """
        Get scanning statistics.

        Returns:
            Dictionary of scanning statistics
        """
        stats = self._scan_statistics.copy()
        stats["parsers_used"] = sorted(stats["parsers_used"])
        stats["registered_parsers"] = [parser.__class__.__name__ for parser in self._parsers]
        stats["supported_files"] = self.supported_files
        return stats

    def reset_statistics(self) -> None:
        """Reset scanning statistics."""
        self._scan_statistics = self._empty_statistics()


__all__ = ["DependencyScanner", "IngestionResult", "FileSummary", "SUPPORTED_FILES"]
