"""
Storage interface for persisted SBOM documents and their components.
"""

import json
import logging
import shutil
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from ..models import Component
from ..error_handling.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class StoredSBOM:
    """Bookkeeping for one persisted SBOM."""
    sbom_id: str
    project_id: str
    version: str
    format: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    author: Optional[str] = None
    project_name: Optional[str] = None
    ecosystem: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sbom_id": self.sbom_id,
            "project_id": self.project_id,
            "version": self.version,
            "format": self.format,
            "created_at": self.created_at.isoformat(),
            "author": self.author,
            "project_name": self.project_name,
            "ecosystem": self.ecosystem
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredSBOM':
        return cls(
            sbom_id=data["sbom_id"],
            project_id=data["project_id"],
            version=data["version"],
            format=data["format"],
            created_at=datetime.fromisoformat(data["created_at"]),
            author=data.get("author"),
            project_name=data.get("project_name"),
            ecosystem=data.get("ecosystem")
        )


class SBOMStore(ABC):
    """
    Abstract store for SBOM documents and canonical components.

    Callers persist the document first, then bulk-store the components
    under the returned id.
    """

    @abstractmethod
    def persist_document(
        self,
        project_id: str,
        version: str,
        format: str,
        raw_content: Dict[str, Any],
        **attributes
    ) -> str:
        """
        Persist a rendered SBOM document.

        Args:
            project_id: Owning project
            version: Project version the SBOM describes
            format: Document format, e.g. ``spdx``
            raw_content: Rendered document
            **attributes: Optional author, project_name and ecosystem

        Returns:
            Newly assigned SBOM id

        Raises:
            PersistenceError: If the document cannot be stored
        """
        pass

    @abstractmethod
    def persist_components(self, sbom_id: str, components: List[Component]) -> None:
        """
        Store canonical components under an SBOM id.

        Raises:
            PersistenceError: If the SBOM id is unknown or the write fails
        """
        pass

    @abstractmethod
    def load_components(self, sbom_id: str) -> List[Component]:
        """Load the canonical components of an SBOM."""
        pass

    @abstractmethod
    def load_document(self, sbom_id: str) -> Dict[str, Any]:
        """Load the rendered document of an SBOM."""
        pass

    @abstractmethod
    def get_record(self, sbom_id: str) -> StoredSBOM:
        """Load the bookkeeping record of an SBOM."""
        pass

    @abstractmethod
    def list_sboms(self) -> List[StoredSBOM]:
        pass

    @staticmethod
    def _new_record(project_id: str, version: str, format: str, attributes: Dict[str, Any]) -> StoredSBOM:
        return StoredSBOM(
            sbom_id=str(uuid.uuid4()),
            project_id=project_id,
            version=version,
            format=format,
            author=attributes.get("author"),
            project_name=attributes.get("project_name"),
            ecosystem=attributes.get("ecosystem")
        )


class InMemorySBOMStore(SBOMStore):
    """Dictionary-backed store for tests and embedding."""

    def __init__(self):
        self._records: Dict[str, StoredSBOM] = {}
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._components: Dict[str, List[Component]] = {}

    def persist_document(self, project_id, version, format, raw_content, **attributes) -> str:
        record = self._new_record(project_id, version, format, attributes)
        self._records[record.sbom_id] = record
        self._documents[record.sbom_id] = raw_content
        logger.debug(f"Stored SBOM document {record.sbom_id} for project {project_id}")
        return record.sbom_id

    def persist_components(self, sbom_id: str, components: List[Component]) -> None:
        self._require(sbom_id, "persist_components")
        self._components[sbom_id] = list(components)

    def load_components(self, sbom_id: str) -> List[Component]:
        self._require(sbom_id, "load_components")
        return list(self._components.get(sbom_id, []))

    def load_document(self, sbom_id: str) -> Dict[str, Any]:
        self._require(sbom_id, "load_document")
        return self._documents[sbom_id]

    def get_record(self, sbom_id: str) -> StoredSBOM:
        self._require(sbom_id, "get_record")
        return self._records[sbom_id]

    def list_sboms(self) -> List[StoredSBOM]:
        return sorted(self._records.values(), key=lambda record: record.created_at)

    def _require(self, sbom_id: str, operation: str) -> None:
        if sbom_id not in self._records:
            raise PersistenceError(f"SBOM not found: {sbom_id}", sbom_id=sbom_id, operation=operation)


class FileSBOMStore(SBOMStore):
    """
    JSON-on-disk store.

    Each SBOM lives in ``<root>/<sbom_id>/`` as ``meta.json``,
    ``document.json`` and ``components.json``.
    """

    META_FILE = "meta.json"
    DOCUMENT_FILE = "document.json"
    COMPONENTS_FILE = "components.json"

    def __init__(self, root: Union[str, Path]):
        """
        Initialize the store.

        Args:
            root: Store directory, created on first write
        """
        self.root = Path(root)

    def persist_document(self, project_id, version, format, raw_content, **attributes) -> str:
        record = self._new_record(project_id, version, format, attributes)
        directory = self.root / record.sbom_id
        try:
            directory.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise PersistenceError(
                f"Failed to create SBOM directory {directory}",
                sbom_id=record.sbom_id, operation="persist_document", cause=e
            )
        try:
            self._write_json(directory / self.DOCUMENT_FILE, raw_content, record.sbom_id, "persist_document")
            self._write_json(directory / self.META_FILE, record.to_dict(), record.sbom_id, "persist_document")
        except PersistenceError:
            # a directory without meta.json is not a stored SBOM
            shutil.rmtree(directory, ignore_errors=True)
            raise
        logger.info(f"Persisted SBOM document {record.sbom_id} to {directory}")
        return record.sbom_id

    def persist_components(self, sbom_id: str, components: List[Component]) -> None:
        directory = self._directory(sbom_id, "persist_components")
        self._write_json(
            directory / self.COMPONENTS_FILE,
            [component.to_dict() for component in components],
            sbom_id,
            "persist_components"
        )
        logger.info(f"Persisted {len(components)} components for SBOM {sbom_id}")

    def load_components(self, sbom_id: str) -> List[Component]:
        directory = self._directory(sbom_id, "load_components")
        path = directory / self.COMPONENTS_FILE
        if not path.exists():
            return []
        return [Component.from_dict(entry) for entry in self._read_json(path, sbom_id, "load_components")]

    def load_document(self, sbom_id: str) -> Dict[str, Any]:
        directory = self._directory(sbom_id, "load_document")
        return self._read_json(directory / self.DOCUMENT_FILE, sbom_id, "load_document")

    def get_record(self, sbom_id: str) -> StoredSBOM:
        directory = self._directory(sbom_id, "get_record")
        data = self._read_json(directory / self.META_FILE, sbom_id, "get_record")
        try:
            return StoredSBOM.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise PersistenceError(
                f"Corrupt metadata for SBOM {sbom_id}",
                sbom_id=sbom_id, operation="get_record", cause=e
            )

    def list_sboms(self) -> List[StoredSBOM]:
        if not self.root.is_dir():
            return []
        records = [
            self.get_record(path.name)
            for path in self.root.iterdir()
            if (path / self.META_FILE).is_file()
        ]
        return sorted(records, key=lambda record: record.created_at)

    def _directory(self, sbom_id: str, operation: str) -> Path:
        directory = self.root / sbom_id
        if not sbom_id or Path(sbom_id).name != sbom_id or not (directory / self.META_FILE).is_file():
            raise PersistenceError(f"SBOM not found: {sbom_id}", sbom_id=sbom_id, operation=operation)
        return directory

    @staticmethod
    def _write_json(path: Path, data: Any, sbom_id: str, operation: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError) as e:
            raise PersistenceError(
                f"Failed to write {path.name} for SBOM {sbom_id}",
                sbom_id=sbom_id, operation=operation, cause=e
            )

    @staticmethod
    def _read_json(path: Path, sbom_id: str, operation: str) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Failed to read {path.name} for SBOM {sbom_id}",
                sbom_id=sbom_id, operation=operation, cause=e
            )
