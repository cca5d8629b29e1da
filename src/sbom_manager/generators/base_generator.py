"""
Base interface for SBOM document formatters.
"""

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List

from ..models import SBOMDocument


class SBOMFormat(Enum):
    """Supported export formats."""
    SPDX = "spdx"
    CYCLONEDX = "cyclonedx"
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"


class BaseFormatter(ABC):
    """
    Abstract base class for standards formatters.

    A formatter renders the format-agnostic document graph into one
    serialization and checks the result for the fields that serialization
    requires.
    """

    @abstractmethod
    def format_document(self, sbom: SBOMDocument, **kwargs) -> Dict[str, Any]:
        """
        Render an SBOM document into this format.

        Args:
            sbom: Document graph to render

        Returns:
            JSON-serializable document
        """
        pass

    @abstractmethod
    def validate_document(self, document: Dict[str, Any]) -> List[str]:
        """
        Check a rendered document for required fields.

        Args:
            document: Rendered document

        Returns:
            Human-readable error messages, empty when valid
        """
        pass

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Get the name of this format."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Get the recommended file extension for this format."""
        pass

    def to_json(self, document: Dict[str, Any]) -> str:
        """Serialize a rendered document with two-space indentation."""
        return json.dumps(document, indent=2, ensure_ascii=False)
