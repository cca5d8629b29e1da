"""
Persistence collaborators for SBOM documents and components.
"""

from .sbom_store import SBOMStore, InMemorySBOMStore, FileSBOMStore, StoredSBOM

__all__ = [
    "SBOMStore",
    "InMemorySBOMStore",
    "FileSBOMStore",
    "StoredSBOM"
]
