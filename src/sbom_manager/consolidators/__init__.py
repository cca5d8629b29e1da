"""
Component consolidation and export.
"""

from .deduplicator import Deduplicator
from .export_manager import ExportManager, ExportArtifact

__all__ = [
    "Deduplicator",
    "ExportManager",
    "ExportArtifact"
]
