"""
SBOM document synthesis and output formatters.
"""

from .base_generator import BaseFormatter, SBOMFormat
from .sbom_generator import SBOMGenerator, ROOT_PACKAGE_ID, sanitize_id
from .spdx_formatter import SPDXFormatter
from .cyclonedx_formatter import CycloneDXFormatter
from .tabular_formatter import TabularFormatter, ExportContext, COLUMNS, COLUMN_WIDTHS

__all__ = [
    "BaseFormatter",
    "SBOMFormat",
    "SBOMGenerator",
    "ROOT_PACKAGE_ID",
    "sanitize_id",
    "SPDXFormatter",
    "CycloneDXFormatter",
    "TabularFormatter",
    "ExportContext",
    "COLUMNS",
    "COLUMN_WIDTHS"
]
