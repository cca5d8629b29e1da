"""
SBOM Manager

Ingests dependency manifests from npm, Python, Java, Go and Rust projects,
normalizes them into canonical components and synthesizes SPDX 2.3 and
CycloneDX 1.5 Software Bills of Materials, with tabular exports and
license policy checks.
"""

__version__ = "1.0.0"
__author__ = "SBOM Manager Team"
__description__ = "Manifest ingestion, SBOM synthesis and license policy evaluation"
