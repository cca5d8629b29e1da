"""
License normalization and policy evaluation.
"""

from .license_data import (
    LicenseCatalog, LicenseInfo, LicenseCategory, RiskLevel, Policy,
    SPDX_LICENSES, LICENSE_ALIASES, BUILTIN_POLICIES,
    default_catalog, load_catalog, load_policies_file
)
from .license_normalizer import LicenseNormalizer, normalize_license, UNKNOWN_LICENSE
from .policy_engine import (
    PolicyEngine, PolicyDecision, CompatibilityResult, DEFAULT_POLICY,
    get_policy_engine, get_license_info, check_license_policy,
    check_license_compatibility, list_policies, summarize_licenses
)

__all__ = [
    "LicenseCatalog",
    "LicenseInfo",
    "LicenseCategory",
    "RiskLevel",
    "Policy",
    "SPDX_LICENSES",
    "LICENSE_ALIASES",
    "BUILTIN_POLICIES",
    "default_catalog",
    "load_catalog",
    "load_policies_file",
    "LicenseNormalizer",
    "normalize_license",
    "UNKNOWN_LICENSE",
    "PolicyEngine",
    "PolicyDecision",
    "CompatibilityResult",
    "DEFAULT_POLICY",
    "get_policy_engine",
    "get_license_info",
    "check_license_policy",
    "check_license_compatibility",
    "list_policies",
    "summarize_licenses"
]
