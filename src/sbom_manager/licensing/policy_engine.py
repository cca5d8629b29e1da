"""
License policy evaluation and per-SBOM license summaries.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from ..models import Component
from .license_data import LicenseCatalog, LicenseCategory, RiskLevel, default_catalog
from .license_normalizer import LicenseNormalizer, UNKNOWN_LICENSE

logger = logging.getLogger(__name__)

DEFAULT_POLICY = "commercial"

_CATEGORY_REASONS = {
    LicenseCategory.PERMISSIVE: "Permissive licenses are not allowed by policy",
    LicenseCategory.WEAK_COPYLEFT: "Weak copyleft licenses are not allowed by policy",
    LicenseCategory.STRONG_COPYLEFT: "Strong copyleft licenses (GPL) are not allowed by policy",
    LicenseCategory.PROPRIETARY: "Proprietary licenses are not allowed by policy",
    LicenseCategory.PUBLIC_DOMAIN: "Public domain licenses are not allowed by policy",
}


@dataclass
class PolicyDecision:
    """Outcome of checking one license against one policy."""
    allowed: bool
    risk_level: str
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"allowed": self.allowed, "risk_level": self.risk_level, "reason": self.reason}


@dataclass
class CompatibilityResult:
    """Whether two licenses can be combined in one work."""
    compatible: bool
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"compatible": self.compatible, "reason": self.reason}


class PolicyEngine:
    """
    Evaluates SPDX identifiers against named license policies.

    Checking a license never raises: unknown and blocked licenses are
    reported as disallowed decisions. Only an unknown policy name is an
    error, since that is a configuration mistake.
    """

    def __init__(
        self,
        catalog: Optional[LicenseCatalog] = None,
        normalizer: Optional[LicenseNormalizer] = None
    ):
        """
        Initialize the policy engine.

        Args:
            catalog: License and policy tables, defaults to the built-in catalog
            normalizer: Normalizer sharing the same catalog
        """
        self.catalog = catalog or default_catalog()
        self.normalizer = normalizer or LicenseNormalizer(self.catalog)

    def get_license_info(self, spdx_id: str) -> Dict[str, Any]:
        """
        Describe a license identifier.

        Returns:
            Dictionary with id, name, category, risk_level and is_known
        """
        info = self.catalog.get_license(spdx_id)
        if info is None:
            return {
                "id": spdx_id,
                "name": spdx_id,
                "category": LicenseCategory.UNKNOWN.value,
                "risk_level": RiskLevel.MEDIUM.value,
                "is_known": False
            }
        details = info.to_dict()
        details["is_known"] = True
        return details

    def check_license_policy(self, spdx_id: str, policy: str = DEFAULT_POLICY) -> PolicyDecision:
        """
        Check one license against a policy.

        Args:
            spdx_id: Normalized SPDX identifier
            policy: Policy key

        Returns:
            PolicyDecision with allowed flag, risk level and reason

        Raises:
            ConfigurationError: If the policy key is unknown
        """
        rules = self.catalog.get_policy(policy)
        info = self.catalog.get_license(spdx_id)

        if info is None:
            return PolicyDecision(False, RiskLevel.MEDIUM.value, "Unknown license")

        if spdx_id in rules.blocked_licenses:
            return PolicyDecision(
                False, RiskLevel.HIGH.value, f"License {spdx_id} is explicitly blocked by policy"
            )

        if rules.allowed_licenses and spdx_id not in rules.allowed_licenses:
            return PolicyDecision(
                False, info.risk_level.value, f"License {spdx_id} is not in the allowed list"
            )

        if not rules.allows_category(info.category):
            return PolicyDecision(False, info.risk_level.value, _CATEGORY_REASONS[info.category])

        return PolicyDecision(True, info.risk_level.value)

    def check_license_compatibility(self, first: str, second: str) -> CompatibilityResult:
        """
        Check whether two licenses can be combined.

        Permissive and public-domain licenses combine with anything. Strong
        copyleft only combines with the identical license.
        """
        info_first = self.catalog.get_license(first)
        info_second = self.catalog.get_license(second)

        if info_first is None or info_second is None:
            return CompatibilityResult(False, "One or both licenses are unknown")

        categories = {info_first.category, info_second.category}
        if categories & {LicenseCategory.PERMISSIVE, LicenseCategory.PUBLIC_DOMAIN}:
            return CompatibilityResult(True)

        if LicenseCategory.STRONG_COPYLEFT in categories and first != second:
            return CompatibilityResult(
                False, "Strong copyleft licenses require the entire work to use the same license"
            )

        return CompatibilityResult(True)

    def list_policies(self) -> List[Dict[str, str]]:
        """List available policies as key, name and description."""
        return [
            {"key": policy.key, "name": policy.name, "description": policy.description}
            for policy in self.catalog.policies.values()
        ]

    def analyze_component(self, component: Component, policy: str = DEFAULT_POLICY) -> Dict[str, Any]:
        """
        Normalize, classify and check one component's license.

        Returns:
            Dictionary with raw_license, spdx_id, license_info and policy_check
        """
        spdx_id = self.normalizer.normalize(component.license)
        return {
            "component": component.identity_key,
            "raw_license": component.license,
            "spdx_id": spdx_id,
            "license_info": self.get_license_info(spdx_id),
            "policy_check": self.check_license_policy(spdx_id, policy).to_dict()
        }

    def summarize_licenses(self, components: List[Component], policy: str = DEFAULT_POLICY) -> Dict[str, Any]:
        """
        Summarize the licenses of an SBOM's components.

        Components whose license does not normalize count as unknown and
        medium risk; they are not reported as policy violations.

        Args:
            components: Components of one SBOM
            policy: Policy key

        Returns:
            Dictionary with total_components, license_counts, unknown_count,
            policy_violations and risk_distribution

        Raises:
            ConfigurationError: If the policy key is unknown
        """
        self.catalog.get_policy(policy)

        license_counts: Dict[str, int] = {}
        unknown_count = 0
        violations = []
        risk_distribution = {"low": 0, "medium": 0, "high": 0}

        for component in components:
            spdx_id = self.normalizer.normalize(component.license)
            if spdx_id == UNKNOWN_LICENSE:
                unknown_count += 1
                risk_distribution["medium"] += 1
                continue

            license_counts[spdx_id] = license_counts.get(spdx_id, 0) + 1
            decision = self.check_license_policy(spdx_id, policy)
            if not decision.allowed:
                violations.append({
                    "component_name": component.name,
                    "component_version": component.version,
                    "license": spdx_id,
                    "reason": decision.reason or "Policy violation",
                    "risk_level": decision.risk_level
                })
            risk_distribution[decision.risk_level] += 1

        logger.info(f"License summary under '{policy}': {len(components)} components, "
                    f"{unknown_count} unknown, {len(violations)} violations")

        return {
            "total_components": len(components),
            "license_counts": license_counts,
            "unknown_count": unknown_count,
            "policy_violations": violations,
            "risk_distribution": risk_distribution
        }


_default_engine: Optional[PolicyEngine] = None


def get_policy_engine() -> PolicyEngine:
    """Get the engine bound to the built-in catalog."""
    global _default_engine
    if _default_engine is None:
        _default_engine = PolicyEngine(default_catalog())
    return _default_engine


def get_license_info(spdx_id: str) -> Dict[str, Any]:
    return get_policy_engine().get_license_info(spdx_id)


def check_license_policy(spdx_id: str, policy: str = DEFAULT_POLICY) -> PolicyDecision:
    return get_policy_engine().check_license_policy(spdx_id, policy)


def check_license_compatibility(first: str, second: str) -> CompatibilityResult:
    return get_policy_engine().check_license_compatibility(first, second)


def list_policies() -> List[Dict[str, str]]:
    return get_policy_engine().list_policies()


def summarize_licenses(components: List[Component], policy: str = DEFAULT_POLICY) -> Dict[str, Any]:
    return get_policy_engine().summarize_licenses(components, policy)
