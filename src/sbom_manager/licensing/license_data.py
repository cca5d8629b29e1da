"""
License classification tables and policy definitions.

The tables are read-only. A LicenseCatalog is built once and handed by
reference to the normalizer and the policy engine.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

import yaml

from ..error_handling.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class LicenseCategory(Enum):
    """License category classification."""
    PERMISSIVE = "permissive"
    WEAK_COPYLEFT = "weak-copyleft"
    STRONG_COPYLEFT = "strong-copyleft"
    PROPRIETARY = "proprietary"
    PUBLIC_DOMAIN = "public-domain"
    UNKNOWN = "unknown"


class RiskLevel(Enum):
    """License risk level for commercial use."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class LicenseInfo:
    """Classification of one SPDX license identifier."""
    spdx_id: str
    name: str
    category: LicenseCategory
    risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.spdx_id,
            "name": self.name,
            "category": self.category.value,
            "risk_level": self.risk_level.value
        }


@dataclass(frozen=True)
class Policy:
    """
    Named license policy.

    A block list overrides everything else. When an allow list is present
    only the listed identifiers pass. Otherwise the per-category flags decide.
    """
    key: str
    name: str
    description: str = ""
    allow_permissive: bool = True
    allow_weak_copyleft: bool = False
    allow_strong_copyleft: bool = False
    allow_proprietary: bool = False
    allow_public_domain: bool = True
    blocked_licenses: tuple = ()
    allowed_licenses: tuple = ()

    def allows_category(self, category: LicenseCategory) -> bool:
        return {
            LicenseCategory.PERMISSIVE: self.allow_permissive,
            LicenseCategory.WEAK_COPYLEFT: self.allow_weak_copyleft,
            LicenseCategory.STRONG_COPYLEFT: self.allow_strong_copyleft,
            LicenseCategory.PROPRIETARY: self.allow_proprietary,
            LicenseCategory.PUBLIC_DOMAIN: self.allow_public_domain,
        }.get(category, False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "allow_permissive": self.allow_permissive,
            "allow_weak_copyleft": self.allow_weak_copyleft,
            "allow_strong_copyleft": self.allow_strong_copyleft,
            "allow_proprietary": self.allow_proprietary,
            "allow_public_domain": self.allow_public_domain,
            "blocked_licenses": list(self.blocked_licenses),
            "allowed_licenses": list(self.allowed_licenses)
        }

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> 'Policy':
        """
        Create a policy from a mapping, as found in a policies file.

        Raises:
            ConfigurationError: If the mapping has unknown or ill-typed fields
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Policy '{key}' must be a mapping",
                config_section="license",
                config_key=key
            )

        flags = ("allow_permissive", "allow_weak_copyleft", "allow_strong_copyleft",
                 "allow_proprietary", "allow_public_domain")
        known = set(flags) | {"name", "description", "blocked_licenses", "allowed_licenses"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Policy '{key}' has unknown fields: {', '.join(unknown)}",
                config_section="license",
                config_key=key
            )

        values: Dict[str, Any] = {}
        for flag in flags:
            if flag in data:
                if not isinstance(data[flag], bool):
                    raise ConfigurationError(
                        f"Policy '{key}' field {flag} must be true or false",
                        config_section="license",
                        config_key=key
                    )
                values[flag] = data[flag]

        for list_field in ("blocked_licenses", "allowed_licenses"):
            entries = data.get(list_field) or []
            if not isinstance(entries, list):
                raise ConfigurationError(
                    f"Policy '{key}' field {list_field} must be a list",
                    config_section="license",
                    config_key=key
                )
            values[list_field] = tuple(str(entry) for entry in entries)

        return cls(
            key=key,
            name=str(data.get("name", key)),
            description=str(data.get("description", "")),
            **values
        )


def _license(spdx_id: str, name: str, category: LicenseCategory, risk: RiskLevel) -> LicenseInfo:
    return LicenseInfo(spdx_id=spdx_id, name=name, category=category, risk_level=risk)


# Table order matters: the substring heuristic returns the first hit.
SPDX_LICENSES: List[LicenseInfo] = [
    _license("MIT", "MIT License", LicenseCategory.PERMISSIVE, RiskLevel.LOW),
    _license("Apache-2.0", "Apache License 2.0", LicenseCategory.PERMISSIVE, RiskLevel.LOW),
    _license("BSD-2-Clause", "BSD 2-Clause License", LicenseCategory.PERMISSIVE, RiskLevel.LOW),
    _license("BSD-3-Clause", "BSD 3-Clause License", LicenseCategory.PERMISSIVE, RiskLevel.LOW),
    _license("ISC", "ISC License", LicenseCategory.PERMISSIVE, RiskLevel.LOW),
    _license("GPL-2.0", "GNU General Public License v2.0",
             LicenseCategory.STRONG_COPYLEFT, RiskLevel.HIGH),
    _license("GPL-3.0", "GNU General Public License v3.0",
             LicenseCategory.STRONG_COPYLEFT, RiskLevel.HIGH),
    _license("AGPL-3.0", "GNU Affero General Public License v3.0",
             LicenseCategory.STRONG_COPYLEFT, RiskLevel.HIGH),
    _license("LGPL-2.1", "GNU Lesser General Public License v2.1",
             LicenseCategory.WEAK_COPYLEFT, RiskLevel.MEDIUM),
    _license("LGPL-3.0", "GNU Lesser General Public License v3.0",
             LicenseCategory.WEAK_COPYLEFT, RiskLevel.MEDIUM),
    _license("MPL-2.0", "Mozilla Public License 2.0", LicenseCategory.WEAK_COPYLEFT, RiskLevel.MEDIUM),
    _license("EPL-2.0", "Eclipse Public License 2.0", LicenseCategory.WEAK_COPYLEFT, RiskLevel.MEDIUM),
    _license("CC0-1.0", "Creative Commons Zero v1.0 Universal",
             LicenseCategory.PUBLIC_DOMAIN, RiskLevel.LOW),
    _license("Unlicense", "The Unlicense", LicenseCategory.PUBLIC_DOMAIN, RiskLevel.LOW),
]

LICENSE_ALIASES: Dict[str, str] = {
    "MIT": "MIT",
    "Apache-2": "Apache-2.0",
    "Apache 2.0": "Apache-2.0",
    "BSD": "BSD-3-Clause",
    "BSD-2": "BSD-2-Clause",
    "BSD-3": "BSD-3-Clause",
    "GPL-2": "GPL-2.0",
    "GPL-3": "GPL-3.0",
    "GPLv2": "GPL-2.0",
    "GPLv3": "GPL-3.0",
    "LGPL-2": "LGPL-2.1",
    "LGPL-3": "LGPL-3.0",
    "LGPLv2": "LGPL-2.1",
    "LGPLv3": "LGPL-3.0",
    "AGPLv3": "AGPL-3.0",
    "MPL-2": "MPL-2.0",
    "EPL-2": "EPL-2.0",
    "CC0": "CC0-1.0",
    "Public Domain": "CC0-1.0",
}

BUILTIN_POLICIES: List[Policy] = [
    Policy(
        key="commercial",
        name="Commercial",
        description="Strict policy for commercial/proprietary software",
        allow_permissive=True,
        allow_weak_copyleft=False,
        allow_strong_copyleft=False,
        allow_proprietary=True,
        allow_public_domain=True,
        blocked_licenses=("GPL-2.0", "GPL-3.0", "AGPL-3.0"),
    ),
    Policy(
        key="permissive",
        name="Permissive",
        description="Only allow permissive and public domain licenses",
        allow_permissive=True,
        allow_weak_copyleft=False,
        allow_strong_copyleft=False,
        allow_proprietary=False,
        allow_public_domain=True,
    ),
    Policy(
        key="open-source",
        name="Open Source",
        description="Allow most open source licenses",
        allow_permissive=True,
        allow_weak_copyleft=True,
        allow_strong_copyleft=True,
        allow_proprietary=False,
        allow_public_domain=True,
    ),
    Policy(
        key="unrestricted",
        name="Unrestricted",
        description="Allow all licenses",
        allow_permissive=True,
        allow_weak_copyleft=True,
        allow_strong_copyleft=True,
        allow_proprietary=True,
        allow_public_domain=True,
    ),
]


@dataclass
class LicenseCatalog:
    """Read-only license, alias and policy tables."""
    licenses: Dict[str, LicenseInfo] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=dict)
    policies: Dict[str, Policy] = field(default_factory=dict)

    def get_license(self, spdx_id: str) -> Optional[LicenseInfo]:
        return self.licenses.get(spdx_id)

    def get_policy(self, key: str) -> Policy:
        """
        Look up a policy by key.

        Raises:
            ConfigurationError: If no policy has that key
        """
        policy = self.policies.get(key)
        if policy is None:
            raise ConfigurationError(
                f"Unknown license policy: {key}. Available: {', '.join(self.policies)}",
                config_section="license",
                config_key="default_policy"
            )
        return policy

    def with_policies(self, extra: List[Policy]) -> 'LicenseCatalog':
        """Return a new catalog with extra policies added or replacing built-ins."""
        policies = dict(self.policies)
        for policy in extra:
            policies[policy.key] = policy
        return LicenseCatalog(licenses=self.licenses, aliases=self.aliases, policies=policies)


@lru_cache(maxsize=1)
def default_catalog() -> LicenseCatalog:
    """Build the built-in catalog once per process."""
    return LicenseCatalog(
        licenses={info.spdx_id: info for info in SPDX_LICENSES},
        aliases=dict(LICENSE_ALIASES),
        policies={policy.key: policy for policy in BUILTIN_POLICIES}
    )


def load_policies_file(path: Union[str, Path]) -> List[Policy]:
    """
    Load extra policies from a YAML file.

    The file holds a ``policies`` mapping of policy key to fields::

        policies:
          internal:
            name: Internal
            allow_weak_copyleft: true
            blocked_licenses: [AGPL-3.0]

    Raises:
        ConfigurationError: If the file cannot be read or is malformed
    """
    policies_path = Path(path)
    try:
        with open(policies_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load policies file {policies_path}",
            config_section="license",
            config_key="policies_file",
            cause=e
        )

    entries = data.get("policies") if isinstance(data, dict) else None
    if not isinstance(entries, dict):
        raise ConfigurationError(
            f"Policies file {policies_path} must contain a 'policies' mapping",
            config_section="license",
            config_key="policies_file"
        )

    policies = [Policy.from_dict(str(key), value) for key, value in entries.items()]
    logger.info(f"Loaded {len(policies)} license policies from {policies_path}")
    return policies


def load_catalog(policies_file: Optional[Union[str, Path]] = None) -> LicenseCatalog:
    """
    Get the catalog for a configuration.

    Without a policies file this is the shared default catalog.
    """
    if not policies_file:
        return default_catalog()
    return default_catalog().with_policies(load_policies_file(policies_file))
