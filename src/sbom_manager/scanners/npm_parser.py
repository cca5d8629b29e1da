"""
npm manifest parser for package.json and package-lock.json.
"""

import logging
import re
from typing import List, Dict, Any, Optional

from ..models import Component, Ecosystem, ParseResult, UNKNOWN_VERSION
from .base_scanner import ManifestParser

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = [
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
]

_SECTION_FLAGS = {
    "devDependencies": "isDev",
    "peerDependencies": "isPeer",
    "optionalDependencies": "isOptional",
}

_RANGE_PREFIX = re.compile(r"^[\^~>=<]+")


class NpmParser(ManifestParser):
    """
    Parser for npm manifests.

    ``package.json`` yields one component per declared name across all four
    dependency sections. ``package-lock.json`` yields the resolved tree,
    preferring the flat ``packages`` map of lockfile v2/v3 and falling back
    to the nested ``dependencies`` tree of lockfile v1.
    """

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.NPM

    @property
    def supported_files(self) -> List[str]:
        return ["package.json", "package-lock.json"]

    def parse(self, file_name: str, content: str) -> ParseResult:
        base = self._basename(file_name)
        data = self._load_json(file_name, content)

        if base == "package-lock.json":
            result = self._parse_package_lock(data)
        else:
            result = self._parse_package_json(file_name, data)

        logger.debug(f"Parsed {result.component_count} components from {file_name}")
        return result

    def _parse_package_json(self, file_name: str, data: Dict[str, Any]) -> ParseResult:
        """
        Merge the four dependency sections into one component list.

        A name declared in several sections appears once, at the position
        of its first declaration, with the version of its last declaration.
        """
        merged: Dict[str, Any] = {}
        sections: Dict[str, Dict[str, Any]] = {}
        for section in DEPENDENCY_SECTIONS:
            entries = data.get(section) or {}
            if not isinstance(entries, dict):
                raise self._malformed(file_name, f"'{section}' in {file_name} must be an object")
            sections[section] = entries
            merged.update(entries)

        components = []
        for name, spec in merged.items():
            flags = {flag: name in sections[section] for section, flag in _SECTION_FLAGS.items()}
            components.append(self._create_component(
                name=name,
                version=self._clean_version(spec),
                metadata=flags
            ))

        return self._result(
            components,
            projectName=data.get("name"),
            projectVersion=data.get("version"),
            description=data.get("description"),
            license=data.get("license")
        )

    def _parse_package_lock(self, data: Dict[str, Any]) -> ParseResult:
        components: List[Component] = []
        packages = data.get("packages") or {}
        legacy = data.get("dependencies") or {}

        if isinstance(packages, dict) and packages:
            for package_path, info in packages.items():
                if package_path == "" or not isinstance(info, dict):
                    continue
                version = info.get("version")
                if not version:
                    continue
                name = info.get("name") or self._name_from_path(package_path)
                components.append(self._lock_component(name, version, info, info.get("dependencies")))
                components[-1].metadata["optional"] = bool(info.get("optional", False))
        elif isinstance(legacy, dict) and legacy:
            self._walk_legacy_tree(legacy, components)

        return self._result(components, lockfileVersion=data.get("lockfileVersion"))

    def _walk_legacy_tree(self, deps: Dict[str, Any], components: List[Component]) -> None:
        """Depth-first walk of a v1 lockfile, parents before children."""
        for name, info in deps.items():
            if not isinstance(info, dict):
                continue
            components.append(self._lock_component(
                name, info.get("version") or UNKNOWN_VERSION, info, info.get("requires")
            ))
            nested = info.get("dependencies")
            if isinstance(nested, dict) and nested:
                self._walk_legacy_tree(nested, components)

    def _lock_component(
        self,
        name: str,
        version: str,
        info: Dict[str, Any],
        declared: Optional[Dict[str, Any]]
    ) -> Component:
        license_value = info.get("license")
        return self._create_component(
            name=name,
            version=version,
            license=license_value if isinstance(license_value, str) else None,
            checksum_sha256=self._extract_sha256(info.get("integrity")),
            dependencies=list(declared.keys()) if isinstance(declared, dict) else [],
            metadata={
                "resolved": info.get("resolved"),
                "dev": bool(info.get("dev", False)),
            }
        )

    @staticmethod
    def _name_from_path(package_path: str) -> str:
        # node_modules/a/node_modules/@scope/b -> @scope/b
        marker = "node_modules/"
        index = package_path.rfind(marker)
        if index == -1:
            return package_path
        return package_path[index + len(marker):]

    @staticmethod
    def _extract_sha256(integrity: Optional[str]) -> Optional[str]:
        if isinstance(integrity, str) and integrity.startswith("sha256-"):
            return integrity[len("sha256-"):]
        return None

    def _clean_version(self, version: Any) -> str:
        """
        Clean version string by removing npm range operators.

        Args:
            version: Raw version spec from package.json

        Returns:
            Cleaned version string
        """
        if version is None:
            return UNKNOWN_VERSION

        cleaned = _RANGE_PREFIX.sub("", str(version).strip()).strip()

        # Handle version ranges (take the first version)
        if " - " in cleaned:
            cleaned = cleaned.split(" - ")[0].strip()
        elif " || " in cleaned:
            cleaned = cleaned.split(" || ")[0].strip()

        return cleaned if cleaned else UNKNOWN_VERSION
