"""
Rust dependency parser for Cargo.toml and Cargo.lock.
"""

import logging
from typing import List, Dict, Any

from ..models import Component, Ecosystem, ParseResult, UNKNOWN_VERSION
from .base_scanner import ManifestParser

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = ("dependencies", "dev-dependencies", "build-dependencies")


class RustParser(ManifestParser):
    """
    Parser for Cargo manifests and lock files.
    """

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.RUST

    @property
    def supported_files(self) -> List[str]:
        return ["Cargo.toml", "Cargo.lock"]

    def parse(self, file_name: str, content: str) -> ParseResult:
        data = self._load_toml(file_name, content)

        if self._basename(file_name) == "Cargo.toml":
            result = self._parse_cargo_toml(file_name, data)
        else:
            result = self._parse_cargo_lock(file_name, data)

        logger.debug(f"Parsed {result.component_count} components from {file_name}")
        return result

    def _parse_cargo_toml(self, file_name: str, data: Dict[str, Any]) -> ParseResult:
        """
        Walk the dependency tables of Cargo.toml.

        Handles ``name = "1.0"``, ``name = { version = "1.0", features = [...] }``
        and the ``[dependencies.name]`` sub-table form. Target-specific
        tables such as ``[target.'cfg(unix)'.dependencies]`` count as their
        base section and follow the top-level tables.
        """
        components: List[Component] = []

        for kind in DEPENDENCY_SECTIONS:
            components.extend(self._dependency_table(file_name, kind, data.get(kind)))

        targets = data.get("target") or {}
        if not isinstance(targets, dict):
            raise self._malformed(file_name, f"'target' in {file_name} must be a table")
        for target in targets.values():
            if not isinstance(target, dict):
                continue
            for kind in DEPENDENCY_SECTIONS:
                components.extend(self._dependency_table(file_name, kind, target.get(kind)))

        package = data.get("package")
        package = package if isinstance(package, dict) else {}
        return self._result(
            components,
            packageName=package.get("name"),
            packageVersion=self._string_or_none(package.get("version"))
        )

    def _dependency_table(self, file_name: str, kind: str, table: Any) -> List[Component]:
        if table is None:
            return []
        if not isinstance(table, dict):
            raise self._malformed(file_name, f"'{kind}' in {file_name} must be a table")
        return [self._toml_dependency(name, spec, kind) for name, spec in table.items()]

    @staticmethod
    def _string_or_none(value: Any):
        # workspace inheritance writes ``version.workspace = true``
        return value if isinstance(value, str) else None

    def _toml_dependency(self, name: str, spec: Any, kind: str) -> Component:
        version = ""
        features: List[str] = []
        if isinstance(spec, dict):
            version = self._string_or_none(spec.get("version")) or ""
            raw_features = spec.get("features", [])
            if isinstance(raw_features, list):
                features = [str(f) for f in raw_features]
        elif isinstance(spec, str):
            version = spec

        return self._create_component(
            name=name,
            version=version or UNKNOWN_VERSION,
            metadata={
                "isDev": kind == "dev-dependencies",
                "isBuild": kind == "build-dependencies",
                "features": features,
            }
        )

    def _parse_cargo_lock(self, file_name: str, data: Dict[str, Any]) -> ParseResult:
        """
        Collect ``[[package]]`` stanzas.

        Stanzas missing a name or version are dropped. Entries of the
        ``dependencies`` array look like ``"serde 1.0.1 (registry+...)"``;
        only the first token, the crate name, is kept.
        """
        packages = data.get("package") or []
        if not isinstance(packages, list):
            raise self._malformed(file_name, f"'package' in {file_name} must be an array of tables")

        components = []
        for stanza in packages:
            if isinstance(stanza, dict):
                self._append_locked(components, stanza)

        return self._result(components, lockfileVersion=data.get("version"))

    def _append_locked(self, components: List[Component], stanza: Dict[str, Any]) -> None:
        name = stanza.get("name")
        version = stanza.get("version")
        if not name or not version:
            return

        dependencies = []
        for entry in stanza.get("dependencies") or []:
            tokens = str(entry).split()
            if tokens:
                dependencies.append(tokens[0])

        components.append(self._create_component(
            name=str(name),
            version=str(version),
            checksum_sha256=stanza.get("checksum") or None,
            dependencies=dependencies,
            metadata={"source": stanza.get("source")}
        ))
