"""
Go modules parser for go.mod and go.sum.
"""

import logging
from typing import List, Optional, Set

from ..models import Component, Ecosystem, ParseResult
from .base_scanner import ManifestParser

logger = logging.getLogger(__name__)


class GoParser(ManifestParser):
    """
    Parser for Go module files.

    ``go.mod`` is read with a small state machine that tracks whether the
    scanner is inside a ``require ( ... )`` block. ``go.sum`` yields one
    component per module version, ignoring the ``/go.mod`` hash lines.
    """

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.GO

    @property
    def supported_files(self) -> List[str]:
        return ["go.mod", "go.sum"]

    def parse(self, file_name: str, content: str) -> ParseResult:
        base = self._basename(file_name)

        if base == "go.mod":
            result = self._parse_go_mod(file_name, content)
        else:
            result = self._parse_go_sum(file_name, content)

        logger.debug(f"Parsed {result.component_count} components from {file_name}")
        return result

    def _parse_go_mod(self, file_name: str, content: str) -> ParseResult:
        components = []
        module_name = None
        go_version = None
        in_require = False
        block_start = 0

        for line_num, raw_line in enumerate(content.splitlines(), 1):
            line = raw_line.strip()
            if not line or line.startswith("//"):
                continue

            if in_require:
                if line == ")":
                    in_require = False
                    continue
                component = self._require_entry(line)
                if component:
                    components.append(component)
                continue

            if line.startswith("module "):
                module_name = line.split()[1].strip('"')
            elif line.startswith("go "):
                go_version = line.split()[1]
            elif line.startswith("require"):
                rest = line[len("require"):].strip()
                if rest.startswith("("):
                    in_require = True
                    block_start = line_num
                    # require ( a v1 ) on one line
                    inner = rest[1:].strip()
                    if inner.endswith(")"):
                        in_require = False
                        inner = inner[:-1].strip()
                    if inner:
                        component = self._require_entry(inner)
                        if component:
                            components.append(component)
                elif rest:
                    component = self._require_entry(rest)
                    if component:
                        components.append(component)

        if in_require:
            raise self._malformed(file_name, f"Unterminated require block in {file_name}", block_start)

        return self._result(components, moduleName=module_name, goVersion=go_version)

    def _require_entry(self, line: str) -> Optional[Component]:
        """Parse ``module vX.Y.Z [// indirect]``."""
        indirect = "// indirect" in line
        parts = line.split("//", 1)[0].split()
        if len(parts) < 2:
            return None

        return self._create_component(
            name=parts[0],
            version=self._strip_v(parts[1]),
            metadata={"indirect": indirect}
        )

    def _parse_go_sum(self, file_name: str, content: str) -> ParseResult:
        components = []
        seen: Set[str] = set()

        for line_num, raw_line in enumerate(content.splitlines(), 1):
            line = raw_line.strip()
            if not line:
                continue

            parts = line.split()
            if len(parts) < 3:
                raise self._malformed(
                    file_name,
                    f"Expected 'module version hash' in {file_name}, got: {line}",
                    line_num
                )

            name, version, checksum = parts[0], parts[1], parts[2]

            # The /go.mod entry hashes only the module's go.mod file
            if version.endswith("/go.mod"):
                continue

            version = self._strip_v(version)
            key = f"{name}@{version}"
            if key in seen:
                continue
            seen.add(key)

            components.append(self._create_component(
                name=name,
                version=version,
                checksum_sha256=checksum[3:] if checksum.startswith("h1:") else None,
                metadata={"hash": checksum}
            ))

        return self._result(components)

    @staticmethod
    def _strip_v(version: str) -> str:
        return version[1:] if version.startswith("v") else version
