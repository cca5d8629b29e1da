"""
Python dependency parser for requirements.txt, Pipfile, Pipfile.lock and pyproject.toml.
"""

import re
import logging
from typing import List, Dict, Any, Optional

from ..models import Component, Ecosystem, ParseResult, UNKNOWN_VERSION
from .base_scanner import ManifestParser

logger = logging.getLogger(__name__)

REQUIREMENT_PATTERN = re.compile(r"^([a-zA-Z0-9_-]+[a-zA-Z0-9._-]*)\s*([>=<~!]+)?\s*([0-9.]+.*)?")
_EXTRAS = re.compile(r"\[[^\]]*\]")
_OPERATOR_PREFIX = re.compile(r"^([>=<~!^]+)\s*")

PIPFILE_SECTIONS = {"packages": False, "dev-packages": True}
POETRY_SECTIONS = {"dependencies": False, "dev-dependencies": True}


class PythonParser(ManifestParser):
    """
    Parser for Python dependency files.

    Component names are lower-cased, which is the identity rule of the
    Python package index. Requirements without a pinned or bounded version
    get the version ``unknown``.
    """

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.PYTHON

    @property
    def supported_files(self) -> List[str]:
        return ["requirements.txt", "Pipfile", "Pipfile.lock", "pyproject.toml"]

    def parse(self, file_name: str, content: str) -> ParseResult:
        base = self._basename(file_name)

        if base == "requirements.txt":
            result = self._parse_requirements_txt(content)
        elif base == "Pipfile.lock":
            result = self._parse_pipfile_lock(file_name, content)
        elif base == "Pipfile":
            result = self._parse_pipfile(file_name, content)
        else:
            result = self._parse_pyproject_toml(file_name, content)

        logger.debug(f"Parsed {result.component_count} components from {file_name}")
        return result

    def _parse_requirements_txt(self, content: str) -> ParseResult:
        """
        Parse requirements.txt line by line.

        Blank lines, comments and option lines (``-r``, ``-e``, ``--index-url``)
        are skipped, as are lines the requirement pattern does not match
        (URLs and local paths).
        """
        components = []

        for line_num, line in enumerate(content.splitlines(), 1):
            line = line.strip()

            if not line or line.startswith('#'):
                continue
            if line.startswith('-'):
                continue

            component = self._parse_requirement(line)
            if component:
                components.append(component)
            else:
                logger.debug(f"Skipping unrecognized requirement on line {line_num}: {line}")

        return self._result(components)

    def _parse_requirement(self, requirement: str, extra_metadata: Optional[Dict[str, Any]] = None) -> Optional[Component]:
        """
        Turn one PEP 508 style requirement string into a component.

        Args:
            requirement: Requirement such as ``Django>=3.2,<4 ; python_version>"3"``
            extra_metadata: Flags to add to the component metadata

        Returns:
            Component or None when the string is not a named requirement
        """
        # Inline comments, environment markers and extras carry no identity
        requirement = requirement.split(" #", 1)[0]
        requirement = requirement.split(";", 1)[0]
        requirement = _EXTRAS.sub("", requirement).strip()

        match = REQUIREMENT_PATTERN.match(requirement)
        if not match:
            return None

        name, operator, version = match.groups()
        if version:
            version = version.split(",", 1)[0].strip()

        metadata = {"versionOperator": operator}
        if extra_metadata:
            metadata.update(extra_metadata)

        return self._create_component(
            name=name.lower(),
            version=version or UNKNOWN_VERSION,
            metadata=metadata
        )

    def _parse_pipfile(self, file_name: str, content: str) -> ParseResult:
        data = self._load_toml(file_name, content)
        components = []

        for section, is_dev in PIPFILE_SECTIONS.items():
            packages = data.get(section) or {}
            if not isinstance(packages, dict):
                raise self._malformed(file_name, f"'{section}' in {file_name} must be a table")
            for name, spec in packages.items():
                components.append(self._create_component(
                    name=name.lower(),
                    version=self._pipfile_version(spec),
                    metadata={"isDev": is_dev}
                ))

        return self._result(components)

    def _pipfile_version(self, spec: Any) -> str:
        """Parse a Pipfile version specification."""
        if isinstance(spec, dict):
            if "version" in spec:
                spec = spec["version"]
            else:
                return str(spec.get("ref", UNKNOWN_VERSION))

        version = str(spec).replace("==", "").strip()
        if version == "*":
            return "latest"
        version = _OPERATOR_PREFIX.sub("", version)
        return version.split(",", 1)[0].strip() or UNKNOWN_VERSION

    def _parse_pipfile_lock(self, file_name: str, content: str) -> ParseResult:
        data = self._load_json(file_name, content)
        components = []

        for section, is_dev in (("default", False), ("develop", True)):
            packages = data.get(section) or {}
            if not isinstance(packages, dict):
                raise self._malformed(file_name, f"'{section}' in {file_name} must be an object")
            for name, info in packages.items():
                info = info if isinstance(info, dict) else {}
                version = str(info.get("version") or "").replace("==", "") or UNKNOWN_VERSION
                components.append(self._create_component(
                    name=name.lower(),
                    version=version,
                    checksum_sha256=self._extract_sha256(info.get("hashes")),
                    metadata={
                        "isDev": is_dev,
                        "index": info.get("index"),
                        "markers": info.get("markers"),
                    }
                ))

        meta = data.get("_meta") or {}
        requires = meta.get("requires") or {} if isinstance(meta, dict) else {}
        return self._result(components, pythonVersion=requires.get("python_version"))

    @staticmethod
    def _extract_sha256(hashes: Any) -> Optional[str]:
        if not isinstance(hashes, list):
            return None
        for entry in hashes:
            if isinstance(entry, str) and entry.startswith("sha256:"):
                return entry[len("sha256:"):]
        return None


    def _parse_pyproject_toml(self, file_name: str, content: str) -> ParseResult:
        """
        Parse pyproject.toml.

        Reads the PEP 621 ``dependencies`` array of the ``[project]`` table,
        the arrays of ``[project.optional-dependencies]`` and the Poetry
        dependency tables, including ``[tool.poetry.group.<name>.dependencies]``.
        """
        data = self._load_toml(file_name, content)
        components: List[Component] = []

        project = self._table(file_name, data, "project")
        components.extend(self._requirements_from_array(project.get("dependencies")))
        optional = self._table(file_name, project, "optional-dependencies")
        for extra, requirements in optional.items():
            components.extend(self._requirements_from_array(
                requirements, {"isOptional": True, "extra": extra}
            ))

        poetry = self._table(file_name, self._table(file_name, data, "tool"), "poetry")
        for section, is_dev in POETRY_SECTIONS.items():
            components.extend(self._poetry_table(file_name, poetry, section, is_dev))
        groups = self._table(file_name, poetry, "group")
        for group in groups.values():
            if isinstance(group, dict):
                components.extend(self._poetry_table(file_name, group, "dependencies", True))

        return self._result(
            components,
            projectName=project.get("name") or poetry.get("name"),
            projectVersion=project.get("version") or poetry.get("version")
        )

    def _table(self, file_name: str, parent: Dict[str, Any], key: str) -> Dict[str, Any]:
        value = parent.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise self._malformed(file_name, f"'{key}' in {file_name} must be a table")
        return value

    def _poetry_table(self, file_name: str, parent: Dict[str, Any], section: str, is_dev: bool) -> List[Component]:
        components = []
        for name, spec in self._table(file_name, parent, section).items():
            if name.lower() == "python":
                continue
            components.append(self._create_component(
                name=name.lower(),
                version=self._poetry_version(spec),
                metadata={"isDev": is_dev}
            ))
        return components

    def _requirements_from_array(self, value: Any, extra_metadata: Optional[Dict[str, Any]] = None) -> List[Component]:
        if not isinstance(value, list):
            return []
        components = []
        for entry in value:
            component = self._parse_requirement(str(entry), extra_metadata)
            if component:
                components.append(component)
        return components

    def _poetry_version(self, spec: Any) -> str:
        """Parse a Poetry version specification."""
        if isinstance(spec, dict):
            if "version" not in spec:
                return str(spec.get("rev") or spec.get("tag") or spec.get("branch") or UNKNOWN_VERSION)
            spec = spec["version"]
        version = _OPERATOR_PREFIX.sub("", str(spec).strip())
        if version in ("", "*"):
            return "latest" if version == "*" else UNKNOWN_VERSION
        return version.split(",", 1)[0].strip()
