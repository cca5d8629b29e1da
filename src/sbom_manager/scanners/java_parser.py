"""
Java dependency parser for Maven pom.xml and Gradle build files.
"""

import logging
import re
from typing import List, Dict, Optional

from ..models import Component, Ecosystem, ParseResult, UNKNOWN_VERSION
from .base_scanner import ManifestParser

logger = logging.getLogger(__name__)

GRADLE_CONFIGURATIONS = [
    "testImplementation",
    "testRuntimeOnly",
    "testCompile",
    "annotationProcessor",
    "implementation",
    "compileOnly",
    "runtimeOnly",
    "compile",
    "runtime",
    "api",
]

_CONF = "|".join(GRADLE_CONFIGURATIONS)

# implementation 'g:a:v'  /  implementation("g:a:v")  /  api "g:a:v:classifier"
GRADLE_STRING_PATTERN = re.compile(
    r"\b(?P<conf>" + _CONF + r")\s*\(?\s*[\"'](?P<group>[^\"':\s]+):(?P<artifact>[^\"':\s]+):"
    r"(?P<version>[^\"':\s)]+)(?::[^\"']*)?[\"']"
)

# implementation group: 'g', name: 'a', version: 'v'  (Kotlin DSL uses '=')
GRADLE_MAP_PATTERN = re.compile(
    r"\b(?P<conf>" + _CONF + r")\s*\(?\s*group\s*[:=]\s*[\"'](?P<group>[^\"']+)[\"']\s*,\s*"
    r"name\s*[:=]\s*[\"'](?P<artifact>[^\"']+)[\"']"
    r"(?:\s*,\s*version\s*[:=]\s*[\"'](?P<version>[^\"']+)[\"'])?"
)

# id "x" version "y"  /  id("x") version "y"
GRADLE_PLUGIN_PATTERN = re.compile(
    r"\bid\s*\(?\s*[\"'](?P<plugin>[^\"']+)[\"']\s*\)?\s+version\s*\(?\s*[\"'](?P<version>[^\"']+)[\"']"
)

_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_DEPENDENCY_BLOCK = re.compile(r"<dependency>(.*?)</dependency>", re.DOTALL)
_DEPENDENCY_OPEN = re.compile(r"<dependency\s*>")
_DEPENDENCY_CLOSE = re.compile(r"</dependency\s*>")
_PROPERTIES_BLOCK = re.compile(r"<properties>(.*?)</properties>", re.DOTALL)
_PROPERTY = re.compile(r"<([\w.\-]+)>\s*([^<]*?)\s*</\1>")
_PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")
_PLACEHOLDER_CHARS = re.compile(r"[${}]")
_NESTED_SECTIONS = re.compile(
    r"<(dependencies|dependencyManagement|build|parent|profiles|plugins|reporting)>.*?</\1>",
    re.DOTALL
)


class JavaParser(ManifestParser):
    """
    Parser for Java dependency files including Maven pom.xml and Gradle build files.

    Both build systems are read with regular expressions over the raw text;
    no XML parser or Groovy/Kotlin evaluation is involved. Gradle plugins
    are emitted as separate components from the Gradle Plugin Portal.
    """

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.JAVA

    @property
    def supported_files(self) -> List[str]:
        return ["pom.xml", "build.gradle", "build.gradle.kts"]

    def parse(self, file_name: str, content: str) -> ParseResult:
        base = self._basename(file_name)

        if base == "pom.xml":
            result = self._parse_pom_xml(file_name, content)
        else:
            result = self._parse_gradle(content, base.endswith(".kts"))

        logger.debug(f"Parsed {result.component_count} components from {file_name}")
        return result

    def _parse_pom_xml(self, file_name: str, content: str) -> ParseResult:
        """
        Parse Maven pom.xml file.

        Args:
            file_name: Manifest name, used in error messages
            content: Raw XML text

        Returns:
            ParseResult with one component per ``<dependency>`` block
        """
        content = _XML_COMMENT.sub("", content)

        opened = len(_DEPENDENCY_OPEN.findall(content))
        closed = len(_DEPENDENCY_CLOSE.findall(content))
        if opened != closed:
            raise self._malformed(
                file_name,
                f"Unbalanced <dependency> tags in {file_name}: {opened} opened, {closed} closed"
            )

        project = self._project_coordinates(content)
        properties = self._extract_properties(content)
        if project.get("version"):
            properties.setdefault("project.version", project["version"])

        components = []
        for block in _DEPENDENCY_BLOCK.findall(content):
            group_id = self._extract_tag(block, "groupId")
            artifact_id = self._extract_tag(block, "artifactId")
            if not group_id or not artifact_id:
                continue

            raw_version = self._extract_tag(block, "version") or ""
            components.append(self._create_component(
                name=f"{group_id}:{artifact_id}",
                version=_PLACEHOLDER_CHARS.sub("", raw_version).strip() or UNKNOWN_VERSION,
                metadata={
                    "groupId": group_id,
                    "artifactId": artifact_id,
                    "scope": self._extract_tag(block, "scope") or "compile",
                    "optional": (self._extract_tag(block, "optional") or "").lower() == "true",
                    "resolvedVersion": self._resolve(raw_version, properties),
                }
            ))

        return self._result(
            components,
            buildTool="maven",
            projectGroupId=project.get("groupId"),
            projectArtifactId=project.get("artifactId"),
            projectVersion=project.get("version")
        )

    def _project_coordinates(self, content: str) -> Dict[str, Optional[str]]:
        """Read the project's own coordinates, inheriting groupId/version from <parent>."""
        top_level = _NESTED_SECTIONS.sub("", content)
        parent_match = re.search(r"<parent>(.*?)</parent>", content, re.DOTALL)
        parent = parent_match.group(1) if parent_match else ""

        coordinates = {}
        for tag in ("groupId", "artifactId", "version"):
            coordinates[tag] = self._extract_tag(top_level, tag) or (
                self._extract_tag(parent, tag) if tag != "artifactId" else None
            )
        return coordinates

    def _extract_properties(self, content: str) -> Dict[str, str]:
        properties = {}
        for block in _PROPERTIES_BLOCK.findall(content):
            for key, value in _PROPERTY.findall(block):
                properties[key] = value
        return properties

    @staticmethod
    def _resolve(version: str, properties: Dict[str, str]) -> Optional[str]:
        """
        Resolve ``${prop}`` placeholders from <properties> and ``project.version``.

        Returns None when the version has no placeholder or any placeholder
        is undefined. The component version itself keeps the stripped text.
        """
        names = _PLACEHOLDER.findall(version)
        if not names or any(name not in properties for name in names):
            return None
        return _PLACEHOLDER.sub(lambda m: properties[m.group(1)], version).strip()

    @staticmethod
    def _extract_tag(content: str, tag: str) -> Optional[str]:
        match = re.search(rf"<{tag}>\s*([^<]+?)\s*</{tag}>", content, re.IGNORECASE)
        return match.group(1) if match else None

    def _parse_gradle(self, content: str, kotlin_dsl: bool) -> ParseResult:
        """
        Parse build.gradle or build.gradle.kts.

        Args:
            content: Build script text
            kotlin_dsl: Whether the script is a Kotlin DSL script

        Returns:
            ParseResult with library and plugin components in source order
        """
        # Strip line comments so commented-out declarations are ignored
        content = re.sub(r"(?m)^\s*//.*$", "", content)

        found = []
        for pattern in (GRADLE_STRING_PATTERN, GRADLE_MAP_PATTERN):
            for match in pattern.finditer(content):
                found.append((match.start(), self._gradle_library(match)))

        for match in GRADLE_PLUGIN_PATTERN.finditer(content):
            found.append((match.start(), self._create_component(
                name=match.group("plugin"),
                version=match.group("version"),
                supplier="Gradle Plugin Portal",
                origin="gradle-plugin",
                purl_scheme="gradle",
                metadata={"buildTool": "gradle", "type": "plugin"}
            )))

        found.sort(key=lambda item: item[0])
        return self._result([component for _, component in found], buildTool="gradle", kotlinDsl=kotlin_dsl)

    def _gradle_library(self, match: "re.Match") -> Component:
        group_id = match.group("group")
        artifact_id = match.group("artifact")
        return self._create_component(
            name=f"{group_id}:{artifact_id}",
            version=match.group("version") or UNKNOWN_VERSION,
            metadata={
                "buildTool": "gradle",
                "groupId": group_id,
                "artifactId": artifact_id,
                "configuration": match.group("conf"),
            }
        )
