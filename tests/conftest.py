"""
Shared pytest fixtures for the SBOM manager test suite.
"""

import os

import pytest

from sbom_manager.config import reset_config_manager
from sbom_manager.logging import close_logging
from sbom_manager.models import Component


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Give every test default configuration with no env overrides."""
    for name in list(os.environ):
        if name.startswith("SBOM_") or name.startswith("LOG_"):
            monkeypatch.delenv(name, raising=False)
    reset_config_manager()
    yield
    reset_config_manager()
    close_logging()


@pytest.fixture
def package_json():
    """npm manifest with overlapping dependency sections."""
    return """{
  "name": "web-app",
  "version": "2.0.0",
  "dependencies": {
    "lodash": "^4.17.21",
    "express": "~4.18.2"
  },
  "devDependencies": {
    "jest": "29.7.0"
  }
}"""


@pytest.fixture
def requirements_txt():
    """requirements.txt with pins, ranges, comments and options."""
    return "\n".join([
        "# runtime",
        "Django>=3.2,<4",
        "requests==2.31.0",
        "",
        "-r base.txt",
        "flask",
        "uvicorn[standard]==0.23.2  # server",
    ])


@pytest.fixture
def go_mod():
    """go.mod with a require block and a single-line require."""
    return "\n".join([
        "module github.com/acme/service",
        "",
        "go 1.21",
        "",
        "require (",
        "\tgithub.com/gin-gonic/gin v1.9.1",
        "\tgolang.org/x/text v0.14.0 // indirect",
        ")",
        "",
        "require github.com/google/uuid v1.4.0",
    ])


@pytest.fixture
def cargo_lock():
    """Cargo.lock with two packages and a dependency array."""
    return "\n".join([
        "version = 3",
        "",
        "[[package]]",
        'name = "serde"',
        'version = "1.0.193"',
        'source = "registry+https://github.com/rust-lang/crates.io-index"',
        'checksum = "25dd9975e68d0cb5aa1120c288333fc98731bd1dd12f561e468ea4728c042b89"',
        "dependencies = [",
        ' "serde_derive",',
        "]",
        "",
        "[[package]]",
        'name = "serde_derive"',
        'version = "1.0.193"',
    ])


@pytest.fixture
def components():
    """Small component list spanning licenses and a dependency edge."""
    return [
        Component(
            name="express",
            version="4.18.2",
            origin="npm",
            supplier="npm",
            license="MIT",
            purl="pkg:npm/express@4.18.2",
            dependencies=["body-parser"],
            metadata={"ecosystem": "npm"},
        ),
        Component(
            name="body-parser",
            version="1.20.1",
            origin="npm",
            supplier="npm",
            license="MIT",
            purl="pkg:npm/body-parser@1.20.1",
            checksum_sha256="abc123",
            metadata={"ecosystem": "npm"},
        ),
        Component(
            name="readline-sync",
            version="1.4.10",
            origin="npm",
            license="GPL-3.0",
            purl="pkg:npm/readline-sync@1.4.10",
            metadata={"ecosystem": "npm"},
        ),
    ]


@pytest.fixture
def write_manifest(tmp_path):
    """Write a manifest file into a temporary project directory."""
    def _write(name, content, directory=None):
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target
    return _write
