"""Shared fixtures for heimdall-viewer tests."""

import json

import pytest

from heimdall_viewer.loader import DocumentLoader


@pytest.fixture
def sbom_data():
    """A small CycloneDX document with one dependency edge and two VEX entries."""
    return {
        "bomFormat": "CycloneDX",
        "specVersion": "1.4",
        "serialNumber": "urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79",
        "metadata": {"component": {"name": "webapp", "version": "2.0.0"}},
        "components": [
            {
                "type": "application",
                "name": "webapp-core",
                "version": "2.0.0",
                "bomRef": "core@2.0.0",
                "dependencies": ["requests@2.28.0"],
            },
            {
                "type": "library",
                "name": "requests",
                "version": "2.28.0",
                "purl": "pkg:pypi/requests@2.28.0",
                "bomRef": "requests@2.28.0",
            },
        ],
        "vulnerabilities": [
            {
                "id": "CVE-2023-32681",
                "ratings": [{"score": 6.1}, {"score": 5.0}],
                "analysis": {"state": "exploitable"},
                "affects": [{"ref": "requests@2.28.0"}],
            },
            {
                "id": "CVE-2099-0001",
                "affects": [{"ref": "missing@1.0"}],
            },
        ],
    }


@pytest.fixture
def sbom_file(tmp_path, sbom_data):
    """Write the sample document to a JSON file."""
    path = tmp_path / "bom.json"
    path.write_text(json.dumps(sbom_data), encoding="utf-8")
    return path


@pytest.fixture
def fixed_clock():
    """A clock frozen at 2024-01-02T03:04:05Z."""
    return lambda: 1704164645.0


@pytest.fixture
def loader(fixed_clock):
    """Loader with a deterministic clock."""
    return DocumentLoader(clock=fixed_clock)


@pytest.fixture
def document(loader, sbom_data):
    """The sample document, loaded."""
    return loader.load(json.dumps(sbom_data))
