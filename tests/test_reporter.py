"""Tests for summary report generators."""

import json

import pytest

from heimdall_viewer.reporter import (
    DocumentSummary,
    JSONReporter,
    TableReporter,
    create_reporter,
)


@pytest.fixture
def summary(document):
    """Summary of the sample document."""
    return DocumentSummary.from_document(document)


class TestDocumentSummary:
    """Tests for DocumentSummary."""

    def test_counts(self, summary):
        data = summary.to_dict()

        assert data["title"] == "webapp"
        assert data["componentCount"] == 2
        assert data["vulnerabilityCount"] == 2
        assert data["orphans"] == ["CVE-2099-0001"]

    def test_component_rows(self, summary):
        core, requests = summary.components

        assert core["dependencies"] == 1
        assert core["vulnerabilities"] == 0
        assert requests["vulnerabilities"] == 1

    def test_vulnerability_rows(self, summary):
        attached, orphan = summary.vulnerabilities

        assert attached["averageRating"] == 5.55
        assert attached["severity"] == "MEDIUM"
        assert not attached["orphan"]
        assert orphan["averageRating"] is None
        assert orphan["severity"] == "UNKNOWN"
        assert orphan["orphan"]


class TestJSONReporter:
    """Tests for JSON reporter."""

    def test_generate(self, summary):
        data = json.loads(JSONReporter().generate(summary))

        assert data["bomFormat"] == "CycloneDX"
        assert data["specVersion"] == "1.4"
        assert len(data["components"]) == 2


class TestTableReporter:
    """Tests for table reporter."""

    def test_generate(self, summary):
        output = TableReporter().generate(summary)

        assert "webapp" in output
        assert "requests" in output
        assert "CVE-2023-32681" in output
        assert "Orphan VEX" in output
        assert output.count("Orphan VEX (no matching component)") == 1

    def test_no_orphan_panel_without_orphans(self, summary):
        summary.orphans = []
        output = TableReporter().generate(summary)

        assert "no matching component" not in output

    def test_generate_writes_nothing_to_stdout(self, summary, capsys):
        TableReporter().generate(summary)
        assert capsys.readouterr().out == ""


class TestCreateReporter:
    """Tests for create_reporter factory."""

    def test_formats(self):
        assert isinstance(create_reporter("json"), JSONReporter)
        assert isinstance(create_reporter("table"), TableReporter)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            create_reporter("sarif")
