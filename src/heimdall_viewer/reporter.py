"""Document summary reports for the command line."""

import io
import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from heimdall_viewer.models import Document, Severity, Vulnerability
from heimdall_viewer.resolver import find_affecting_vulnerabilities, find_orphan_vulnerabilities


@dataclass
class DocumentSummary:
    """Counts and listings for one document."""

    title: str
    bom_format: str
    spec_version: str
    components: list[dict[str, Any]] = field(default_factory=list)
    vulnerabilities: list[dict[str, Any]] = field(default_factory=list)
    orphans: list[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        orphans = find_orphan_vulnerabilities(document)
        orphan_ids = {id(v) for v in orphans}
        return cls(
            title=document.title,
            bom_format=document.bom_format,
            spec_version=document.spec_version,
            components=[
                {
                    "bomRef": c.bom_ref,
                    "name": c.name,
                    "version": c.version,
                    "type": c.type,
                    "vulnerabilities": len(find_affecting_vulnerabilities(c, document)),
                    "dependencies": len(document.dependencies_of(c)),
                }
                for c in document.components
            ],
            vulnerabilities=[_vulnerability_row(v, id(v) in orphan_ids) for v in document.vulnerabilities],
            orphans=[v.id or "Unknown" for v in orphans],
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "bomFormat": self.bom_format,
            "specVersion": self.spec_version,
            "componentCount": len(self.components),
            "vulnerabilityCount": len(self.vulnerabilities),
            "orphanCount": len(self.orphans),
            "components": self.components,
            "vulnerabilities": self.vulnerabilities,
            "orphans": self.orphans,
        }


def _vulnerability_row(vuln: Vulnerability, orphan: bool) -> dict[str, Any]:
    average = vuln.average_rating
    return {
        "id": vuln.id,
        "state": vuln.state,
        "severity": vuln.severity.value,
        "averageRating": None if math.isnan(average) else round(average, 2),
        "affects": vuln.affect_refs,
        "orphan": orphan,
    }


class ReportGenerator(ABC):
    """Abstract base class for report generators."""

    @abstractmethod
    def generate(self, summary: DocumentSummary) -> str:
        """Generate a report from a document summary.

        Args:
            summary: The summary to report.

        Returns:
            Formatted report as a string.
        """
        pass


class JSONReporter(ReportGenerator):
    """Generate JSON format reports."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def generate(self, summary: DocumentSummary) -> str:
        return json.dumps(summary.to_dict(), indent=self.indent)


class TableReporter(ReportGenerator):
    """Generate rich table format reports for CLI output."""

    SEVERITY_COLORS = {
        Severity.CRITICAL: "red bold",
        Severity.HIGH: "red",
        Severity.MEDIUM: "yellow",
        Severity.LOW: "blue",
        Severity.UNKNOWN: "dim",
    }

    def __init__(self) -> None:
        # recorded only; export_text() is the sole output
        self.console = Console(file=io.StringIO(), record=True, force_terminal=True, width=120)

    def generate(self, summary: DocumentSummary) -> str:
        self._render_summary(summary)

        if summary.components:
            self._render_components(summary.components)

        if summary.vulnerabilities:
            self._render_vulnerabilities(summary.vulnerabilities)

        if summary.orphans:
            self._render_orphans(summary.orphans)

        return self.console.export_text()

    def _render_summary(self, summary: DocumentSummary) -> None:
        text = Text()
        text.append(f"Format: {summary.bom_format} v{summary.spec_version}\n")
        text.append(f"Components: {len(summary.components)}\n")
        text.append(f"VEX: {len(summary.vulnerabilities)}\n")
        text.append(f"Orphan VEX: {len(summary.orphans)}")

        self.console.print(Panel(text, title=summary.title, border_style="blue"))

    def _render_components(self, components: list[dict[str, Any]]) -> None:
        table = Table(title="Components", show_header=True, header_style="bold cyan")

        table.add_column("Name", width=30)
        table.add_column("Version", width=12)
        table.add_column("Type", width=12)
        table.add_column("VEX", width=5)
        table.add_column("Deps", width=5)

        for component in components:
            table.add_row(
                component["name"] or component["bomRef"] or "Unknown",
                component["version"] or "No version",
                component["type"] or "Unknown type",
                str(component["vulnerabilities"]),
                str(component["dependencies"]),
            )

        self.console.print(table)

    def _render_vulnerabilities(self, vulns: list[dict[str, Any]]) -> None:
        table = Table(title="VEX", show_header=True, header_style="bold cyan")

        table.add_column("Severity", width=10)
        table.add_column("ID", width=22)
        table.add_column("State", width=16)
        table.add_column("Rating", width=8)
        table.add_column("Affects", width=30)

        for vuln in vulns:
            severity = Severity(vuln["severity"])
            rating = vuln["averageRating"]
            table.add_row(
                Text(severity.value, style=self.SEVERITY_COLORS[severity]),
                vuln["id"] or "Unknown",
                vuln["state"] or "No State",
                f"{rating:.2f}" if rating is not None else "N/A",
                ", ".join(vuln["affects"]) or "-",
            )

        self.console.print(table)

    def _render_orphans(self, orphans: list[str]) -> None:
        text = Text()
        for vuln_id in orphans:
            text.append(f"• {vuln_id}\n", style="yellow")

        panel = Panel(
            text,
            title="Orphan VEX (no matching component)",
            border_style="yellow",
        )
        self.console.print(panel)


def create_reporter(format: str) -> ReportGenerator:
    """Create a reporter for the specified format.

    Args:
        format: Output format ('json' or 'table').

    Returns:
        Appropriate ReportGenerator instance.

    Raises:
        ValueError: If format is not supported.
    """
    if format == "json":
        return JSONReporter()
    elif format == "table":
        return TableReporter()
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'json' or 'table'.")
