"""Data models for CycloneDX SBOM documents and their VEX entries."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_TITLE = "Software Bill of Materials"

# a component is written back under exactly one of these
REF_KEYS = ("bomRef", "bom-ref")


class Severity(Enum):
    """Vulnerability severity levels."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_cvss(cls, score: Optional[float]) -> "Severity":
        """Convert CVSS score to severity level."""
        if score is None or math.isnan(score):
            return cls.UNKNOWN
        if score >= 9.0:
            return cls.CRITICAL
        if score >= 7.0:
            return cls.HIGH
        if score >= 4.0:
            return cls.MEDIUM
        return cls.LOW


def _put(data: dict, key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


@dataclass
class Component:
    """A CycloneDX component.

    Keys this model does not know about are kept in ``extra`` so a
    load/save cycle does not lose data. The reference is written back under
    the key it was read from (``bomRef`` or the standard ``bom-ref``).
    """

    name: Optional[str] = None
    version: Optional[str] = None
    type: Optional[str] = None
    purl: Optional[str] = None
    bom_ref: Optional[str] = None
    dependencies: Optional[list[str]] = None
    extra: dict[str, Any] = field(default_factory=dict)
    ref_key: str = field(default="bomRef", compare=False, repr=False)

    @property
    def dependency_refs(self) -> list[str]:
        """Referenced bomRefs, empty when the component has none."""
        return list(self.dependencies or [])

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {}
        _put(data, "type", self.type)
        _put(data, "name", self.name)
        _put(data, "version", self.version)
        _put(data, "purl", self.purl)
        _put(data, self.ref_key, self.bom_ref)
        _put(data, "dependencies", self.dependencies)
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def merge(self, updated: dict) -> "Component":
        """Return a copy with ``updated`` applied field by field.

        A reference in ``updated`` replaces the current one whichever key
        spelling either side uses.
        """
        data = self.to_dict()
        if any(key in updated for key in REF_KEYS):
            for key in REF_KEYS:
                data.pop(key, None)
        return Component.from_dict({**data, **updated})

    @classmethod
    def from_dict(cls, data: dict) -> "Component":
        """Create from dictionary."""
        extra = dict(data)
        ref_key = "bomRef"
        if "bomRef" in extra:
            bom_ref = extra.pop("bomRef")
            extra.pop("bom-ref", None)
        elif "bom-ref" in extra:
            bom_ref = extra.pop("bom-ref")
            ref_key = "bom-ref"
        else:
            bom_ref = None

        dependencies = extra.pop("dependencies", None)
        if dependencies is not None and not isinstance(dependencies, list):
            extra["dependencies"] = dependencies
            dependencies = None

        return cls(
            name=extra.pop("name", None),
            version=extra.pop("version", None),
            type=extra.pop("type", None),
            purl=extra.pop("purl", None),
            bom_ref=bom_ref,
            dependencies=dependencies,
            extra=extra,
            ref_key=ref_key,
        )


@dataclass
class Analysis:
    """VEX analysis of a vulnerability."""

    state: Optional[str] = None
    justification: Optional[str] = None
    response: Optional[list[str]] = None
    detail: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {}
        _put(data, "state", self.state)
        _put(data, "justification", self.justification)
        _put(data, "response", self.response)
        _put(data, "detail", self.detail)
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Analysis":
        """Create from dictionary."""
        extra = dict(data)
        return cls(
            state=extra.pop("state", None),
            justification=extra.pop("justification", None),
            response=extra.pop("response", None),
            detail=extra.pop("detail", None),
            extra=extra,
        )


@dataclass
class Affect:
    """An ``affects`` entry pointing at a component reference."""

    ref: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {}
        _put(data, "ref", self.ref)
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Affect":
        """Create from dictionary."""
        extra = dict(data)
        return cls(ref=extra.pop("ref", None), extra=extra)


# Keys stored verbatim on Vulnerability, in output order.
_VULNERABILITY_PLAIN_FIELDS = (
    "id",
    "source",
    "description",
    "detail",
    "recommendation",
    "created",
    "published",
    "updated",
    "credits",
    "cwes",
    "advisories",
    "references",
)


@dataclass
class Vulnerability:
    """A VEX entry of the document."""

    id: Optional[str] = None
    source: Any = None
    description: Optional[str] = None
    detail: Optional[str] = None
    recommendation: Optional[str] = None
    created: Optional[str] = None
    published: Optional[str] = None
    updated: Optional[str] = None
    analysis: Optional[Analysis] = None
    credits: Any = None
    cwes: Optional[list] = None
    advisories: Optional[list] = None
    references: Optional[list] = None
    ratings: Optional[list[dict]] = None
    affects: Optional[list[Affect]] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def affect_refs(self) -> list[str]:
        """References listed in ``affects``, skipping entries without one."""
        return [a.ref for a in self.affects or [] if a.ref is not None]

    @property
    def average_rating(self) -> float:
        """Mean of the numeric rating scores, NaN when there are none."""
        scores = [
            r["score"]
            for r in self.ratings or []
            if isinstance(r, dict)
            and isinstance(r.get("score"), (int, float))
            and not isinstance(r.get("score"), bool)
        ]
        if not scores:
            return math.nan
        return sum(scores) / len(scores)

    @property
    def severity(self) -> Severity:
        """Severity derived from the average rating."""
        return Severity.from_cvss(self.average_rating)

    @property
    def state(self) -> Optional[str]:
        """Analysis state, if any."""
        return self.analysis.state if self.analysis else None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {}
        for key in _VULNERABILITY_PLAIN_FIELDS:
            _put(data, key, getattr(self, key))
        if self.analysis is not None:
            data["analysis"] = self.analysis.to_dict()
        _put(data, "ratings", self.ratings)
        if self.affects is not None:
            data["affects"] = [a.to_dict() for a in self.affects]
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def merge(self, updated: dict) -> "Vulnerability":
        """Return a copy with ``updated`` applied field by field."""
        return Vulnerability.from_dict({**self.to_dict(), **updated})

    @classmethod
    def from_dict(cls, data: dict) -> "Vulnerability":
        """Create from dictionary.

        ``analysis``, ``ratings`` and ``affects`` are only modelled when they
        have the CycloneDX shape; anything else is kept untouched in
        ``extra``.
        """
        extra = dict(data)
        values = {key: extra.pop(key, None) for key in _VULNERABILITY_PLAIN_FIELDS}

        analysis = None
        if isinstance(extra.get("analysis"), dict):
            analysis = Analysis.from_dict(extra.pop("analysis"))

        ratings = None
        if isinstance(extra.get("ratings"), list):
            ratings = extra.pop("ratings")

        affects = None
        if isinstance(extra.get("affects"), list):
            affects = [
                Affect.from_dict(a) if isinstance(a, dict) else Affect(ref=str(a))
                for a in extra.pop("affects")
            ]

        return cls(
            analysis=analysis,
            ratings=ratings,
            affects=affects,
            extra=extra,
            **values,
        )


@dataclass
class Document:
    """A loaded CycloneDX document."""

    bom_format: str
    spec_version: str
    metadata: Optional[dict] = None
    components: list[Component] = field(default_factory=list)
    vulnerabilities: list[Vulnerability] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        """Root application name, or a generic label."""
        root = (self.metadata or {}).get("component")
        if isinstance(root, dict) and root.get("name"):
            return root["name"]
        return DEFAULT_TITLE

    @property
    def dependency_graph(self) -> dict[str, list[str]]:
        """Top-level CycloneDX ``dependencies`` section as ref -> dependsOn."""
        graph: dict[str, list[str]] = {}
        for entry in self.extra.get("dependencies") or []:
            if isinstance(entry, dict) and entry.get("ref"):
                graph[entry["ref"]] = list(entry.get("dependsOn") or [])
        return graph

    def dependencies_of(self, component: Component) -> list[str]:
        """Dependency refs of a component.

        Inline ``dependencies`` win; otherwise the top-level dependency graph
        is consulted.
        """
        if component.dependencies:
            return component.dependency_refs
        if component.bom_ref:
            return self.dependency_graph.get(component.bom_ref, [])
        return []

    def find_component(self, bom_ref: Optional[str]) -> Optional[Component]:
        """Find a component by bomRef."""
        if bom_ref is None:
            return None
        for component in self.components:
            if component.bom_ref == bom_ref:
                return component
        return None

    def find_vulnerability(self, vuln_id: Optional[str]) -> Optional[Vulnerability]:
        """Find a vulnerability by id."""
        if vuln_id is None:
            return None
        for vuln in self.vulnerabilities:
            if vuln.id == vuln_id:
                return vuln
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data: dict[str, Any] = {
            "bomFormat": self.bom_format,
            "specVersion": self.spec_version,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        _put(data, "metadata", self.metadata)
        data["components"] = [c.to_dict() for c in self.components]
        data["vulnerabilities"] = [v.to_dict() for v in self.vulnerabilities]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Create from dictionary."""
        extra = dict(data)
        bom_format = extra.pop("bomFormat")
        spec_version = extra.pop("specVersion")
        metadata = extra.pop("metadata", None)
        components = extra.pop("components", None) or []
        vulnerabilities = extra.pop("vulnerabilities", None) or []
        return cls(
            bom_format=bom_format,
            spec_version=spec_version,
            metadata=metadata,
            components=[Component.from_dict(c) for c in components if isinstance(c, dict)],
            vulnerabilities=[
                Vulnerability.from_dict(v) for v in vulnerabilities if isinstance(v, dict)
            ],
            extra=extra,
        )
