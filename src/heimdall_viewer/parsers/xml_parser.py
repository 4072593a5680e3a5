"""Best-effort CycloneDX XML parser.

Only a subset of the schema is extracted; everything else in the file is
ignored. Missing sub-elements produce absent fields, never errors.

Extracted subset:

* ``bom``: ``specVersion`` from the namespace (``.../schema/bom/1.5``),
  else the ``specVersion`` attribute, else ``1.4``; ``serialNumber`` and
  ``version`` attributes.
* ``metadata``: ``timestamp``, ``tools/tool`` (vendor, name, version) and
  the root ``component``.
* ``components/component``: ``type``, ``bom-ref``, ``name``, ``version``,
  ``purl``.
* ``dependencies/dependency``: nested ``dependency/@ref`` entries become
  the owning component's ``dependencies``.
* ``vulnerabilities/vulnerability``: ``bom-ref``, ``id``, ``source``
  (name, url), ``description``, ``detail``, ``recommendation``,
  ``created``, ``published``, ``updated``, ``cwes/cwe``,
  ``ratings/rating`` (score, severity, method), ``analysis`` (state,
  justification, ``responses/response``, detail) and
  ``affects/target/ref``.
"""

import re
import xml.etree.ElementTree as ET
from typing import Any, Optional

from heimdall_viewer.errors import FormatError
from heimdall_viewer.parsers.base import DocumentParser

DEFAULT_SPEC_VERSION = "1.4"


class XMLDocumentParser(DocumentParser):
    """Parser for the CycloneDX XML subset."""

    name = "xml"

    NAMESPACE_PATTERN = re.compile(r'\sxmlns="([^"]+)"')
    SPEC_VERSION_PATTERN = re.compile(r"/bom/(\d+(?:\.\d+)*)$")

    def parse(self, content: str) -> dict[str, Any]:
        """Parse CycloneDX XML content."""
        namespace_match = self.NAMESPACE_PATTERN.search(content)
        namespace = namespace_match.group(1) if namespace_match else None

        try:
            # Remove the default namespace for easier parsing
            content_clean = self.NAMESPACE_PATTERN.sub("", content, count=1)
            root = ET.fromstring(content_clean)
        except ET.ParseError as e:
            raise FormatError(f"Not valid XML: {e}") from e

        bom = root if root.tag == "bom" else root.find(".//bom")
        if bom is None:
            raise FormatError("No bom element found in XML")

        data: dict[str, Any] = {
            "bomFormat": bom.get("bomFormat") or "CycloneDX",
            "specVersion": self._spec_version(bom, namespace),
        }
        if bom.get("serialNumber"):
            data["serialNumber"] = bom.get("serialNumber")
        if bom.get("version"):
            data["version"] = self._to_number(bom.get("version"))

        metadata = self._parse_metadata(bom.find("metadata"))
        if metadata:
            data["metadata"] = metadata

        dependency_graph = self._parse_dependencies(bom.find("dependencies"))
        data["components"] = [
            self._parse_component(elem, dependency_graph)
            for elem in bom.findall("components/component")
        ]
        data["vulnerabilities"] = [
            self._parse_vulnerability(elem)
            for elem in bom.findall("vulnerabilities/vulnerability")
        ]
        return data

    def _spec_version(self, bom: ET.Element, namespace: Optional[str]) -> str:
        if namespace:
            match = self.SPEC_VERSION_PATTERN.search(namespace)
            if match:
                return match.group(1)
        return bom.get("specVersion") or DEFAULT_SPEC_VERSION

    def _parse_metadata(self, elem: Optional[ET.Element]) -> dict[str, Any]:
        if elem is None:
            return {}

        metadata: dict[str, Any] = {}
        timestamp = self._get_text(elem, "timestamp")
        if timestamp:
            metadata["timestamp"] = timestamp

        tools = []
        for tool in elem.iter("tool"):
            tools.append(
                self._compact(
                    {
                        "vendor": self._get_text(tool, "vendor"),
                        "name": self._get_text(tool, "name"),
                        "version": self._get_text(tool, "version"),
                    }
                )
            )
        if tools:
            metadata["tools"] = tools

        root_component = elem.find("component")
        if root_component is not None:
            metadata["component"] = self._parse_component(root_component, {})

        return metadata

    def _parse_dependencies(self, elem: Optional[ET.Element]) -> dict[str, list[str]]:
        graph: dict[str, list[str]] = {}
        if elem is None:
            return graph
        for dep in elem.findall("dependency"):
            ref = dep.get("ref")
            if not ref:
                continue
            children = [child.get("ref") for child in dep.findall("dependency")]
            graph[ref] = [c for c in children if c]
        return graph

    def _parse_component(
        self, elem: ET.Element, dependency_graph: dict[str, list[str]]
    ) -> dict[str, Any]:
        component = self._compact(
            {
                "type": elem.get("type"),
                "bom-ref": elem.get("bom-ref"),
                "name": self._get_text(elem, "name"),
                "version": self._get_text(elem, "version"),
                "purl": self._get_text(elem, "purl"),
            }
        )
        depends_on = dependency_graph.get(elem.get("bom-ref") or "")
        if depends_on:
            component["dependencies"] = depends_on
        return component

    def _parse_vulnerability(self, elem: ET.Element) -> dict[str, Any]:
        vuln = self._compact(
            {
                "bom-ref": elem.get("bom-ref"),
                "id": self._get_text(elem, "id"),
                "description": self._get_text(elem, "description"),
                "detail": self._get_text(elem, "detail"),
                "recommendation": self._get_text(elem, "recommendation"),
                "created": self._get_text(elem, "created"),
                "published": self._get_text(elem, "published"),
                "updated": self._get_text(elem, "updated"),
            }
        )

        source = elem.find("source")
        if source is not None:
            vuln["source"] = self._compact(
                {"name": self._get_text(source, "name"), "url": self._get_text(source, "url")}
            )

        cwes = [self._to_number(c.text.strip()) for c in elem.findall("cwes/cwe") if c.text]
        if cwes:
            vuln["cwes"] = cwes

        ratings = []
        for rating in elem.findall("ratings/rating"):
            entry: dict[str, Any] = {}
            score = self._get_text(rating, "score")
            if score is not None:
                try:
                    entry["score"] = float(score)
                except ValueError:
                    pass
            entry.update(
                self._compact(
                    {
                        "severity": self._get_text(rating, "severity"),
                        "method": self._get_text(rating, "method"),
                    }
                )
            )
            ratings.append(entry)
        if ratings:
            vuln["ratings"] = ratings

        analysis = elem.find("analysis")
        if analysis is not None:
            parsed = self._compact(
                {
                    "state": self._get_text(analysis, "state"),
                    "justification": self._get_text(analysis, "justification"),
                    "detail": self._get_text(analysis, "detail"),
                }
            )
            responses = [r.text.strip() for r in analysis.findall("responses/response") if r.text]
            if responses:
                parsed["response"] = responses
            vuln["analysis"] = parsed

        affects = [
            {"ref": ref}
            for ref in (self._get_text(t, "ref") for t in elem.findall("affects/target"))
            if ref
        ]
        if affects:
            vuln["affects"] = affects

        return vuln

    def _get_text(self, elem: ET.Element, tag: str) -> Optional[str]:
        """Get text content of a child element."""
        child = elem.find(tag)
        if child is not None and child.text:
            return child.text.strip()
        return None

    def _compact(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in values.items() if v is not None}

    def _to_number(self, value: str) -> Any:
        try:
            return int(value)
        except ValueError:
            return value
