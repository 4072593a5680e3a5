"""CycloneDX document parsers."""

from heimdall_viewer.parsers.base import DocumentParser
from heimdall_viewer.parsers.json_parser import JSONDocumentParser
from heimdall_viewer.parsers.xml_parser import XMLDocumentParser

__all__ = [
    "DocumentParser",
    "JSONDocumentParser",
    "XMLDocumentParser",
]
