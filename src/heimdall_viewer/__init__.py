"""heimdall-viewer - Visual explorer for CycloneDX SBOM and VEX documents."""

__version__ = "0.1.0"

from heimdall_viewer.loader import DocumentLoader, load, read_document, write_document
from heimdall_viewer.models import Component, Document, Vulnerability

__all__ = [
    "__version__",
    "DocumentLoader",
    "load",
    "read_document",
    "write_document",
    "Component",
    "Document",
    "Vulnerability",
]
