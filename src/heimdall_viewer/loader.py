"""Loading and saving CycloneDX documents."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from heimdall_viewer.errors import DocumentIOError, FormatError
from heimdall_viewer.models import Document
from heimdall_viewer.parsers import DocumentParser, JSONDocumentParser, XMLDocumentParser
from heimdall_viewer.resolver import normalize_bom_refs

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("bomFormat", "specVersion")


class DocumentLoader:
    """Parse, validate and serialize CycloneDX documents."""

    def __init__(
        self,
        parsers: Optional[list[DocumentParser]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the loader.

        Args:
            parsers: Parsers to try in order. Defaults to JSON, then XML.
            clock: Time source for fallback bomRef generation.
        """
        self.parsers = parsers or [JSONDocumentParser(), XMLDocumentParser()]
        self.clock = clock

    def parse(self, content: str) -> dict[str, Any]:
        """Parse raw content with the first parser that accepts it."""
        errors = []
        for parser in self.parsers:
            try:
                data = parser.parse(content)
                logger.debug(f"Parsed document as {parser.name}")
                return data
            except FormatError as e:
                logger.debug(f"{parser.name} parsing failed: {e}")
                errors.append(f"{parser.name}: {e}")
        raise FormatError("Content is not a CycloneDX document (" + "; ".join(errors) + ")")

    def validate(self, data: dict[str, Any]) -> None:
        """Check the fields every CycloneDX document must carry."""
        missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise FormatError(
                f"Invalid CycloneDX SBOM format - missing {', '.join(missing)}",
                missing_fields=missing,
            )

    def load(self, content: str) -> Document:
        """Load a document from raw text.

        Args:
            content: JSON or XML document text.

        Returns:
            The normalized Document.

        Raises:
            FormatError: If the content cannot be parsed or is not valid.
        """
        data = self.parse(content)
        self.validate(data)

        document = Document.from_dict(data)
        normalize_bom_refs(document, clock=self.clock)

        logger.info(
            f"Loaded {document.bom_format} {document.spec_version} document with "
            f"{len(document.components)} components and "
            f"{len(document.vulnerabilities)} vulnerabilities"
        )
        return document

    def merge(self, document: Document, updated: dict[str, Any]) -> Document:
        """Apply document-level edits, returning a new normalized Document.

        Raises:
            FormatError: If the merged document is no longer valid.
        """
        data = {**document.to_dict(), **updated}
        self.validate(data)

        merged = Document.from_dict(data)
        normalize_bom_refs(merged, clock=self.clock)
        return merged

    def dumps(self, document: Document) -> str:
        """Serialize a document as pretty-printed JSON."""
        return json.dumps(document.to_dict(), indent=2)

    def read(self, path: Path) -> Document:
        """Read and load a document file."""
        return self.load(read_text(path))

    def write(self, document: Document, path: Path) -> None:
        """Write a document to ``path`` as JSON."""
        content = self.dumps(document)
        try:
            Path(path).write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save file {path}: {e}")
            raise DocumentIOError(f"Failed to save file: {e}", path=str(path)) from e
        logger.info(f"Saved document to {path}")


def read_text(path: Path) -> str:
    """Read a document file, wrapping OS errors."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read file {path}: {e}")
        raise DocumentIOError(f"Failed to read file: {e}", path=str(path)) from e


_default_loader = DocumentLoader()


def load(content: str) -> Document:
    """Load a document from raw text with the default loader."""
    return _default_loader.load(content)


def dumps(document: Document) -> str:
    """Serialize a document with the default loader."""
    return _default_loader.dumps(document)


def read_document(path: Path) -> Document:
    """Read a document file with the default loader."""
    return _default_loader.read(path)


def write_document(document: Document, path: Path) -> None:
    """Write a document file with the default loader."""
    _default_loader.write(document, path)
