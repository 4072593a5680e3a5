"""CycloneDX JSON parser."""

import json
from typing import Any

from heimdall_viewer.errors import FormatError
from heimdall_viewer.parsers.base import DocumentParser


class JSONDocumentParser(DocumentParser):
    """Parser for CycloneDX JSON documents."""

    name = "json"

    def parse(self, content: str) -> dict[str, Any]:
        """Parse CycloneDX JSON content."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise FormatError(f"Not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise FormatError("JSON document must be an object")

        return data
