"""Base class for CycloneDX document parsers."""

from abc import ABC, abstractmethod
from typing import Any


class DocumentParser(ABC):
    """Abstract base class for document parsers.

    A parser turns raw file content into the CycloneDX JSON object shape.
    Validation of required fields is left to the loader so every parser is
    held to the same rules.
    """

    name: str = "document"

    @abstractmethod
    def parse(self, content: str) -> dict[str, Any]:
        """Parse document content.

        Args:
            content: The raw file content.

        Returns:
            The document as a CycloneDX JSON-shaped dictionary.

        Raises:
            FormatError: If the content is not in this parser's format.
        """
        pass
