"""Exceptions raised by heimdall-viewer."""

from typing import Optional


class HeimdallError(Exception):
    """Base exception for heimdall-viewer errors."""


class FormatError(HeimdallError):
    """Document failed structural validation or could not be parsed."""

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class DocumentIOError(HeimdallError):
    """Reading or writing a document file failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class UnresolvedReferenceError(HeimdallError):
    """A component has no bomRef, purl or name to reference it by."""
