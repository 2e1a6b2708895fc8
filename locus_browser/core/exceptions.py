from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class LocusBrowserError(Exception):
    """Base exception for all locus_browser errors"""
    pass


class ConfigurationError(LocusBrowserError):
    """
    Unknown transform / source / layer / layout type, or a structurally
    invalid layout. Raised synchronously during setup and not recoverable.
    """
    pass


class RequestError(LocusBrowserError):
    """A data source request failed (non-success status, transport error, missing inputs)"""
    pass


class ParseError(LocusBrowserError):
    """A source response could not be turned into records"""

    def __init__(self, message: str, field: Optional[str] = None, outname: Optional[str] = None):
        self.field = field
        self.outname = outname
        super().__init__(message)

    @classmethod
    def missing_field(cls, field: str, outname: str) -> "ParseError":
        return cls(f"field {field} not found in response for {outname}", field=field, outname=outname)


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
