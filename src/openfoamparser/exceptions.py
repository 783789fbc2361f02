"""
Error taxonomy for the OpenFOAM reader.

Every decoding stage raises one of these immediately; nothing is retried or
recovered internally. I/O failures are plain ``OSError`` instances coming from
the byte source / directory lister and are never wrapped.
"""

from typing import Optional


class FoamError(Exception):
    """Base class for all reader errors."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class LexError(FoamError):
    """A byte sequence matches no token class."""

    def __init__(self, message: str, offset: int, source: Optional[str] = None):
        self.offset = offset
        super().__init__(f"{message} (at byte {offset})", source)


class ParseError(FoamError):
    """Grammar violation in the dictionary format."""

    def __init__(
        self,
        message: str,
        offset: int,
        expected: Optional[str] = None,
        found: Optional[str] = None,
        source: Optional[str] = None,
    ):
        self.offset = offset
        self.expected = expected
        self.found = found
        detail = message
        if expected is not None:
            detail += f": expected {expected}, found {found!r}"
        super().__init__(f"{detail} (at byte {offset})", source)


class UnsupportedFormat(FoamError):
    """The file header declares a format this reader does not decode (binary)."""

    def __init__(self, fmt: str, source: Optional[str] = None):
        self.format = fmt
        super().__init__(f"unsupported file format '{fmt}', only ascii is supported", source)


class SizeMismatch(FoamError):
    """Declared list length and actual element count differ."""

    def __init__(self, message: str, expected: int, actual: int, source: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{message}: expected {expected}, got {actual}", source)


class StructuralError(FoamError):
    """Mesh/boundary adjacency inconsistency or an unanswerable time query."""

    def __init__(self, message: str, patch: Optional[str] = None, source: Optional[str] = None):
        self.patch = patch
        super().__init__(message, source)


class FieldError(FoamError):
    """Boundary coverage mismatch or unknown element class in a field file."""

    def __init__(self, message: str, patch: Optional[str] = None, source: Optional[str] = None):
        self.patch = patch
        super().__init__(message, source)

