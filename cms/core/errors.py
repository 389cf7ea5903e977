"""Exception types raised by the CMS core.

Route handlers never see these directly: the dispatcher and the error
handlers translate them into the generic error page or a log line.
"""

from __future__ import annotations


class CMSError(Exception):
    """Base class for all CMS errors."""


class AssetPathError(CMSError):
    """A requested asset path resolves outside the asset root."""

    def __init__(self, path: str) -> None:
        super().__init__(f"asset path escapes root: {path!r}")
        self.path = path


class TemplateLoadError(CMSError):
    """The template tree could not be scanned or compiled.

    Attributes:
        path: Template file that failed, when known.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message if path is None else f"{path}: {message}")
        self.path = path


class TemplateNotFoundError(CMSError):
    """Neither the requested template nor the fallback template exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"template not found: {name}")
        self.name = name
