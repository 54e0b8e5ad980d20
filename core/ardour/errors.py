"""core/ardour/errors.py — Exception taxonomy for the index remap engine.

Two families:

Local (recovered per reference, surfaced only in the summary):
    PluginNotFound, AmbiguousLabel, LabelNotFound

Fatal (abort the run before or instead of any destructive write):
    ParseError, BackupWriteError, PatchWriteError, CatalogError
"""

from __future__ import annotations


class RemapError(Exception):
    """Base class for every error raised by the remap engine."""


class ParseError(RemapError):
    """The input is not a well-formed session document."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class PluginNotFound(RemapError):
    """A plugin URI is not installed or not discoverable."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"could not find plugin: {uri}")


class AmbiguousLabel(RemapError):
    """Two or more current parameters share the stored label."""

    def __init__(self, uri: str, label: str) -> None:
        self.uri = uri
        self.label = label
        super().__init__(f"label {label!r} is not unique in {uri}")


class LabelNotFound(RemapError):
    """The stored label is missing or matches no current parameter."""

    def __init__(self, uri: str, label: str | None) -> None:
        self.uri = uri
        self.label = label
        super().__init__(f"no parameter labelled {label!r} in {uri}")


class BackupWriteError(RemapError):
    """The backup could not be created (already exists, or OS error)."""


class PatchWriteError(RemapError):
    """The patched session could not be written."""


class CatalogError(RemapError):
    """A parameter catalog file is unreadable or invalid."""
