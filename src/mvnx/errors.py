"""Exceptions raised while building and reading MVNX documents."""

from __future__ import annotations


class MvnxError(ValueError):
    """Base class for every fatal MVNX parsing condition."""


class StructuralError(MvnxError):
    """The event stream or the tree violates a structural invariant."""


class UnknownVersionError(MvnxError):
    """The document declares a format revision with no mapping table."""


class ExtractionError(MvnxError):
    """Frame extraction was asked to do something it cannot do safely."""
