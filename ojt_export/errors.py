"""Errors module.

This module belongs to `ojt_export` in the ojt-report-export codebase.
"""

from __future__ import annotations


class ReportExportError(RuntimeError):
    pass


class InvalidInputError(ReportExportError):
    """Request body has no `reports` list."""


class ProcessingError(ReportExportError):
    """Unrecovered failure while building or serializing the document."""


class ImageFetchError(ReportExportError):
    """Remote image could not be fetched; never escapes the tree builder."""
