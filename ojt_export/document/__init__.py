from __future__ import annotations

from typing import Any

from ojt_export.document.report_docx import DOCX_MIME_TYPE, ReportDocxExporter
from ojt_export.document.report_tree import ReportTreeBuilder, validate_reports
from ojt_export.images.fetcher import ImageFetcher, fetcher_from_env


def transform(reports: Any, *, fetcher: ImageFetcher | None = None) -> bytes:
    """Build and serialize the export document for a list of report records."""
    reports = validate_reports({"reports": reports})
    if fetcher is None:
        with fetcher_from_env() as owned:
            tree = ReportTreeBuilder(owned).build(reports)
    else:
        tree = ReportTreeBuilder(fetcher).build(reports)
    return ReportDocxExporter().build(tree)


__all__ = ["DOCX_MIME_TYPE", "ReportDocxExporter", "ReportTreeBuilder", "transform", "validate_reports"]
