"""Export Service module.

This module belongs to `ojt_export.web.services` in the ojt-report-export codebase.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi.responses import StreamingResponse

from ojt_export.document.report_docx import DOCX_MIME_TYPE, ReportDocxExporter
from ojt_export.document.report_tree import ReportTreeBuilder, validate_reports
from ojt_export.errors import ProcessingError, ReportExportError
from ojt_export.images.fetcher import ImageFetcher, fetcher_from_env

logger = logging.getLogger(__name__)


def export_file_name(now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).date().isoformat()
    return f"OJT_Reports_{stamp}.docx"


class ExportService:
    def __init__(self, fetcher_factory: Callable[[], ImageFetcher] = fetcher_from_env) -> None:
        self.fetcher_factory = fetcher_factory
        self.exporter = ReportDocxExporter()

    def export_reports(self, payload: Any) -> StreamingResponse:
        reports = validate_reports(payload)
        logger.info("[export] building document for %d report(s)", len(reports))
        try:
            with self.fetcher_factory() as fetcher:
                tree = ReportTreeBuilder(fetcher).build(reports)
            data = self.exporter.build(tree)
        except ReportExportError:
            logger.exception("[export] document generation failed")
            raise
        except Exception as exc:
            logger.exception("[export] document generation failed")
            raise ProcessingError(str(exc) or type(exc).__name__) from exc

        filename = export_file_name()
        logger.info("[export] %s ready sections=%d bytes=%d", filename, len(tree.sections), len(data))
        headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
        return StreamingResponse(io.BytesIO(data), media_type=DOCX_MIME_TYPE, headers=headers)
