"""Export Flow module.

This module belongs to `ojt_export.web.api` in the ojt-report-export codebase.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from ojt_export.web.services.export_service import ExportService

router = APIRouter()
service = ExportService()


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/api/export-reports")
async def export_reports_flow(request: Request) -> StreamingResponse:
    payload = await _read_json(request)
    return await run_in_threadpool(service.export_reports, payload)
