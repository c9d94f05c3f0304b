"""Contracts module.

This module belongs to `ojt_export.web` in the ojt-report-export codebase.
"""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
