"""Settings module.

This module belongs to `ojt_export` in the ojt-report-export codebase.
"""

from __future__ import annotations

from dataclasses import dataclass
import os


DEFAULT_PORT = 3001
DEFAULT_IMAGE_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class ExportSettings:
    host: str
    port: int
    image_timeout_s: float
    cors_allow_origins: list[str]
    log_level: str


def _int_env(name: str, default: int) -> int:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if 0 < value < 65536 else default


def _float_env(name: str, default: float) -> float:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_export_settings() -> ExportSettings:
    host = os.environ.get("OJT_EXPORT_HOST", "0.0.0.0").strip() or "0.0.0.0"
    port = _int_env("PORT", DEFAULT_PORT)
    timeout_s = _float_env("OJT_EXPORT_IMAGE_TIMEOUT_S", DEFAULT_IMAGE_TIMEOUT_S)
    origins = [o.strip() for o in os.environ.get("OJT_EXPORT_CORS_ORIGINS", "*").split(",") if o.strip()]
    log_level = os.environ.get("OJT_EXPORT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    return ExportSettings(
        host=host,
        port=port,
        image_timeout_s=timeout_s,
        cors_allow_origins=origins or ["*"],
        log_level=log_level,
    )
