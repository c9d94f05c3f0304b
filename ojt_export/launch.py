"""Application launcher for ojt-report-export."""

from __future__ import annotations

import uvicorn

from ojt_export.settings import ExportSettings, get_export_settings


class ExportServer:
    """Owns the uvicorn server for the lifetime of the process."""

    def __init__(self, settings: ExportSettings) -> None:
        self.settings = settings
        self.config = uvicorn.Config(
            "ojt_export.web.app:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            reload=False,
        )
        self.server = uvicorn.Server(self.config)

    def run(self) -> int:
        # uvicorn installs SIGINT/SIGTERM handlers and drains on shutdown.
        self.server.run()
        return 0 if self.server.started else 1


def main() -> int:
    """Start the export service on the configured host and port."""
    return ExportServer(get_export_settings()).run()


if __name__ == "__main__":
    raise SystemExit(main())
