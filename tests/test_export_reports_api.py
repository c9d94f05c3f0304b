from __future__ import annotations

import io
import re
import struct
import threading
import zlib
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn

from docx import Document
from fastapi.testclient import TestClient

import ojt_export.web.api.export_flow as export_flow
from ojt_export.errors import ImageFetchError
from ojt_export.images.fetcher import ImageFetcher, RequestsImageFetcher
from ojt_export.models import FetchedImage
from ojt_export.web.app import app

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _png_bytes() -> bytes:
    def chunk(tag: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", zlib.compress(b"\x00\xff\x00\x00")) + chunk(b"IEND", b"")


class _FakeFetcher(ImageFetcher):
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def fetch(self, url: str) -> FetchedImage:
        self.calls.append(url)
        if "missing" in url:
            raise ImageFetchError("404 Client Error")
        return FetchedImage(data=_png_bytes(), content_type="image/jpeg")


def _client(monkeypatch) -> tuple[TestClient, _FakeFetcher]:
    fetcher = _FakeFetcher()
    monkeypatch.setattr(export_flow.service, "fetcher_factory", lambda: fetcher)
    return TestClient(app), fetcher


def _report(title: str, **extra) -> dict:
    body = {"date": "2024-03-15T08:00:00.000Z", "title": title, "narrative": f"{title} body\n\nsecond line"}
    body.update(extra)
    return body


def test_export_reports_returns_docx_download(monkeypatch) -> None:
    client, fetcher = _client(monkeypatch)
    reports = [
        _report("First", imageUrl="http://img.test/ok.jpg"),
        _report("Second", imageUrl="http://img.test/missing.png"),
    ]
    resp = client.post("/api/export-reports", json={"reports": reports})
    assert resp.status_code == 200, resp.text[:300]
    assert resp.headers["content-type"] == DOCX_MIME
    disposition = resp.headers["content-disposition"]
    assert re.fullmatch(r'attachment; filename="OJT_Reports_\d{4}-\d{2}-\d{2}\.docx"', disposition)
    assert fetcher.calls == ["http://img.test/ok.jpg", "http://img.test/missing.png"]

    doc = Document(io.BytesIO(resp.content))
    texts = [p.text for p in doc.paragraphs if p.text.strip()]
    assert "First" in texts and "Second" in texts
    assert "Second body" in texts and texts.count("second line") == 2
    assert len(doc.inline_shapes) == 1


def test_export_reports_missing_reports_is_400(monkeypatch) -> None:
    client, _ = _client(monkeypatch)
    resp = client.post("/api/export-reports", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid reports data"}


def test_export_reports_non_list_is_400(monkeypatch) -> None:
    client, _ = _client(monkeypatch)
    resp = client.post("/api/export-reports", json={"reports": {"title": "x"}})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid reports data"}


def test_export_reports_unparseable_body_is_400(monkeypatch) -> None:
    client, _ = _client(monkeypatch)
    resp = client.post("/api/export-reports", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid reports data"}


def test_export_reports_empty_list_renders_cover_only(monkeypatch) -> None:
    client, fetcher = _client(monkeypatch)
    resp = client.post("/api/export-reports", json={"reports": []})
    assert resp.status_code == 200
    doc = Document(io.BytesIO(resp.content))
    texts = [p.text for p in doc.paragraphs if p.text.strip()]
    assert texts[0] == "OJT Narrative Reports"
    assert len(texts) == 2
    assert fetcher.calls == []


def test_export_reports_bad_date_is_500(monkeypatch) -> None:
    client, _ = _client(monkeypatch)
    resp = client.post("/api/export-reports", json={"reports": [_report("Bad", date="yesterday-ish")]})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to generate document"
    assert "yesterday-ish" in body["details"]


def test_unexpected_failure_is_wrapped_as_500(monkeypatch) -> None:
    client, _ = _client(monkeypatch)

    def _explode(tree):
        raise ValueError("serializer broke")

    monkeypatch.setattr(export_flow.service.exporter, "build", _explode)
    resp = client.post("/api/export-reports", json={"reports": [_report("Only")]})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate document", "details": "serializer broke"}


def test_health_is_ok_after_failures(monkeypatch) -> None:
    client, _ = _client(monkeypatch)
    client.post("/api/export-reports", json={"reports": "nope"})
    client.post("/api/export-reports", json={"reports": [_report("Bad", date="??")]})
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_export_route_registered_from_flow_module() -> None:
    modules = {getattr(r, "path", ""): getattr(getattr(r, "endpoint", None), "__module__", "") for r in app.routes}
    assert modules["/api/export-reports"] == "ojt_export.web.api.export_flow"
    assert modules["/health"] == "ojt_export.web.app"


class _ThreadedHTTPServer(ThreadingMixIn, HTTPServer):
    daemon_threads = True


class _ImageHandler(BaseHTTPRequestHandler):
    def do_GET(self):  # noqa: N802
        if self.path == "/truncated.gif":
            body, content_type = b"GIF89a", "image/gif"
        elif self.path == "/octet.png":
            body, content_type = _png_bytes(), "application/octet-stream"
        else:
            body, content_type = b"missing", "text/plain"
        self.send_response(200 if content_type != "text/plain" else 404)
        self.send_header("content-type", content_type)
        self.send_header("content-length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args):  # noqa: A003
        return


def _start_image_server():
    server = _ThreadedHTTPServer(("127.0.0.1", 0), _ImageHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    return server, f"http://{host}:{port}"


def test_fetcher_closed_after_export(monkeypatch) -> None:
    client, fetcher = _client(monkeypatch)
    resp = client.post("/api/export-reports", json={"reports": [_report("Only")]})
    assert resp.status_code == 200
    assert fetcher.closed is True


def test_truncated_and_octet_stream_images_over_http(monkeypatch) -> None:
    server, url = _start_image_server()
    try:
        monkeypatch.setattr(export_flow.service, "fetcher_factory", lambda: RequestsImageFetcher(timeout_s=3.0))
        client = TestClient(app)
        reports = [
            _report("Broken gif", imageUrl=f"{url}/truncated.gif"),
            _report("Bucket png", imageUrl=f"{url}/octet.png"),
        ]
        resp = client.post("/api/export-reports", json={"reports": reports})
    finally:
        server.shutdown()
        server.server_close()

    assert resp.status_code == 200, resp.text[:300]
    doc = Document(io.BytesIO(resp.content))
    assert len(doc.inline_shapes) == 1
    paragraphs = list(doc.paragraphs)
    texts = [p.text for p in paragraphs]
    drawing_at = [i for i, p in enumerate(paragraphs) if p._element.xpath(".//w:drawing")]
    assert drawing_at and drawing_at[0] > texts.index("Bucket png")
    assert "Broken gif body" in texts
