"""Fetcher module.

This module belongs to `ojt_export.images` in the ojt-report-export codebase.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

import requests
from docx.image.image import Image

from ojt_export.errors import ImageFetchError
from ojt_export.models import FetchedImage
from ojt_export.settings import get_export_settings

CHUNK_SIZE = 64 * 1024


class ImageFetcher(ABC):
    @abstractmethod
    def fetch(self, url: str) -> FetchedImage:
        """Return the image bytes and content type, or raise ImageFetchError."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "ImageFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class RequestsImageFetcher(ImageFetcher):
    """GET an image with a deadline covering the whole download.

    `timeout_s` bounds connect and every socket read, and the body is
    streamed so a server trickling bytes is cut off once the total elapsed
    time passes the same limit.
    """

    def __init__(self, *, timeout_s: float = 5.0, session: requests.Session | None = None) -> None:
        self.timeout_s = float(timeout_s)
        self._owns_session = session is None
        self._session = session or requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def fetch(self, url: str) -> FetchedImage:
        deadline = time.monotonic() + self.timeout_s
        try:
            with self._session.get(url, timeout=self.timeout_s, stream=True) as resp:
                resp.raise_for_status()
                content_type = str(resp.headers.get("content-type") or "").strip().lower()
                if not content_type:
                    raise ImageFetchError(f"missing content-type for {url}")
                chunks: list[bytes] = []
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise ImageFetchError(f"image download exceeded {self.timeout_s:g}s for {url}")
        except requests.RequestException as exc:
            raise ImageFetchError(str(exc)) from exc

        data = b"".join(chunks)
        if not data:
            raise ImageFetchError(f"empty image payload for {url}")
        try:
            detected = Image.from_blob(data).content_type
        except Exception as exc:
            raise ImageFetchError(f"unrecognized image payload for {url}: {exc}") from exc
        return FetchedImage(data=data, content_type=content_type, detected_type=detected)


def fetcher_from_env(*, timeout_s: float | None = None) -> RequestsImageFetcher:
    settings = get_export_settings()
    return RequestsImageFetcher(timeout_s=timeout_s if timeout_s is not None else settings.image_timeout_s)
