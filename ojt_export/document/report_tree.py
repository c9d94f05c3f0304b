"""Report Tree module.

This module belongs to `ojt_export.document` in the ojt-report-export codebase.

Maps the loosely-structured report records of an export request onto a
`DocumentTree`: a cover block followed by one section per report. Only the
image step is allowed to fail softly; every other problem becomes a
`ProcessingError` for the whole job.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable

from ojt_export.errors import ImageFetchError, InvalidInputError, ProcessingError
from ojt_export.images.fetcher import ImageFetcher
from ojt_export.models import (
    Alignment,
    Block,
    DocumentTree,
    HeadingNode,
    ImageKind,
    ImageNode,
    PageBreakNode,
    ParagraphNode,
    Report,
    ReportSection,
)

logger = logging.getLogger(__name__)

COVER_TITLE = "OJT Narrative Reports"
INVALID_REPORTS_MESSAGE = "Invalid reports data"

HEADING_SPACE_AFTER_PT = 10
IMAGE_SPACE_AFTER_PT = 10
BODY_SPACE_AFTER_PT = 6
IMAGE_WIDTH_PX = 500
IMAGE_HEIGHT_PX = 375

_KIND_MIME = {ImageKind.JPEG: "image/jpeg", ImageKind.PNG: "image/png"}


def format_long_date(value: date) -> str:
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"


def format_cover_date(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def parse_report_date(value: Any) -> date:
    """Accept ISO-8601 strings (trailing `Z` allowed) or epoch milliseconds."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError) as exc:
            raise ProcessingError(f"invalid report date: {value!r}") from exc
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return datetime.fromisoformat(raw).date()
        except ValueError as exc:
            raise ProcessingError(f"invalid report date: {value!r}") from exc
    raise ProcessingError(f"invalid report date: {value!r}")


def split_narrative(narrative: str) -> list[str]:
    return [line.strip() for line in narrative.split("\n") if line.strip()]


def classify_image(content_type: str) -> ImageKind:
    ct = (content_type or "").lower()
    if "jpeg" in ct or "jpg" in ct:
        return ImageKind.JPEG
    return ImageKind.PNG


def validate_reports(payload: Any) -> list[Any]:
    """Pull the `reports` list out of a request body."""
    if not isinstance(payload, dict):
        raise InvalidInputError(INVALID_REPORTS_MESSAGE)
    reports = payload.get("reports")
    if not isinstance(reports, list):
        raise InvalidInputError(INVALID_REPORTS_MESSAGE)
    return reports


def report_from_payload(raw: Any, index: int) -> Report:
    if not isinstance(raw, dict):
        raise ProcessingError(f"report {index} is not an object")
    narrative = raw.get("narrative")
    if not isinstance(narrative, str):
        raise ProcessingError(f"report {index}: narrative must be a string")
    title = raw.get("title")
    image_url = raw.get("imageUrl")
    return Report(
        date=raw.get("date"),
        title="" if title is None else str(title),
        narrative=narrative,
        image_url=str(image_url) if image_url else None,
    )


class ReportTreeBuilder:
    def __init__(self, fetcher: ImageFetcher, *, today: Callable[[], date] = date.today) -> None:
        self._fetcher = fetcher
        self._today = today

    def build(self, reports: list[Any]) -> DocumentTree:
        if not isinstance(reports, list):
            raise InvalidInputError(INVALID_REPORTS_MESSAGE)
        tree = DocumentTree(cover=self._cover_blocks())
        last = len(reports) - 1
        for index, raw in enumerate(reports):
            report = report_from_payload(raw, index)
            tree.sections.append(self.build_section(report, index, is_last=index == last))
        return tree

    def build_section(self, report: Report, index: int, *, is_last: bool) -> ReportSection:
        section = ReportSection(index=index)
        blocks = section.blocks
        blocks.append(
            HeadingNode(
                text=format_long_date(parse_report_date(report.date)),
                level=1,
                space_after_pt=HEADING_SPACE_AFTER_PT,
            )
        )
        blocks.append(HeadingNode(text=report.title, level=2, space_after_pt=HEADING_SPACE_AFTER_PT))

        image = self._image_block(report.image_url) if report.image_url else None
        if image is not None:
            blocks.append(image)

        for text in split_narrative(report.narrative):
            blocks.append(ParagraphNode(text=text, space_after_pt=BODY_SPACE_AFTER_PT))

        if not is_last:
            blocks.append(PageBreakNode())
        return section

    def _image_block(self, url: str) -> ImageNode | None:
        try:
            fetched = self._fetcher.fetch(url)
        except ImageFetchError as exc:
            logger.warning("[export] image fetch failed url=%s: %s", url, exc)
            return None
        kind = classify_image(fetched.content_type)
        if fetched.detected_type and fetched.detected_type != _KIND_MIME[kind]:
            logger.info(
                "[export] image content-type mismatch url=%s declared=%s detected=%s",
                url,
                fetched.content_type,
                fetched.detected_type,
            )
        return ImageNode(
            data=fetched.data,
            kind=kind,
            width_px=IMAGE_WIDTH_PX,
            height_px=IMAGE_HEIGHT_PX,
            space_after_pt=IMAGE_SPACE_AFTER_PT,
            alignment=Alignment.CENTER,
        )

    def _cover_blocks(self) -> list[Block]:
        return [
            HeadingNode(
                text=COVER_TITLE,
                level=0,
                size_pt=24,
                space_before_pt=144,
                space_after_pt=12,
                alignment=Alignment.CENTER,
            ),
            ParagraphNode(
                text=f"Generated on {format_cover_date(self._today())}",
                size_pt=12,
                space_after_pt=12,
                alignment=Alignment.CENTER,
            ),
            PageBreakNode(),
        ]
