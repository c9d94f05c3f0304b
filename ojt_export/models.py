"""Models module.

This module belongs to `ojt_export` in the ojt-report-export codebase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union


class ImageKind(str, Enum):
    PNG = "png"
    JPEG = "jpg"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"


@dataclass(frozen=True)
class Report:
    date: object
    title: str
    narrative: str
    image_url: str | None = None


@dataclass(frozen=True)
class FetchedImage:
    data: bytes
    content_type: str
    detected_type: str = ""


@dataclass(frozen=True)
class HeadingNode:
    """Heading paragraph. Level 0 renders with the "Title" style."""

    text: str
    level: int
    bold: bool = True
    size_pt: float | None = None
    space_before_pt: float | None = None
    space_after_pt: float | None = None
    alignment: Alignment = Alignment.LEFT


@dataclass(frozen=True)
class ParagraphNode:
    text: str
    size_pt: float | None = None
    space_after_pt: float | None = None
    alignment: Alignment = Alignment.LEFT


@dataclass(frozen=True)
class ImageNode:
    """Embedded picture.

    `kind` comes from the response content-type; python-docx embeds the
    payload by its own sniffed format, so `kind` only reports what the
    server claimed.
    """

    data: bytes
    kind: ImageKind
    width_px: int = 500
    height_px: int = 375
    space_after_pt: float | None = None
    alignment: Alignment = Alignment.CENTER


@dataclass(frozen=True)
class PageBreakNode:
    pass


Block = Union[HeadingNode, ParagraphNode, ImageNode, PageBreakNode]


@dataclass(frozen=True)
class HeadingStyle:
    style_name: str
    size_pt: float
    space_before_pt: float
    space_after_pt: float
    outline_level: int
    bold: bool = True


@dataclass(frozen=True)
class StyleDefaults:
    font_name: str = "Arial"
    font_size_pt: float = 12
    headings: tuple[HeadingStyle, ...] = (
        HeadingStyle(style_name="Heading 1", size_pt=16, space_before_pt=12, space_after_pt=12, outline_level=0),
        HeadingStyle(style_name="Heading 2", size_pt=14, space_before_pt=9, space_after_pt=9, outline_level=1),
    )


# Page geometry in twips (1/20 pt): US Letter with 1 inch margins.
@dataclass(frozen=True)
class PageSetup:
    width_twips: int = 12240
    height_twips: int = 15840
    margin_top_twips: int = 1440
    margin_right_twips: int = 1440
    margin_bottom_twips: int = 1440
    margin_left_twips: int = 1440


@dataclass
class ReportSection:
    index: int
    blocks: list[Block] = field(default_factory=list)

    @property
    def has_image(self) -> bool:
        return any(isinstance(b, ImageNode) for b in self.blocks)

    @property
    def body_paragraphs(self) -> list[str]:
        return [b.text for b in self.blocks if isinstance(b, ParagraphNode)]


@dataclass
class DocumentTree:
    cover: list[Block] = field(default_factory=list)
    sections: list[ReportSection] = field(default_factory=list)
    styles: StyleDefaults = field(default_factory=StyleDefaults)
    page: PageSetup = field(default_factory=PageSetup)

    def walk(self) -> Iterable[Block]:
        yield from self.cover
        for section in self.sections:
            yield from section.blocks

    @property
    def inter_report_page_breaks(self) -> int:
        return sum(1 for s in self.sections for b in s.blocks if isinstance(b, PageBreakNode))
