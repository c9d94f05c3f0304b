"""Report Docx module.

This module belongs to `ojt_export.document` in the ojt-report-export codebase.
"""

from __future__ import annotations

from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, Twips
from docx.text.paragraph import Paragraph

from ojt_export.models import (
    Alignment,
    Block,
    DocumentTree,
    HeadingNode,
    HeadingStyle,
    ImageNode,
    PageBreakNode,
    PageSetup,
    ParagraphNode,
    StyleDefaults,
)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# 96 DPI screen pixels.
EMU_PER_PX = 9525

_THEME_FONT_ATTRS = ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme")

_ALIGNMENTS = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
}


def _set_font_name(element, name: str) -> None:
    """Pin ascii/hAnsi/eastAsia fonts and drop theme bindings that would override them."""
    r_pr = element.get_or_add_rPr()
    r_fonts = r_pr.get_or_add_rFonts()
    for attr in _THEME_FONT_ATTRS:
        r_fonts.attrib.pop(qn(attr), None)
    r_fonts.set(qn("w:ascii"), name)
    r_fonts.set(qn("w:hAnsi"), name)
    r_fonts.set(qn("w:eastAsia"), name)


def _set_outline_level(style, level: int) -> None:
    p_pr = style.element.get_or_add_pPr()
    outline = p_pr.find(qn("w:outlineLvl"))
    if outline is None:
        outline = OxmlElement("w:outlineLvl")
        p_pr.append(outline)
    outline.set(qn("w:val"), str(int(level)))


def _save_doc(doc: Document) -> bytes:
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


class ReportDocxExporter:
    """Serializes a `DocumentTree` with python-docx.

    Single section, US Letter, Arial throughout. Heading 1 carries report
    dates, Heading 2 report titles, and the cover uses the built-in Title
    style.
    """

    def build(self, tree: DocumentTree) -> bytes:
        doc = Document()
        self._apply_page_setup(doc, tree.page)
        self._apply_styles(doc, tree.styles)
        for block in tree.walk():
            self._emit(doc, block)
        return _save_doc(doc)

    def _apply_page_setup(self, doc: Document, page: PageSetup) -> None:
        sec = doc.sections[0]
        sec.page_width = Twips(page.width_twips)
        sec.page_height = Twips(page.height_twips)
        sec.top_margin = Twips(page.margin_top_twips)
        sec.right_margin = Twips(page.margin_right_twips)
        sec.bottom_margin = Twips(page.margin_bottom_twips)
        sec.left_margin = Twips(page.margin_left_twips)

    def _apply_styles(self, doc: Document, styles: StyleDefaults) -> None:
        normal = doc.styles["Normal"]
        normal.font.size = Pt(styles.font_size_pt)
        _set_font_name(normal.element, styles.font_name)
        for heading in styles.headings:
            self._apply_heading_style(doc, heading, styles.font_name)

    def _apply_heading_style(self, doc: Document, heading: HeadingStyle, font_name: str) -> None:
        normal = doc.styles["Normal"]
        style = doc.styles[heading.style_name]
        style.base_style = normal
        style.next_paragraph_style = normal
        style.quick_style = True
        style.font.size = Pt(heading.size_pt)
        style.font.bold = heading.bold
        _set_font_name(style.element, font_name)
        fmt = style.paragraph_format
        fmt.space_before = Pt(heading.space_before_pt)
        fmt.space_after = Pt(heading.space_after_pt)
        _set_outline_level(style, heading.outline_level)

    def _emit(self, doc: Document, block: Block) -> None:
        if isinstance(block, HeadingNode):
            self._add_heading(doc, block)
        elif isinstance(block, ParagraphNode):
            self._add_paragraph(doc, block)
        elif isinstance(block, ImageNode):
            self._add_image(doc, block)
        elif isinstance(block, PageBreakNode):
            doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
        else:
            raise TypeError(f"unsupported block: {type(block).__name__}")

    def _add_heading(self, doc: Document, block: HeadingNode) -> None:
        p = doc.add_heading("", level=block.level)
        run = p.add_run(block.text)
        run.bold = block.bold
        if block.size_pt is not None:
            run.font.size = Pt(block.size_pt)
        self._format_paragraph(p, block.alignment, block.space_before_pt, block.space_after_pt)

    def _add_paragraph(self, doc: Document, block: ParagraphNode) -> None:
        p = doc.add_paragraph()
        run = p.add_run(block.text)
        if block.size_pt is not None:
            run.font.size = Pt(block.size_pt)
        self._format_paragraph(p, block.alignment, None, block.space_after_pt)

    def _add_image(self, doc: Document, block: ImageNode) -> None:
        p = doc.add_paragraph()
        p.add_run().add_picture(
            BytesIO(block.data),
            width=Emu(block.width_px * EMU_PER_PX),
            height=Emu(block.height_px * EMU_PER_PX),
        )
        self._format_paragraph(p, block.alignment, None, block.space_after_pt)

    def _format_paragraph(
        self,
        p: Paragraph,
        alignment: Alignment,
        space_before_pt: float | None,
        space_after_pt: float | None,
    ) -> None:
        if alignment != Alignment.LEFT:
            p.alignment = _ALIGNMENTS[alignment]
        if space_before_pt is not None:
            p.paragraph_format.space_before = Pt(space_before_pt)
        if space_after_pt is not None:
            p.paragraph_format.space_after = Pt(space_after_pt)
