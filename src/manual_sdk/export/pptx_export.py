"""PowerPoint export of a manual document via python-pptx.

Each IMAGE slide becomes a page with a header bar (task, screen, author),
the screenshot contain-fitted into the left image area with numbered
markers projected onto it, and a notes table in the right sidebar. NOTE
slides become a header bar plus title and description.
"""

import io
import logging
from pathlib import Path
from typing import Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt
from pydantic import BaseModel, Field

from ..core.errors import ExportError
from ..core.images import bitmap_size, read_bitmap_bytes
from ..core.projection import Viewport, image_rect, project_point
from ..core.slides import Document, DocumentInfo, ImageSlide, NoteSlide
from .richtext import TextRun, css_color_to_hex, parse_note, split_lines

logger = logging.getLogger("ManualMCP.export.pptx")

BLANK_LAYOUT = 6

_ALIGN = {"left": PP_ALIGN.LEFT, "center": PP_ALIGN.CENTER, "right": PP_ALIGN.RIGHT}


class ExportPalette(BaseModel):
    """Colours as RRGGBB hex strings."""
    header: str = "3F8C48"
    sidebar: str = "F7F8FA"
    dark_text: str = "333333"
    border: str = "E5E7EB"
    white: str = "FFFFFF"
    header_label: str = "A8D5AC"
    muted: str = "888888"


class ExportLayout(BaseModel):
    """Page geometry in inches."""
    slide_width: float = 10.0
    slide_height: float = 5.625
    header_height: float = 0.9
    sidebar_width: float = 3.0
    marker_size: float = 0.15
    number_column_width: float = 0.4
    font_face: str = "Malgun Gothic"
    palette: ExportPalette = Field(default_factory=ExportPalette)

    @property
    def image_area(self) -> Viewport:
        return Viewport(
            width=self.slide_width - self.sidebar_width,
            height=self.slide_height - self.header_height,
            x=0.0,
            y=self.header_height,
        )

    @property
    def sidebar_area(self) -> Viewport:
        return Viewport(
            width=self.sidebar_width,
            height=self.slide_height - self.header_height,
            x=self.slide_width - self.sidebar_width,
            y=self.header_height,
        )


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color)


def _fill(shape, hex_color: Optional[str]) -> None:
    if hex_color is None:
        shape.fill.background()
    else:
        shape.fill.solid()
        shape.fill.fore_color.rgb = _rgb(hex_color)


def _write_run(paragraph, text: str, size: float, color: str,
               bold: bool = False, italic: bool = False, underline: bool = False,
               font_face: Optional[str] = None):
    run = paragraph.add_run()
    run.text = text
    font = run.font
    font.size = Pt(size)
    font.bold = bold
    font.italic = italic
    font.underline = underline
    font.color.rgb = _rgb(color)
    if font_face:
        font.name = font_face
    return run


class PptxExporter:
    """Renders a Document into a python-pptx Presentation."""

    def __init__(self, layout: Optional[ExportLayout] = None, base_dir: Optional[Path] = None):
        self.layout = layout or ExportLayout()
        self.base_dir = base_dir

    def render(self, document: Document) -> Presentation:
        layout = self.layout
        prs = Presentation()
        prs.slide_width = Inches(layout.slide_width)
        prs.slide_height = Inches(layout.slide_height)

        first = document.slides.slides[0] if document.slides.slides else None
        title = first.task_name if isinstance(first, ImageSlide) else ""
        prs.core_properties.title = title or "Manual Document"
        prs.core_properties.author = document.info.author

        for slide in document.slides.slides:
            page = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
            if isinstance(slide, ImageSlide):
                self._render_image_slide(page, slide, document.info)
            elif isinstance(slide, NoteSlide):
                self._render_note_slide(page, slide, document.info)
        return prs

    def export(self, document: Document, output_path: Path) -> Path:
        """Write the deck to ``output_path`` (``.pptx`` is appended if missing)."""
        output_path = Path(output_path)
        if output_path.suffix.lower() != ".pptx":
            output_path = output_path.with_name(output_path.name + ".pptx")
        prs = self.render(document)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            prs.save(str(output_path))
        except OSError as e:
            raise ExportError(f"Could not write {output_path}: {e}") from e
        logger.info(f"Exported {len(document.slides)} slides to {output_path}")
        return output_path

    # ── Header ─────────────────────────────────────────────────────────

    def _render_header(self, page, fields: list[tuple[str, str, float, float]]) -> None:
        layout = self.layout
        colors = layout.palette
        bar = page.shapes.add_shape(
            MSO_SHAPE.RECTANGLE, 0, 0, Inches(layout.slide_width), Inches(layout.header_height),
        )
        _fill(bar, colors.header)
        bar.line.fill.background()

        for label, value, x, w in fields:
            self._add_text(page, label, x, 0.1, w, 0.2, size=8, color=colors.header_label, bold=True)
            self._add_text(page, value or "-", x, 0.35, w, 0.4, size=14, color=colors.white, bold=True)

        for x in [f[2] - 0.2 for f in fields[1:]]:
            line = page.shapes.add_connector(
                MSO_CONNECTOR.STRAIGHT, Inches(x), Inches(0.15), Inches(x), Inches(0.75),
            )
            line.line.color.rgb = _rgb(colors.header_label)
            line.line.width = Pt(0.5)

    def _add_text(self, page, text: str, x: float, y: float, w: float, h: float,
                  size: float, color: str, bold: bool = False,
                  align=PP_ALIGN.LEFT, anchor=MSO_ANCHOR.TOP):
        box = page.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
        tf = box.text_frame
        tf.word_wrap = True
        tf.vertical_anchor = anchor
        paragraph = tf.paragraphs[0]
        paragraph.alignment = align
        _write_run(paragraph, text, size, color, bold=bold)
        return box

    # ── Slide kinds ────────────────────────────────────────────────────

    def _render_image_slide(self, page, slide: ImageSlide, info: DocumentInfo) -> None:
        layout = self.layout
        self._render_header(page, [
            ("Task", slide.task_name, 0.2, 3.5),
            ("Screen", slide.screen_name, 4.0, 3.5),
            ("Author", info.author, 8.0, 1.8),
        ])
        self._render_sidebar(page, slide)

        if not slide.has_image:
            return
        size = bitmap_size(slide.image_ref, self.base_dir)
        area = layout.image_area
        left, top, width, height = image_rect(size, area)
        try:
            data = read_bitmap_bytes(slide.image_ref, self.base_dir)
            page.shapes.add_picture(
                io.BytesIO(data), Inches(left), Inches(top), Inches(width), Inches(height),
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping unreadable image on slide {slide.id}: {e}")

        for ann in slide.annotations:
            cx, cy = project_point(ann.x, ann.y, size, area)
            self._render_marker(page, ann.number, ann.color, cx, cy)

    def _render_note_slide(self, page, slide: NoteSlide, info: DocumentInfo) -> None:
        layout = self.layout
        colors = layout.palette
        self._render_header(page, [
            ("Chapter", slide.name, 0.2, 7.5),
            ("Author", info.author, 8.0, 1.8),
        ])
        body_w = layout.slide_width - 1.0
        self._add_text(page, slide.title or "-", 0.5, layout.header_height + 0.4, body_w, 0.8,
                       size=28, color=colors.dark_text, bold=True)
        box = page.shapes.add_textbox(
            Inches(0.5), Inches(layout.header_height + 1.4),
            Inches(body_w), Inches(layout.slide_height - layout.header_height - 1.8),
        )
        box.text_frame.word_wrap = True
        for i, line in enumerate(slide.description.splitlines() or [""]):
            paragraph = box.text_frame.paragraphs[0] if i == 0 else box.text_frame.add_paragraph()
            _write_run(paragraph, line, 14, colors.dark_text)

    def _render_marker(self, page, number: int, color: str, cx: float, cy: float) -> None:
        size = self.layout.marker_size
        marker = page.shapes.add_shape(
            MSO_SHAPE.OVAL, Inches(cx - size / 2), Inches(cy - size / 2), Inches(size), Inches(size),
        )
        _fill(marker, css_color_to_hex(color) or "EF4444")
        marker.line.color.rgb = _rgb(self.layout.palette.white)
        marker.line.width = Pt(1.5)
        tf = marker.text_frame
        tf.margin_left = tf.margin_right = tf.margin_top = tf.margin_bottom = 0
        tf.vertical_anchor = MSO_ANCHOR.MIDDLE
        paragraph = tf.paragraphs[0]
        paragraph.alignment = PP_ALIGN.CENTER
        _write_run(paragraph, str(number), 7, self.layout.palette.white, bold=True)

    # ── Notes table ────────────────────────────────────────────────────

    def _render_sidebar(self, page, slide: ImageSlide) -> None:
        layout = self.layout
        colors = layout.palette
        area = layout.sidebar_area
        panel = page.shapes.add_shape(
            MSO_SHAPE.RECTANGLE, Inches(area.x), Inches(area.y), Inches(area.width), Inches(area.height),
        )
        _fill(panel, colors.sidebar)
        panel.line.color.rgb = _rgb(colors.border)
        panel.line.width = Pt(1)

        if not slide.annotations:
            self._add_text(page, "No annotations.", area.x, area.y + 1, area.width, 1,
                           size=10, color=colors.muted, align=PP_ALIGN.CENTER)
            return

        rows = len(slide.annotations) + 1
        table_w = area.width - 0.2
        frame = page.shapes.add_table(
            rows, 2, Inches(area.x + 0.1), Inches(area.y + 0.1),
            Inches(table_w), Inches(0.25 * rows),
        )
        table = frame.table
        table.columns[0].width = Inches(layout.number_column_width)
        table.columns[1].width = Inches(table_w - layout.number_column_width)

        self._header_cell(table.cell(0, 0), "No")
        self._header_cell(table.cell(0, 1), "Description")
        for row, ann in enumerate(slide.annotations, start=1):
            number_cell = table.cell(row, 0)
            self._prepare_cell(number_cell, colors.white, MSO_ANCHOR.MIDDLE)
            number_cell.text_frame.paragraphs[0].alignment = PP_ALIGN.CENTER
            _write_run(number_cell.text_frame.paragraphs[0], str(ann.number), 8,
                       colors.dark_text, font_face=layout.font_face)

            note_cell = table.cell(row, 1)
            self._prepare_cell(note_cell, colors.white, MSO_ANCHOR.TOP)
            self._write_rich_text(note_cell.text_frame, parse_note(ann.note),
                                  _ALIGN.get(ann.style.text_align, PP_ALIGN.LEFT))

    def _prepare_cell(self, cell, fill: str, anchor) -> None:
        cell.fill.solid()
        cell.fill.fore_color.rgb = _rgb(fill)
        cell.vertical_anchor = anchor
        cell.margin_left = cell.margin_right = Inches(0.05)
        cell.margin_top = cell.margin_bottom = Inches(0.05)

    def _header_cell(self, cell, text: str) -> None:
        colors = self.layout.palette
        self._prepare_cell(cell, colors.header, MSO_ANCHOR.MIDDLE)
        paragraph = cell.text_frame.paragraphs[0]
        paragraph.alignment = PP_ALIGN.CENTER
        _write_run(paragraph, text, 8, colors.white, bold=True, font_face=self.layout.font_face)

    def _write_rich_text(self, text_frame, runs: list[TextRun], align) -> None:
        colors = self.layout.palette
        text_frame.word_wrap = True
        for i, line in enumerate(split_lines(runs)):
            paragraph = text_frame.paragraphs[0] if i == 0 else text_frame.add_paragraph()
            paragraph.alignment = align
            for run in line:
                _write_run(paragraph, run.text, 8, run.color or colors.dark_text,
                           bold=run.bold, italic=run.italic, underline=run.underline,
                           font_face=self.layout.font_face)


def export_document(document: Document, output_path: Path,
                    base_dir: Optional[Path] = None,
                    layout: Optional[ExportLayout] = None) -> Path:
    return PptxExporter(layout=layout, base_dir=base_dir).export(document, output_path)
