"""Slide-deck export."""

from .pptx_export import ExportLayout, ExportPalette, PptxExporter, export_document
from .richtext import TextRun, css_color_to_hex, parse_note, plain_text, split_lines

__all__ = [
    "ExportLayout",
    "ExportPalette",
    "PptxExporter",
    "export_document",
    "TextRun",
    "css_color_to_hex",
    "parse_note",
    "plain_text",
    "split_lines",
]
