"""Visual style models for annotation notes."""

from typing import Literal
from pydantic import BaseModel, Field


class AnnotationStyle(BaseModel):
    """Paragraph-level defaults for an annotation note.

    Per-character spans inside the rich-text note may override these.
    """
    font_size: str = "9pt"
    text_align: Literal["left", "center", "right"] = "left"
    background_color: str = "transparent"
    text_color: str = "#000000"
    bold: bool = False
    italic: bool = False
    underline: bool = False


class MarkerDefaults(BaseModel):
    """Values that seed a newly created annotation."""
    x: float = 640.0
    y: float = 360.0
    color: str = "#ef4444"
    style: AnnotationStyle = Field(default_factory=AnnotationStyle)
