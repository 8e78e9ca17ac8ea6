"""Slides package — public API re-exports."""

from .styles import AnnotationStyle, MarkerDefaults
from .annotation import Annotation, renumber
from .slide import (
    IMAGE,
    NOTE,
    ImageSlide,
    NoteSlide,
    Slide,
    new_slide,
    slide_adapter,
    slide_list_adapter,
)
from .collection import Document, DocumentInfo, SlideCollection

__all__ = [
    "IMAGE",
    "NOTE",
    "Annotation",
    "AnnotationStyle",
    "MarkerDefaults",
    "ImageSlide",
    "NoteSlide",
    "Slide",
    "SlideCollection",
    "Document",
    "DocumentInfo",
    "new_slide",
    "renumber",
    "slide_adapter",
    "slide_list_adapter",
]
