"""Annotation marker model."""

import uuid
from pydantic import BaseModel, Field

from .styles import AnnotationStyle


class Annotation(BaseModel):
    """A numbered marker placed on an image slide.

    x and y live in the fixed 1280x720 virtual canvas space.
    """
    id: str = Field(default_factory=lambda: f"annotation-{uuid.uuid4().hex[:8]}")
    number: int = 1
    x: float = 640.0
    y: float = 360.0
    color: str = "#ef4444"
    note: str = ""
    style: AnnotationStyle = Field(default_factory=AnnotationStyle)


def renumber(annotations: list[Annotation]) -> list[Annotation]:
    """Return copies numbered 1..n in list order."""
    return [
        ann.model_copy(update={"number": i + 1}, deep=True)
        for i, ann in enumerate(annotations)
    ]
