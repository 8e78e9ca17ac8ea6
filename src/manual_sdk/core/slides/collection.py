"""Ordered slide collection and document container."""

import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .slide import ImageSlide, Slide


class DocumentInfo(BaseModel):
    """Process-wide document metadata, edited in place and never versioned."""
    author: str = ""
    date: str = Field(default_factory=lambda: datetime.date.today().isoformat())


class SlideCollection(BaseModel):
    """Ordered collection of slides.

    Mutators take and store the values they are given; callers that keep
    a reference (commands, snapshots) are expected to pass copies.
    """
    slides: list[Slide] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.slides)

    def get(self, slide_id: str) -> Optional[Slide]:
        for s in self.slides:
            if s.id == slide_id:
                return s
        return None

    def index_of(self, slide_id: str) -> int:
        for i, s in enumerate(self.slides):
            if s.id == slide_id:
                return i
        return -1

    def ids(self) -> list[str]:
        return [s.id for s in self.slides]

    def insert(self, index: int, slide: Slide) -> Slide:
        index = max(0, min(index, len(self.slides)))
        self.slides.insert(index, slide)
        return slide

    def remove(self, slide_id: str) -> Optional[Slide]:
        idx = self.index_of(slide_id)
        if idx < 0:
            return None
        return self.slides.pop(idx)

    def replace(self, slide: Slide) -> bool:
        idx = self.index_of(slide.id)
        if idx < 0:
            return False
        self.slides[idx] = slide
        return True

    def set_order(self, slides: list[Slide]) -> None:
        self.slides = list(slides)

    def image_slides(self) -> list[ImageSlide]:
        return [s for s in self.slides if isinstance(s, ImageSlide)]

    def to_summary(self) -> list[dict]:
        summary = []
        for i, s in enumerate(self.slides):
            entry = {"id": s.id, "index": i, "kind": s.kind, "name": s.name or "(unnamed)"}
            if isinstance(s, ImageSlide):
                entry.update({
                    "task_name": s.task_name,
                    "screen_name": s.screen_name,
                    "has_image": s.has_image,
                    "annotation_count": len(s.annotations),
                })
            else:
                snippet = s.description
                entry.update({
                    "title": s.title,
                    "description_snippet": (snippet[:80] + "...") if len(snippet) > 80 else snippet,
                })
            summary.append(entry)
        return summary


class Document(BaseModel):
    """The whole manual: document info plus ordered slides."""
    info: DocumentInfo = Field(default_factory=DocumentInfo)
    slides: SlideCollection = Field(default_factory=SlideCollection)
