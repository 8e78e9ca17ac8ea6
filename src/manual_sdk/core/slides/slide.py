"""Slide data model.

A slide is either an IMAGE slide (screenshot plus annotations) or a NOTE
slide (title and description only). The ``kind`` field discriminates the
union and never changes after creation.
"""

import uuid
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

from .annotation import Annotation, renumber

IMAGE = "IMAGE"
NOTE = "NOTE"


def _new_slide_id() -> str:
    return f"slide-{uuid.uuid4().hex[:8]}"


class ImageSlide(BaseModel):
    """A screenshot page with numbered annotation markers."""
    kind: Literal["IMAGE"] = IMAGE
    id: str = Field(default_factory=_new_slide_id)
    name: str = ""
    task_name: str = ""
    screen_name: str = ""
    image_ref: Optional[str] = None
    annotations: list[Annotation] = Field(default_factory=list)

    @property
    def has_image(self) -> bool:
        return self.image_ref is not None

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        for ann in self.annotations:
            if ann.id == annotation_id:
                return ann
        return None

    def annotation_index(self, annotation_id: str) -> int:
        for i, ann in enumerate(self.annotations):
            if ann.id == annotation_id:
                return i
        return -1

    def with_annotations(self, annotations: list[Annotation]) -> "ImageSlide":
        """Copy of this slide holding ``annotations`` renumbered 1..n."""
        return self.model_copy(update={"annotations": renumber(annotations)}, deep=True)


class NoteSlide(BaseModel):
    """A text-only chapter or note page."""
    kind: Literal["NOTE"] = NOTE
    id: str = Field(default_factory=_new_slide_id)
    name: str = ""
    title: str = ""
    description: str = ""


Slide = Annotated[Union[ImageSlide, NoteSlide], Field(discriminator="kind")]

slide_adapter: TypeAdapter[Slide] = TypeAdapter(Slide)
slide_list_adapter: TypeAdapter[list[Slide]] = TypeAdapter(list[Slide])


def new_slide(kind: str, **fields) -> Union[ImageSlide, NoteSlide]:
    """Create an empty slide of the given kind."""
    if kind == IMAGE:
        return ImageSlide(**fields)
    if kind == NOTE:
        return NoteSlide(**fields)
    raise ValueError(f"Unknown slide kind: {kind!r}")
