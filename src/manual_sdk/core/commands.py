"""Reversible document commands.

Each command is a plain value carrying both sides of one mutation, so it
can be applied, reverted and re-applied without consulting anything but the
document. ``apply``/``revert`` return the id of the slide that should be
focused afterwards, or None when the command implies no focus change.

Unknown ids are ignored: the command leaves the document untouched.
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field

from .slides import Annotation, Document, ImageSlide, Slide, renumber


def _copy(slide):
    return slide.model_copy(deep=True)


def _committed(slide):
    """Copy of ``slide`` as stored in the document, annotations numbered 1..n."""
    if isinstance(slide, ImageSlide):
        return slide.with_annotations(slide.annotations)
    return _copy(slide)


class AddSlide(BaseModel):
    kind: Literal["add_slide"] = "add_slide"
    slide: Slide
    index: int

    @property
    def description(self) -> str:
        return f"Add slide {self.slide.id}"

    def apply(self, document: Document) -> Optional[str]:
        document.slides.insert(self.index, _copy(self.slide))
        return self.slide.id

    def revert(self, document: Document) -> Optional[str]:
        document.slides.remove(self.slide.id)
        return None


class DeleteSlide(BaseModel):
    kind: Literal["delete_slide"] = "delete_slide"
    slide: Slide
    index: int

    @property
    def description(self) -> str:
        return f"Delete slide {self.slide.id}"

    def apply(self, document: Document) -> Optional[str]:
        document.slides.remove(self.slide.id)
        return None

    def revert(self, document: Document) -> Optional[str]:
        document.slides.insert(self.index, _copy(self.slide))
        return self.slide.id


class UpdateSlide(BaseModel):
    kind: Literal["update_slide"] = "update_slide"
    slide_id: str
    previous: Slide
    next: Slide

    @property
    def description(self) -> str:
        return f"Edit slide {self.slide_id}"

    def apply(self, document: Document) -> Optional[str]:
        if document.slides.replace(_committed(self.next)):
            return self.slide_id
        return None

    def revert(self, document: Document) -> Optional[str]:
        if document.slides.replace(_committed(self.previous)):
            return self.slide_id
        return None


class ReorderSlides(BaseModel):
    """Replace the whole slide order.

    Also used to swap one slide for another at the same position, in which
    case ``focus_next``/``focus_previous`` name the slide to select after
    apply and revert.
    """
    kind: Literal["reorder_slides"] = "reorder_slides"
    previous: list[Slide]
    next: list[Slide]
    focus_next: Optional[str] = None
    focus_previous: Optional[str] = None

    @property
    def description(self) -> str:
        if self.focus_next and self.focus_previous:
            return f"Replace slide {self.focus_previous} with {self.focus_next}"
        return "Reorder slides"

    def apply(self, document: Document) -> Optional[str]:
        document.slides.set_order([_copy(s) for s in self.next])
        return self.focus_next

    def revert(self, document: Document) -> Optional[str]:
        document.slides.set_order([_copy(s) for s in self.previous])
        return self.focus_previous


class ReorderAnnotations(BaseModel):
    kind: Literal["reorder_annotations"] = "reorder_annotations"
    slide_id: str
    previous: list[Annotation]
    next: list[Annotation]

    @property
    def description(self) -> str:
        return f"Reorder annotations on slide {self.slide_id}"

    def _set(self, document: Document, annotations: list[Annotation]) -> Optional[str]:
        slide = document.slides.get(self.slide_id)
        if not isinstance(slide, ImageSlide):
            return None
        slide.annotations = renumber(annotations)
        return self.slide_id

    def apply(self, document: Document) -> Optional[str]:
        return self._set(document, self.next)

    def revert(self, document: Document) -> Optional[str]:
        return self._set(document, self.previous)


Command = Annotated[
    Union[AddSlide, DeleteSlide, UpdateSlide, ReorderSlides, ReorderAnnotations],
    Field(discriminator="kind"),
]
