"""Transient pointer-drag sessions.

A drag keeps its intermediate state to itself. The committed document is
only touched through the single command produced by ``release``; ``cancel``
(for example when the pointer leaves the canvas) discards the drag without
producing anything.
"""

import logging
from enum import Enum
from typing import Optional

from .commands import ReorderAnnotations, ReorderSlides, UpdateSlide
from .projection import clamp_to_canvas
from .slides import Annotation, ImageSlide, Slide

logger = logging.getLogger("ManualMCP.core.drag")


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class MarkerDrag:
    """Repositioning one annotation marker on the virtual canvas."""

    def __init__(self):
        self.state = DragState.IDLE
        self._origin: Optional[ImageSlide] = None
        self.annotation_id: Optional[str] = None
        self.position: Optional[tuple[float, float]] = None

    @property
    def active(self) -> bool:
        return self.state == DragState.DRAGGING

    def begin(self, slide: ImageSlide, annotation_id: str) -> bool:
        ann = slide.get_annotation(annotation_id)
        if ann is None:
            return False
        self._origin = slide.model_copy(deep=True)
        self.annotation_id = annotation_id
        self.position = (ann.x, ann.y)
        self.state = DragState.DRAGGING
        logger.debug(f"Marker drag started for {annotation_id}")
        return True

    def move(self, x: float, y: float) -> Optional[tuple[float, float]]:
        """Update the transient position, clamped to the virtual canvas."""
        if not self.active:
            return None
        self.position = clamp_to_canvas(x, y)
        return self.position

    def display_position(self, annotation: Annotation) -> tuple[float, float]:
        """Position to draw ``annotation`` at, honouring an in-progress drag."""
        if self.active and annotation.id == self.annotation_id:
            return self.position
        return annotation.x, annotation.y

    @property
    def slide_id(self) -> Optional[str]:
        return self._origin.id if self._origin is not None else None

    def release(self, current: Optional[ImageSlide] = None) -> Optional[UpdateSlide]:
        """Finish the drag, returning the one command it amounts to.

        ``current`` is the slide as committed now; edits made to it while
        the drag was in progress are kept. Without it the slide as it was
        when the drag began is used.
        """
        if not self.active:
            return None
        base = current if current is not None else self._origin
        annotation_id = self.annotation_id
        x, y = self.position
        self._reset()

        idx = base.annotation_index(annotation_id)
        if idx < 0:
            logger.debug(f"Marker drag released after {annotation_id} was removed")
            return None
        before = base.model_copy(deep=True)
        previous = before.annotations[idx]
        if (previous.x, previous.y) == (x, y):
            return None
        moved = before.model_copy(deep=True)
        moved.annotations[idx] = previous.model_copy(update={"x": x, "y": y})
        logger.debug(f"Marker drag released at ({x:.1f}, {y:.1f})")
        return UpdateSlide(slide_id=before.id, previous=before, next=moved)

    def cancel(self) -> None:
        if self.active:
            logger.debug(f"Marker drag abandoned for {self.annotation_id}")
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self._origin = None
        self.annotation_id = None
        self.position = None


class _ReorderDrag:
    """Shared state machine for moving one item within an ordered list."""

    def __init__(self):
        self.state = DragState.IDLE
        self._original: list = []
        self.order: list = []
        self.item_id: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state == DragState.DRAGGING

    def _begin(self, items: list, item_id: str) -> bool:
        if not any(item.id == item_id for item in items):
            return False
        self._original = [item.model_copy(deep=True) for item in items]
        self.order = list(self._original)
        self.item_id = item_id
        self.state = DragState.DRAGGING
        logger.debug(f"Reorder drag started for {item_id}")
        return True

    def move_to(self, index: int) -> list[str]:
        """Move the dragged item to ``index`` in the transient order."""
        if not self.active:
            return []
        current = next(i for i, item in enumerate(self.order) if item.id == self.item_id)
        item = self.order.pop(current)
        index = max(0, min(index, len(self.order)))
        self.order.insert(index, item)
        return [i.id for i in self.order]

    def _finish(self) -> Optional[tuple[list, list]]:
        if not self.active:
            return None
        original, order = self._original, self.order
        self.cancel()
        if [i.id for i in original] == [i.id for i in order]:
            logger.debug("Reorder drag released without a change")
            return None
        return original, order

    def cancel(self) -> None:
        self.state = DragState.IDLE
        self._original = []
        self.order = []
        self.item_id = None


class SlideReorderDrag(_ReorderDrag):
    """Dragging a slide to a new position in the slide list."""

    def begin(self, slides: list[Slide], slide_id: str) -> bool:
        return self._begin(slides, slide_id)

    def release(self) -> Optional[ReorderSlides]:
        result = self._finish()
        if result is None:
            return None
        previous, order = result
        return ReorderSlides(previous=previous, next=order)


class AnnotationReorderDrag(_ReorderDrag):
    """Dragging an annotation row to a new position within its slide."""

    def __init__(self):
        super().__init__()
        self.slide_id: Optional[str] = None

    def begin(self, slide: ImageSlide, annotation_id: str) -> bool:
        if not self._begin(slide.annotations, annotation_id):
            return False
        self.slide_id = slide.id
        return True

    def release(self) -> Optional[ReorderAnnotations]:
        slide_id = self.slide_id
        result = self._finish()
        if result is None:
            return None
        previous, order = result
        return ReorderAnnotations(slide_id=slide_id, previous=previous, next=order)

    def cancel(self) -> None:
        super().cancel()
        self.slide_id = None
