"""Session state: the document, the current selection and the edit history.

Every document mutation goes through ``apply`` so that it lands on the
undo stack as exactly one command. Field edits are whole-slide snapshots
(``UpdateSlide``); drags stay out of history until they are released.
"""

import json
import logging
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, ValidationError

from .commands import AddSlide, Command, DeleteSlide, ReorderAnnotations, ReorderSlides, UpdateSlide
from .drag import AnnotationReorderDrag, MarkerDrag, SlideReorderDrag
from .errors import DocumentLoadError
from .history import CommandHistory, HistoryStep
from .projection import CanvasView, clamp_to_canvas
from .slides import (
    IMAGE,
    Annotation,
    Document,
    DocumentInfo,
    ImageSlide,
    MarkerDefaults,
    NoteSlide,
    SlideCollection,
    new_slide,
    renumber,
    slide_list_adapter,
)
from .workspace import Workspace

logger = logging.getLogger("ManualMCP.core.state")

AnySlide = Union[ImageSlide, NoteSlide]

_IMMUTABLE_FIELDS = {"id", "kind"}
_DERIVED_ANNOTATION_FIELDS = {"id", "number"}


def _default_document() -> Document:
    document = Document()
    document.slides.insert(0, ImageSlide(name="Slide 1"))
    return document


class SessionState(BaseModel):
    """Editing session for one manual."""
    workspace: Optional[Workspace] = None
    document: Document = Field(default_factory=_default_document)
    selected_slide_id: Optional[str] = None
    history: CommandHistory = Field(default_factory=CommandHistory)
    default_task_name: str = ""
    marker_defaults: MarkerDefaults = Field(default_factory=MarkerDefaults)

    marker_drag: MarkerDrag = Field(default_factory=MarkerDrag, exclude=True)
    slide_drag: SlideReorderDrag = Field(default_factory=SlideReorderDrag, exclude=True)
    annotation_drag: AnnotationReorderDrag = Field(default_factory=AnnotationReorderDrag, exclude=True)

    model_config = {"arbitrary_types_allowed": True}

    def model_post_init(self, __context: Any) -> None:
        if self.selected_slide_id is None and self.document.slides.slides:
            self.selected_slide_id = self.document.slides.slides[0].id

    # ── Lookup ─────────────────────────────────────────────────────────

    @property
    def slides(self) -> SlideCollection:
        return self.document.slides

    @property
    def info(self) -> DocumentInfo:
        return self.document.info

    @property
    def current_slide(self) -> Optional[AnySlide]:
        slide = self.slides.get(self.selected_slide_id) if self.selected_slide_id else None
        if slide is None and self.slides.slides:
            return self.slides.slides[0]
        return slide

    def image_slide(self, slide_id: Optional[str]) -> Optional[ImageSlide]:
        slide = self.slides.get(slide_id) if slide_id else self.current_slide
        return slide if isinstance(slide, ImageSlide) else None

    def select_slide(self, slide_id: str) -> bool:
        if self.slides.get(slide_id) is None:
            return False
        self.selected_slide_id = slide_id
        return True

    # ── History ────────────────────────────────────────────────────────

    def apply(self, command: Command) -> None:
        self.selected_slide_id = self.history.apply(
            self.document, command, selection_before=self.selected_slide_id,
        )

    def _restore_focus(self, step: Optional[HistoryStep]) -> Optional[str]:
        if step is None:
            return None
        self.selected_slide_id = step.focus
        return step.command.description

    def undo(self) -> Optional[str]:
        """Undo the last command. Returns its description, or None if nothing to undo."""
        return self._restore_focus(self.history.undo(self.document))

    def redo(self) -> Optional[str]:
        return self._restore_focus(self.history.redo(self.document))

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # ── Slides ─────────────────────────────────────────────────────────

    def add_slide(self, kind: str = IMAGE, index: Optional[int] = None) -> AnySlide:
        """Create an empty slide (at the end by default) and select it."""
        fields: dict[str, Any] = {"name": f"Slide {len(self.slides) + 1}"}
        if kind == IMAGE:
            fields["task_name"] = self.default_task_name
        slide = new_slide(kind, **fields)
        if index is None:
            index = len(self.slides)
        self.apply(AddSlide(slide=slide, index=index))
        return self.slides.get(slide.id)

    def delete_slide(self, slide_id: str) -> bool:
        """Delete a slide. The last remaining slide and unknown ids are left alone."""
        if len(self.slides) <= 1:
            return False
        idx = self.slides.index_of(slide_id)
        if idx < 0:
            return False
        removed = self.slides.slides[idx].model_copy(deep=True)
        self.apply(DeleteSlide(slide=removed, index=idx))
        return True

    def update_slide(self, slide_id: str, **changes) -> Optional[AnySlide]:
        """Apply field changes to a slide as one whole-value ``UpdateSlide``.

        Unknown slide ids and edits that change nothing are ignored.
        """
        bad = _IMMUTABLE_FIELDS.intersection(changes)
        if bad:
            raise ValueError(f"Slide fields cannot be changed: {', '.join(sorted(bad))}")
        slide = self.slides.get(slide_id)
        if slide is None:
            return None
        unknown = set(changes) - set(type(slide).model_fields)
        if unknown:
            raise ValueError(
                f"Unknown fields for {slide.kind} slide: {', '.join(sorted(unknown))}"
            )
        previous = slide.model_copy(deep=True)
        updated = type(slide).model_validate({**previous.model_dump(), **changes})
        if isinstance(updated, ImageSlide) and "annotations" in changes:
            updated = updated.with_annotations(updated.annotations)
        self.commit_slide(previous, updated)
        return self.slides.get(slide_id)

    def commit_slide(self, previous: AnySlide, updated: AnySlide) -> bool:
        """Record a before/after pair as one history entry, unless identical."""
        if previous == updated:
            return False
        self.apply(UpdateSlide(slide_id=previous.id, previous=previous, next=updated))
        return True

    def set_image(self, slide_id: str, image_ref: Optional[str]) -> bool:
        if self.image_slide(slide_id) is None:
            return False
        return self.update_slide(slide_id, image_ref=image_ref) is not None

    def remove_image(self, slide_id: str) -> bool:
        return self.set_image(slide_id, None)

    def move_slide(self, slide_id: str, to_index: int) -> bool:
        """Move a slide to a new position as one ``ReorderSlides``."""
        if self.slide_drag.active:
            return False
        if not self.slide_drag.begin(self.slides.slides, slide_id):
            return False
        self.slide_drag.move_to(to_index)
        return self.release_slide_drag()

    def switch_slide_kind(self, slide_id: str, kind: str) -> Optional[AnySlide]:
        """Replace a slide with an empty slide of another kind at the same position.

        Recorded as one history entry; undo brings the original slide back.
        """
        slide = self.slides.get(slide_id)
        if slide is None or slide.kind == kind:
            return None
        idx = self.slides.index_of(slide_id)
        fields: dict[str, Any] = {"name": slide.name}
        if kind == IMAGE:
            fields["task_name"] = self.default_task_name
        replacement = new_slide(kind, **fields)
        previous = [s.model_copy(deep=True) for s in self.slides.slides]
        order = [s.model_copy(deep=True) for s in previous]
        order[idx] = replacement
        self.apply(ReorderSlides(
            previous=previous,
            next=order,
            focus_next=replacement.id,
            focus_previous=slide_id,
        ))
        return self.slides.get(replacement.id)

    # ── Document info ──────────────────────────────────────────────────

    def set_document_info(self, author: Optional[str] = None, date: Optional[str] = None) -> DocumentInfo:
        """Edit author/date in place. Not recorded in history."""
        if author is not None:
            self.info.author = author
        if date is not None:
            self.info.date = date
        return self.info

    # ── Annotations ────────────────────────────────────────────────────

    def add_annotation(self, slide_id: Optional[str] = None, **fields) -> Optional[Annotation]:
        unknown = set(fields) - set(Annotation.model_fields)
        if unknown:
            raise ValueError(f"Unknown annotation fields: {', '.join(sorted(unknown))}")
        slide = self.image_slide(slide_id)
        if slide is None:
            return None
        defaults = self.marker_defaults.model_copy(deep=True)
        values = {
            "x": defaults.x,
            "y": defaults.y,
            "color": defaults.color,
            "style": defaults.style,
            **fields,
        }
        values["x"], values["y"] = clamp_to_canvas(values["x"], values["y"])
        ann = Annotation(**values)
        previous = slide.model_copy(deep=True)
        self.commit_slide(previous, previous.with_annotations(previous.annotations + [ann]))
        return self.slides.get(slide.id).get_annotation(ann.id)

    def update_annotation(self, annotation_id: str, slide_id: Optional[str] = None,
                          **changes) -> Optional[Annotation]:
        slide = self.image_slide(slide_id)
        if slide is None:
            return None
        idx = slide.annotation_index(annotation_id)
        if idx < 0:
            return None
        for name in _DERIVED_ANNOTATION_FIELDS:
            changes.pop(name, None)
        unknown = set(changes) - set(Annotation.model_fields)
        if unknown:
            raise ValueError(f"Unknown annotation fields: {', '.join(sorted(unknown))}")
        previous = slide.model_copy(deep=True)
        updated = previous.model_copy(deep=True)
        current = updated.annotations[idx]
        edited = Annotation.model_validate({**current.model_dump(), **changes})
        if "x" in changes or "y" in changes:
            x, y = clamp_to_canvas(edited.x, edited.y)
            edited = edited.model_copy(update={"x": x, "y": y})
        updated.annotations[idx] = edited
        self.commit_slide(previous, updated)
        return self.slides.get(slide.id).get_annotation(annotation_id)

    def delete_annotation(self, annotation_id: str, slide_id: Optional[str] = None) -> bool:
        slide = self.image_slide(slide_id)
        if slide is None or slide.get_annotation(annotation_id) is None:
            return False
        previous = slide.model_copy(deep=True)
        remaining = [a for a in previous.annotations if a.id != annotation_id]
        return self.commit_slide(previous, previous.with_annotations(remaining))

    def move_annotation(self, annotation_id: str, to_index: int,
                        slide_id: Optional[str] = None) -> bool:
        slide = self.image_slide(slide_id)
        if slide is None or self.annotation_drag.active:
            return False
        if not self.annotation_drag.begin(slide, annotation_id):
            return False
        self.annotation_drag.move_to(to_index)
        return self.release_annotation_drag()

    # ── Drags ──────────────────────────────────────────────────────────

    def begin_marker_drag(self, annotation_id: str, slide_id: Optional[str] = None) -> bool:
        slide = self.image_slide(slide_id)
        if slide is None:
            return False
        return self.marker_drag.begin(slide, annotation_id)

    def drag_marker(self, x: float, y: float) -> Optional[tuple[float, float]]:
        """Move the dragged marker to a virtual-canvas point."""
        return self.marker_drag.move(x, y)

    def drag_marker_pointer(self, view: CanvasView, pointer_x: float,
                            pointer_y: float) -> Optional[tuple[float, float]]:
        """Move the dragged marker to a container pixel of the editor view."""
        return self.marker_drag.move(*view.pointer_to_virtual(pointer_x, pointer_y))

    def release_marker_drag(self) -> bool:
        if not self.marker_drag.active:
            return False
        current = self.image_slide(self.marker_drag.slide_id)
        if current is None:
            self.marker_drag.cancel()
            return False
        command = self.marker_drag.release(current)
        if command is None:
            return False
        self.apply(command)
        return True

    def cancel_marker_drag(self) -> None:
        self.marker_drag.cancel()

    def begin_slide_drag(self, slide_id: str) -> bool:
        return self.slide_drag.begin(self.slides.slides, slide_id)

    def drag_slide_to(self, index: int) -> list[str]:
        return self.slide_drag.move_to(index)

    def release_slide_drag(self) -> bool:
        command: Optional[ReorderSlides] = self.slide_drag.release()
        if command is None:
            return False
        self.apply(command)
        return True

    def cancel_slide_drag(self) -> None:
        self.slide_drag.cancel()

    def begin_annotation_drag(self, annotation_id: str, slide_id: Optional[str] = None) -> bool:
        slide = self.image_slide(slide_id)
        if slide is None:
            return False
        return self.annotation_drag.begin(slide, annotation_id)

    def drag_annotation_to(self, index: int) -> list[str]:
        return self.annotation_drag.move_to(index)

    def release_annotation_drag(self) -> bool:
        command: Optional[ReorderAnnotations] = self.annotation_drag.release()
        if command is None:
            return False
        self.apply(command)
        return True

    def cancel_annotation_drag(self) -> None:
        self.annotation_drag.cancel()

    def _cancel_drags(self) -> None:
        self.marker_drag.cancel()
        self.slide_drag.cancel()
        self.annotation_drag.cancel()

    # ── Persistence ────────────────────────────────────────────────────

    def to_json(self) -> str:
        payload = {
            "info": self.info.model_dump(mode="json"),
            "slides": slide_list_adapter.dump_python(self.slides.slides, mode="json"),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def load_document(self, data: Union[str, bytes, dict, list]) -> Document:
        """Replace the whole document from persisted data and reset history.

        Accepts ``{"info": ..., "slides": [...]}`` or a bare slide array.
        Raises DocumentLoadError and leaves the session untouched if the
        data is malformed.
        """
        try:
            if isinstance(data, (str, bytes)):
                data = json.loads(data)
            if isinstance(data, list):
                info, raw_slides = DocumentInfo(), data
            elif isinstance(data, dict):
                info = DocumentInfo.model_validate(data.get("info") or {})
                raw_slides = data.get("slides")
            else:
                raise DocumentLoadError(f"Unsupported document payload: {type(data).__name__}")
            slides = slide_list_adapter.validate_python(raw_slides)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise DocumentLoadError(f"Malformed document: {e}") from e
        document = Document(info=info, slides=SlideCollection(slides=slides))

        if not document.slides.slides:
            raise DocumentLoadError("Document has no slides")
        ids = document.slides.ids()
        if len(set(ids)) != len(ids):
            raise DocumentLoadError("Document contains duplicate slide ids")
        for slide in document.slides.image_slides():
            slide.annotations = renumber(slide.annotations)

        self._cancel_drags()
        self.document = document
        self.history.clear()
        self.selected_slide_id = document.slides.slides[0].id
        logger.info(f"Loaded document with {len(document.slides)} slides")
        return document

    def auto_save(self):
        """Save current state to workspace if available."""
        if self.workspace:
            self._save_document_to_workspace()

    def _save_document_to_workspace(self):
        """Persist the document to the workspace directory."""
        if not self.workspace:
            return
        self.workspace.document_path.write_text(self.to_json(), encoding="utf-8")
        logger.info(f"Saved document to {self.workspace.document_path}")

    def load_document_from_workspace(self):
        """Load the document from the workspace if one was saved."""
        if not self.workspace:
            return
        path = self.workspace.document_path
        if path.exists():
            self.load_document(path.read_bytes())
