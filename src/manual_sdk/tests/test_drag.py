"""Tests for manual_sdk.core.drag — marker and reorder drag sessions."""

from manual_sdk.core.commands import ReorderAnnotations, ReorderSlides, UpdateSlide
from manual_sdk.core.drag import (
    AnnotationReorderDrag,
    DragState,
    MarkerDrag,
    SlideReorderDrag,
)
from manual_sdk.core.slides import Annotation, ImageSlide, NoteSlide, renumber


def _slide() -> ImageSlide:
    return ImageSlide(id="s", annotations=renumber([
        Annotation(id="a", x=100, y=100),
        Annotation(id="b", x=200, y=200),
        Annotation(id="c", x=300, y=300),
    ]))


# ── MarkerDrag ────────────────────────────────────────────────────────

class TestMarkerDrag:
    def test_starts_idle(self):
        drag = MarkerDrag()
        assert drag.state == DragState.IDLE
        assert drag.release() is None
        assert drag.move(1, 1) is None

    def test_begin_unknown_annotation(self):
        drag = MarkerDrag()
        assert drag.begin(_slide(), "zzz") is False
        assert drag.state == DragState.IDLE

    def test_moves_do_not_touch_slide(self):
        slide = _slide()
        drag = MarkerDrag()
        drag.begin(slide, "b")
        for i in range(50):
            drag.move(200 + i, 200 + i)
        assert drag.state == DragState.DRAGGING
        assert (slide.annotations[1].x, slide.annotations[1].y) == (200, 200)
        assert drag.display_position(slide.annotations[1]) == (249, 249)
        assert drag.display_position(slide.annotations[0]) == (100, 100)

    def test_release_builds_single_update(self):
        slide = _slide()
        drag = MarkerDrag()
        drag.begin(slide, "b")
        drag.move(500, 400)
        drag.move(640, 360)
        cmd = drag.release()
        assert isinstance(cmd, UpdateSlide)
        assert cmd.previous == slide
        moved = cmd.next.get_annotation("b")
        assert (moved.x, moved.y) == (640, 360)
        assert cmd.next.get_annotation("a") == slide.get_annotation("a")
        assert drag.state == DragState.IDLE

    def test_release_onto_current_slide_keeps_other_edits(self):
        drag = MarkerDrag()
        drag.begin(_slide(), "b")
        drag.move(50, 60)
        current = _slide()
        current.annotations[0] = current.annotations[0].model_copy(update={"note": "edited"})
        current.annotations[1] = current.annotations[1].model_copy(update={"color": "#000000"})

        cmd = drag.release(current)
        assert cmd.previous == current
        assert cmd.next.get_annotation("a").note == "edited"
        moved = cmd.next.get_annotation("b")
        assert (moved.x, moved.y, moved.color) == (50, 60, "#000000")

    def test_release_after_annotation_removed(self):
        drag = MarkerDrag()
        drag.begin(_slide(), "b")
        drag.move(50, 60)
        current = _slide().with_annotations([a for a in _slide().annotations if a.id != "b"])
        assert drag.release(current) is None
        assert drag.state == DragState.IDLE

    def test_move_is_clamped(self):
        drag = MarkerDrag()
        drag.begin(_slide(), "a")
        assert drag.move(-50, 9999) == (0.0, 720.0)

    def test_release_without_movement_produces_nothing(self):
        drag = MarkerDrag()
        drag.begin(_slide(), "a")
        assert drag.release() is None

    def test_cancel_discards(self):
        drag = MarkerDrag()
        drag.begin(_slide(), "a")
        drag.move(10, 10)
        drag.cancel()
        assert drag.state == DragState.IDLE
        assert drag.release() is None


# ── Reorder drags ─────────────────────────────────────────────────────

class TestSlideReorderDrag:
    def _slides(self):
        return [ImageSlide(id="s0"), NoteSlide(id="s1"), ImageSlide(id="s2")]

    def test_transient_order(self):
        slides = self._slides()
        drag = SlideReorderDrag()
        assert drag.begin(slides, "s0")
        assert drag.move_to(1) == ["s1", "s0", "s2"]
        assert drag.move_to(2) == ["s1", "s2", "s0"]
        assert [s.id for s in slides] == ["s0", "s1", "s2"]

    def test_release(self):
        drag = SlideReorderDrag()
        drag.begin(self._slides(), "s2")
        drag.move_to(0)
        cmd = drag.release()
        assert isinstance(cmd, ReorderSlides)
        assert [s.id for s in cmd.previous] == ["s0", "s1", "s2"]
        assert [s.id for s in cmd.next] == ["s2", "s0", "s1"]

    def test_release_back_in_place_produces_nothing(self):
        drag = SlideReorderDrag()
        drag.begin(self._slides(), "s1")
        drag.move_to(0)
        drag.move_to(1)
        assert drag.release() is None

    def test_cancel(self):
        drag = SlideReorderDrag()
        drag.begin(self._slides(), "s1")
        drag.move_to(2)
        drag.cancel()
        assert drag.release() is None
        assert drag.move_to(0) == []


class TestAnnotationReorderDrag:
    def test_release(self):
        drag = AnnotationReorderDrag()
        assert drag.begin(_slide(), "c")
        drag.move_to(0)
        cmd = drag.release()
        assert isinstance(cmd, ReorderAnnotations)
        assert cmd.slide_id == "s"
        assert [a.id for a in cmd.next] == ["c", "a", "b"]
        assert drag.slide_id is None

    def test_begin_unknown(self):
        drag = AnnotationReorderDrag()
        assert drag.begin(_slide(), "nope") is False
        assert drag.release() is None
