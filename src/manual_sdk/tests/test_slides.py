"""Tests for manual_sdk.core.slides — annotations, slide variants, collection."""

import datetime
import json
import pytest
from pydantic import ValidationError

from manual_sdk.core.slides import (
    IMAGE,
    NOTE,
    Annotation,
    AnnotationStyle,
    Document,
    DocumentInfo,
    ImageSlide,
    MarkerDefaults,
    NoteSlide,
    SlideCollection,
    new_slide,
    renumber,
    slide_adapter,
    slide_list_adapter,
)


# ── AnnotationStyle & MarkerDefaults ──────────────────────────────────

class TestAnnotationStyle:
    def test_defaults(self):
        s = AnnotationStyle()
        assert s.font_size == "9pt"
        assert s.text_align == "left"
        assert s.background_color == "transparent"
        assert s.text_color == "#000000"
        assert s.bold is False
        assert s.italic is False
        assert s.underline is False

    def test_rejects_unknown_alignment(self):
        with pytest.raises(ValidationError):
            AnnotationStyle(text_align="justify")

    def test_marker_defaults(self):
        d = MarkerDefaults()
        assert (d.x, d.y) == (640.0, 360.0)
        assert d.color == "#ef4444"
        assert d.style == AnnotationStyle()

    def test_marker_default_styles_are_independent(self):
        a, b = MarkerDefaults(), MarkerDefaults()
        a.style.bold = True
        assert b.style.bold is False


# ── Annotation ────────────────────────────────────────────────────────

class TestAnnotation:
    def test_auto_id(self):
        a, b = Annotation(), Annotation()
        assert a.id.startswith("annotation-")
        assert a.id != b.id

    def test_defaults(self):
        a = Annotation()
        assert a.number == 1
        assert (a.x, a.y) == (640.0, 360.0)
        assert a.color == "#ef4444"
        assert a.note == ""

    def test_renumber_is_dense_and_ordered(self):
        anns = [Annotation(number=7), Annotation(number=2), Annotation(number=7)]
        result = renumber(anns)
        assert [a.number for a in result] == [1, 2, 3]
        assert [a.id for a in result] == [a.id for a in anns]

    def test_renumber_copies(self):
        anns = [Annotation(number=5)]
        result = renumber(anns)
        assert anns[0].number == 5
        assert result[0] is not anns[0]


# ── Slide variants ────────────────────────────────────────────────────

class TestSlideVariants:
    def test_image_slide_defaults(self):
        s = ImageSlide()
        assert s.kind == IMAGE
        assert s.id.startswith("slide-")
        assert s.image_ref is None
        assert s.annotations == []
        assert s.has_image is False

    def test_note_slide_defaults(self):
        s = NoteSlide(title="Chapter 1")
        assert s.kind == NOTE
        assert s.title == "Chapter 1"
        assert s.description == ""

    def test_new_slide(self):
        assert isinstance(new_slide(IMAGE, name="A"), ImageSlide)
        assert isinstance(new_slide(NOTE), NoteSlide)

    def test_new_slide_unknown_kind(self):
        with pytest.raises(ValueError):
            new_slide("VIDEO")

    def test_discriminated_parse(self):
        image = slide_adapter.validate_python({"kind": "IMAGE", "id": "s1", "task_name": "T"})
        note = slide_adapter.validate_python({"kind": "NOTE", "id": "s2", "title": "N"})
        assert isinstance(image, ImageSlide)
        assert isinstance(note, NoteSlide)

    def test_discriminated_parse_rejects_unknown_kind(self):
        with pytest.raises(ValidationError):
            slide_adapter.validate_python({"kind": "VIDEO", "id": "s1"})

    def test_annotation_lookup(self):
        a1, a2 = Annotation(), Annotation()
        s = ImageSlide(annotations=[a1, a2])
        assert s.get_annotation(a2.id) is s.annotations[1]
        assert s.annotation_index(a2.id) == 1
        assert s.get_annotation("missing") is None
        assert s.annotation_index("missing") == -1

    def test_with_annotations_renumbers(self):
        a1, a2 = Annotation(number=1), Annotation(number=2)
        s = ImageSlide(annotations=[a1, a2])
        swapped = s.with_annotations([a2, a1])
        assert [a.id for a in swapped.annotations] == [a2.id, a1.id]
        assert [a.number for a in swapped.annotations] == [1, 2]
        assert [a.number for a in s.annotations] == [1, 2]
        assert s.annotations[0].id == a1.id

    def test_json_roundtrip_keeps_variant(self):
        slides = [ImageSlide(annotations=[Annotation(note="<b>x</b>")]), NoteSlide(title="t")]
        data = json.loads(slide_list_adapter.dump_json(slides))
        restored = slide_list_adapter.validate_python(data)
        assert restored == slides


# ── SlideCollection ───────────────────────────────────────────────────

class TestSlideCollection:
    def _collection(self, n=3) -> SlideCollection:
        coll = SlideCollection()
        for i in range(n):
            coll.insert(i, ImageSlide(id=f"s{i}", name=f"Slide {i + 1}"))
        return coll

    def test_get_and_index(self):
        coll = self._collection()
        assert coll.get("s1").name == "Slide 2"
        assert coll.index_of("s2") == 2
        assert coll.get("nope") is None
        assert coll.index_of("nope") == -1

    def test_insert_clamps_index(self):
        coll = self._collection(2)
        coll.insert(99, NoteSlide(id="end"))
        coll.insert(-5, NoteSlide(id="start"))
        assert coll.ids() == ["start", "s0", "s1", "end"]

    def test_remove(self):
        coll = self._collection()
        removed = coll.remove("s1")
        assert removed.id == "s1"
        assert coll.ids() == ["s0", "s2"]

    def test_remove_unknown(self):
        coll = self._collection()
        assert coll.remove("nope") is None
        assert len(coll) == 3

    def test_replace(self):
        coll = self._collection()
        assert coll.replace(ImageSlide(id="s1", name="Renamed")) is True
        assert coll.get("s1").name == "Renamed"
        assert coll.replace(ImageSlide(id="zzz")) is False

    def test_image_slides(self):
        coll = self._collection(2)
        coll.insert(1, NoteSlide(id="n"))
        assert [s.id for s in coll.image_slides()] == ["s0", "s1"]

    def test_summary(self):
        coll = self._collection(1)
        coll.insert(1, NoteSlide(id="n", title="Intro", description="x" * 100))
        summary = coll.to_summary()
        assert summary[0]["kind"] == "IMAGE"
        assert summary[0]["annotation_count"] == 0
        assert summary[1]["title"] == "Intro"
        assert summary[1]["description_snippet"].endswith("...")


# ── Document ──────────────────────────────────────────────────────────

class TestDocument:
    def test_info_defaults_to_today(self):
        info = DocumentInfo()
        assert info.author == ""
        assert info.date == datetime.date.today().isoformat()

    def test_document_roundtrip(self):
        doc = Document(info=DocumentInfo(author="Kim", date="2024-01-02"))
        doc.slides.insert(0, ImageSlide(id="a", annotations=[Annotation()]))
        doc.slides.insert(1, NoteSlide(id="b", title="End"))
        restored = Document.model_validate_json(doc.model_dump_json())
        assert restored == doc
        assert isinstance(restored.slides.get("b"), NoteSlide)
