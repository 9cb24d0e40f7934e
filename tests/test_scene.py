"""Tests for the scene store."""

import pytest

from scene_mcp.errors import NotFound, UnsupportedOperation
from scene_mcp.models import (
    Binding,
    Bounds,
    Element,
    ElementPatch,
    Label,
    Point,
    SceneQuery,
)
from scene_mcp.scene import DroppedRef, SceneStore
from scene_mcp.validation import ValidationError


def _rect(eid: str, x: float = 0, y: float = 0, w: float = 100, h: float = 50) -> Element:
    return Element(id=eid, type="rectangle", x=x, y=y, width=w, height=h)


def _arrow(eid: str, start: str, end: str) -> Element:
    return Element(id=eid, type="arrow", start=Binding(start), end=Binding(end))


class TestReplace:
    def test_replace_and_order(self) -> None:
        store = SceneStore()
        store.replace([_rect("b"), _rect("a")])
        assert store.ids() == ["b", "a"]
        assert len(store) == 2
        assert "a" in store

    def test_clear(self) -> None:
        store = SceneStore([_rect("a")])
        store.replace([])
        assert store.get_all() == []

    def test_duplicate_ids_rejected(self) -> None:
        store = SceneStore([_rect("keep")])
        with pytest.raises(ValidationError) as exc:
            store.replace([_rect("a"), _rect("a")])
        assert exc.value.issues[0].code == "duplicate_id"
        assert store.ids() == ["keep"]

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SceneStore().replace([_rect("")])

    def test_dangling_references_dropped(self) -> None:
        store = SceneStore()
        dropped = store.replace([_rect("a"), _arrow("x", "a", "ghost")])
        assert dropped == [DroppedRef("x", "end", "ghost")]
        arrow = store.get("x")
        assert arrow.start == Binding("a")
        assert arrow.end is None


class TestAdd:
    def test_appends_in_order(self) -> None:
        store = SceneStore([_rect("a")])
        result = store.add([_rect("b"), _rect("c")])
        assert result.created == ["b", "c"]
        assert result.duplicates == []
        assert store.ids() == ["a", "b", "c"]

    def test_existing_id_is_rejected_not_replaced(self) -> None:
        store = SceneStore([_rect("a", x=5)])
        result = store.add([_rect("a", x=99), _rect("b")])
        assert result.created == ["b"]
        assert result.duplicates == ["a"]
        assert store.get("a").x == 5
        assert store.ids().count("a") == 1

    def test_repeated_id_in_batch(self) -> None:
        store = SceneStore()
        result = store.add([_rect("a"), _rect("a")])
        assert result.created == ["a"]
        assert result.duplicates == ["a"]

    def test_labelled_shapes_are_autosized(self) -> None:
        store = SceneStore()
        el = Element(id="r", type="rectangle", x=0, y=0, label=Label(text="Hi"))
        store.add([el])
        assert (store.get("r").width, store.get("r").height) == (120, 50)

    def test_references_to_later_elements_in_batch(self) -> None:
        store = SceneStore()
        result = store.add([_arrow("x", "a", "b"), _rect("a"), _rect("b")])
        assert result.dropped_refs == []

    def test_dangling_reference_reported(self) -> None:
        store = SceneStore([_rect("a")])
        result = store.add([_arrow("x", "a", "ghost")])
        assert result.dropped_refs == [DroppedRef("x", "end", "ghost")]

    def test_frame_fitted_to_children(self) -> None:
        store = SceneStore([_rect("a", 0, 0, 100, 50), _rect("b", 200, 100, 100, 50)])
        store.add([Element(id="f", type="frame", children=["a", "b", "ghost"])])
        frame = store.get("f")
        assert frame.children == ["a", "b"]
        assert frame.bounds() == Bounds(-20, -20, 340, 190)


class TestUpdate:
    def test_partial_failure_isolation(self) -> None:
        store = SceneStore([_rect("A", x=0), _rect("B", x=50)])
        before_b = store.get("B").to_dict()
        result = store.update([
            ElementPatch("A", {"x": 10, "strokeColor": "#ff0000"}),
            ElementPatch("ghost", {"x": 1}),
        ])
        assert result.updated == ["A"]
        assert result.not_found == ["ghost"]
        assert store.get("A").x == 10
        assert store.get("A").style.stroke_color == "#ff0000"
        assert store.get("B").to_dict() == before_b


class TestRemove:
    def test_remove_reports_not_found(self) -> None:
        store = SceneStore([_rect("a"), _rect("b")])
        result = store.remove(["a", "ghost"])
        assert result.removed == ["a"]
        assert result.not_found == ["ghost"]
        assert store.ids() == ["b"]

    def test_frame_removal_keeps_children(self) -> None:
        store = SceneStore([
            _rect("a"),
            Element(id="f", type="frame", x=0, y=0, width=10, height=10, children=["a"]),
        ])
        store.remove(["f"])
        assert store.ids() == ["a"]

    def test_bindings_to_removed_are_pruned(self) -> None:
        store = SceneStore([_rect("a"), _rect("b"), _arrow("x", "a", "b")])
        result = store.remove(["b"])
        assert result.dropped_refs == [DroppedRef("x", "end", "b")]
        assert store.get("x").end is None

    def test_membership_and_container_pruned(self) -> None:
        store = SceneStore([
            _rect("a"),
            Element(id="t", type="text", text="hi", container_id="a"),
            Element(id="f", type="frame", x=0, y=0, width=10, height=10, children=["a", "t"]),
        ])
        store.remove(["a"])
        assert store.get("t").container_id is None
        assert store.get("f").children == ["t"]


class TestFind:
    def test_by_type_text_and_box(self) -> None:
        store = SceneStore([
            _rect("a", 0, 0),
            Element(id="t", type="text", x=500, y=500, width=50, height=20, text="Hello World"),
            Element(id="r", type="rectangle", x=500, y=0, width=10, height=10, label=Label(text="hello")),
        ])
        assert [e.id for e in store.find(SceneQuery(type="text"))] == ["t"]
        assert [e.id for e in store.find(SceneQuery(text_includes="HELLO"))] == ["t", "r"]
        assert [e.id for e in store.find(SceneQuery(within=Bounds(0, 0, 600, 5)))] == ["a", "r"]

    def test_find_does_not_mutate(self) -> None:
        store = SceneStore([_rect("a")])
        snapshot = store.snapshot()
        store.find(SceneQuery(type="rectangle"))
        assert store.snapshot() == snapshot


class TestSetLabel:
    def test_sets_label(self) -> None:
        store = SceneStore([_rect("a")])
        store.set_label("a", Label(text="Hi"))
        assert store.get("a").label.text == "Hi"

    def test_not_found(self) -> None:
        with pytest.raises(NotFound):
            SceneStore().set_label("ghost", Label(text="x"))

    def test_unsupported_kind(self) -> None:
        store = SceneStore([Element(id="t", type="text", text="x")])
        with pytest.raises(UnsupportedOperation):
            store.set_label("t", Label(text="y"))


def test_move() -> None:
    store = SceneStore([_rect("a"), _rect("b")])
    moved = store.move({"b": Point(5, 6)})
    assert moved == ["b"]
    assert (store.get("b").x, store.get("b").y) == (5, 6)


class TestSnapshot:
    def test_round_trip(self) -> None:
        store = SceneStore([_rect("a", 1, 2), _arrow("x", "a", "a")])
        restored = SceneStore()
        assert restored.load_snapshot(store.snapshot()) == 2
        assert restored.snapshot() == store.snapshot()

    def test_invalid_stored_elements_are_skipped(self) -> None:
        store = SceneStore()
        count = store.load_snapshot({"elements": [
            {"id": "a", "type": "rectangle", "x": 0, "y": 0},
            {"id": "b", "type": "hexagon", "x": 0, "y": 0},
            "garbage",
            {"id": "a", "type": "ellipse", "x": 0, "y": 0},
        ]})
        assert count == 1
        assert store.ids() == ["a"]

    def test_empty_document(self) -> None:
        store = SceneStore([_rect("a")])
        assert store.load_snapshot(None) == 0
        assert len(store) == 0
