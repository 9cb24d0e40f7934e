"""Tests for tool argument validation."""

import math

import pytest

from scene_mcp.errors import UnknownOperation
from scene_mcp.models import Bounds, Element, GridSpec, Point
from scene_mcp.validation import (
    IssueCollector,
    ValidationError,
    validate_args,
    validate_closed_keys,
    validate_color,
    validate_enum,
    validate_int,
    validate_list,
    validate_non_empty_string,
    validate_number,
    validate_patch_for,
)


def _issues(exc: pytest.ExceptionInfo) -> list[tuple[str, str]]:
    return [(i.path, i.code) for i in exc.value.issues]


# ===================================================================
# Unit tests for primitive validators
# ===================================================================


class TestValidateNonEmptyString:
    def test_valid(self) -> None:
        assert validate_non_empty_string("hello", "f") == "hello"

    def test_keeps_surrounding_whitespace(self) -> None:
        assert validate_non_empty_string("  hi  ", "f") == "  hi  "

    def test_whitespace_only(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_non_empty_string("   ", "field")
        assert _issues(exc) == [("field", "too_small")]

    def test_empty_string(self) -> None:
        with pytest.raises(ValidationError, match="non-empty") as exc:
            validate_non_empty_string("", "field")
        assert _issues(exc) == [("field", "too_small")]

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="non-empty") as exc:
            validate_non_empty_string(123, "field")
        assert _issues(exc) == [("field", "invalid_type")]


class TestValidateColor:
    def test_valid_hex6(self) -> None:
        assert validate_color("#FF0000", "c") == "#FF0000"

    def test_valid_hex3(self) -> None:
        assert validate_color("#F00", "c") == "#F00"

    def test_named_and_functional(self) -> None:
        assert validate_color("transparent", "c") == "transparent"
        assert validate_color("rgb(1, 2, 3)", "c") == "rgb(1, 2, 3)"

    def test_invalid_format(self) -> None:
        with pytest.raises(ValidationError, match="CSS color") as exc:
            validate_color("#GG0000", "c")
        assert _issues(exc) == [("c", "invalid_string")]

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="color string"):
            validate_color(123, "c")


class TestValidateNumber:
    def test_valid(self) -> None:
        assert validate_number(42, "n") == 42
        assert validate_number(3.14, "n") == 3.14

    def test_min_val(self) -> None:
        with pytest.raises(ValidationError, match=">=") as exc:
            validate_number(-1, "n", min_val=0)
        assert _issues(exc) == [("n", "too_small")]

    def test_max_val(self) -> None:
        with pytest.raises(ValidationError, match="<=") as exc:
            validate_number(200, "n", max_val=100)
        assert _issues(exc) == [("n", "too_big")]

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="number"):
            validate_number(True, "n")

    def test_non_finite_rejected(self) -> None:
        with pytest.raises(ValidationError, match="finite"):
            validate_number(math.nan, "n")
        with pytest.raises(ValidationError, match="finite"):
            validate_number(math.inf, "n")


class TestValidateInt:
    def test_valid(self) -> None:
        assert validate_int(5, "i") == 5

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(True, "i")

    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(2.5, "i")

    def test_min_val(self) -> None:
        with pytest.raises(ValidationError, match=">="):
            validate_int(0, "i", min_val=1)


def test_validate_enum() -> None:
    assert validate_enum("a", "e", ["a", "b"]) == "a"
    with pytest.raises(ValidationError, match="one of") as exc:
        validate_enum("c", "e", ["a", "b"])
    assert _issues(exc) == [("e", "invalid_enum_value")]


def test_validate_list() -> None:
    assert validate_list([1], "l", min_length=1) == [1]
    with pytest.raises(ValidationError, match="at least 1"):
        validate_list([], "l", min_length=1)
    with pytest.raises(ValidationError, match="must be a list"):
        validate_list("x", "l")


def test_validate_closed_keys() -> None:
    validate_closed_keys({"a": 1}, "obj", {"a", "b"})
    with pytest.raises(ValidationError, match="Unrecognized") as exc:
        validate_closed_keys({"a": 1, "zz": 2}, "obj", {"a"})
    assert _issues(exc) == [("obj", "unrecognized_keys")]


def test_issue_collector() -> None:
    issues = IssueCollector()
    assert issues.check(validate_int, 3, "a") == 3
    assert issues.check(validate_int, "x", "b") is None
    issues.add("c", "required", "'c' is required.")
    with pytest.raises(ValidationError) as exc:
        issues.raise_if_any("bad")
    assert _issues(exc) == [("b", "invalid_type"), ("c", "required")]
    assert exc.value.details == {"issues": [i.to_dict() for i in exc.value.issues]}


# ===================================================================
# Per-operation schemas
# ===================================================================


def test_unknown_operation() -> None:
    with pytest.raises(UnknownOperation):
        validate_args("explode", {})


def test_arguments_must_be_object() -> None:
    with pytest.raises(ValidationError, match="dict/object"):
        validate_args("add_elements", ["nope"])


def test_unknown_top_level_key() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_args("get_elements", {"verbose": True})
    assert _issues(exc) == [("", "unrecognized_keys")]


class TestElements:
    def test_valid_elements_are_typed(self) -> None:
        args = validate_args("add_elements", {"elements": [
            {"id": "r1", "type": "rectangle", "x": 0, "y": 0, "width": 100, "height": 50,
             "label": {"text": "API"}},
            {"id": "t1", "type": "text", "x": 5, "y": 5, "text": "note"},
        ]})
        els = args["elements"]
        assert all(isinstance(e, Element) for e in els)
        assert [e.id for e in els] == ["r1", "t1"]
        assert els[0].label.text == "API"

    def test_missing_elements(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {})
        assert _issues(exc) == [("elements", "required")]

    def test_missing_id(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [{"type": "rectangle", "x": 0, "y": 0}]})
        assert _issues(exc) == [("elements[0].id", "required")]

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [{"id": "x", "type": "blob", "x": 0, "y": 0}]})
        assert _issues(exc) == [("elements[0].type", "invalid_enum_value")]

    def test_unknown_keys_are_stripped(self) -> None:
        args = validate_args("add_elements", {"elements": [
            {"id": "r", "type": "rectangle", "x": 0, "y": 0, "seed": 42, "fileId": "nope"},
        ]})
        data = args["elements"][0].to_dict()
        assert "seed" not in data
        assert "fileId" not in data

    def test_kind_required_fields(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [
                {"id": "t", "type": "text", "x": 0, "y": 0},
                {"id": "i", "type": "image", "x": 0, "y": 0},
                {"id": "f", "type": "frame"},
            ]})
        assert _issues(exc) == [
            ("elements[0].text", "required"),
            ("elements[1].fileId", "required"),
            ("elements[2].children", "required"),
        ]

    def test_ranges(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [
                {"id": "r", "type": "rectangle", "x": 0, "y": 0, "opacity": 150,
                 "roughness": -1, "width": -5},
            ]})
        assert sorted(_issues(exc)) == [
            ("elements[0].opacity", "too_big"),
            ("elements[0].roughness", "too_small"),
            ("elements[0].width", "too_small"),
        ]

    def test_lines_may_have_negative_size(self) -> None:
        args = validate_args("add_elements", {"elements": [
            {"id": "l", "type": "line", "x": 0, "y": 0, "width": -50, "height": -10},
        ]})
        assert args["elements"][0].width == -50

    def test_collects_issues_across_elements(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [
                {"type": "rectangle", "x": 0, "y": 0},
                {"id": "b", "type": "blob"},
            ]})
        assert len(exc.value.issues) == 2

    def test_label_is_closed(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [
                {"id": "r", "type": "rectangle", "x": 0, "y": 0, "label": {"text": "a", "glow": 1}},
            ]})
        assert _issues(exc) == [("elements[0].label", "unrecognized_keys")]

    def test_add_allows_repeated_ids_for_per_element_reporting(self) -> None:
        args = validate_args("add_elements", {"elements": [
            {"id": "r", "type": "rectangle", "x": 0, "y": 0},
            {"id": "r", "type": "ellipse", "x": 0, "y": 0},
        ]})
        assert len(args["elements"]) == 2


class TestSetScene:
    def test_defaults_to_empty(self) -> None:
        assert validate_args("set_scene", {}) == {"elements": []}
        assert validate_args("set_scene", None) == {"elements": []}

    def test_duplicate_ids(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("set_scene", {"elements": [
                {"id": "r", "type": "rectangle", "x": 0, "y": 0},
                {"id": "r", "type": "ellipse", "x": 0, "y": 0},
            ]})
        assert _issues(exc) == [("elements[1].id", "duplicate_id")]


class TestUpdates:
    def test_valid(self) -> None:
        args = validate_args("update_elements", {"updates": [
            {"id": "a", "props": {"x": 10, "strokeStyle": "dotted", "endArrowhead": "none"}},
        ]})
        patch = args["updates"][0]
        assert patch.id == "a"
        assert patch.props == {"x": 10, "strokeStyle": "dotted", "endArrowhead": "none"}

    def test_props_are_closed(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("update_elements", {"updates": [{"id": "a", "props": {"customData": {}}}]})
        assert _issues(exc) == [("updates[0].props", "unrecognized_keys")]

    def test_bad_enum_in_props(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("update_elements", {"updates": [{"id": "a", "props": {"strokeStyle": "wavy"}}]})
        assert _issues(exc) == [("updates[0].props.strokeStyle", "invalid_enum_value")]

    def test_empty_updates(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("update_elements", {"updates": []})
        assert _issues(exc) == [("updates", "too_small")]


class TestConnections:
    def test_valid(self) -> None:
        args = validate_args("connect_elements", {"connections": [
            {"fromId": "a", "toId": "b", "label": {"text": "uses"}, "style": {"strokeColor": "#f00"}},
        ]})
        req = args["connections"][0]
        assert (req.from_id, req.to_id, req.arrow_id) == ("a", "b", None)
        assert req.label.text == "uses"
        assert req.style == {"strokeColor": "#f00"}

    def test_self_loop_passes_validation(self) -> None:
        args = validate_args("connect_elements", {"connections": [{"fromId": "a", "toId": "a"}]})
        req = args["connections"][0]
        assert (req.from_id, req.to_id) == ("a", "a")

    def test_missing_endpoint(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("connect_elements", {"connections": [{"fromId": "a"}]})
        assert _issues(exc) == [("connections[0].toId", "required")]

    def test_style_is_closed(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("connect_elements", {"connections": [
                {"fromId": "a", "toId": "b", "style": {"curvy": True}},
            ]})
        assert _issues(exc) == [("connections[0].style", "unrecognized_keys")]


class TestSearch:
    def test_query(self) -> None:
        query = validate_args("search_elements", {
            "type": "text", "textIncludes": "hi", "within": {"x": 0, "y": 0, "width": 10, "height": 10},
        })["query"]
        assert query.type == "text"
        assert query.text_includes == "hi"
        assert query.within == Bounds(0, 0, 10, 10)

    def test_box_is_closed(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("search_elements", {"within": {"x": 0, "y": 0, "width": 1, "height": 1, "z": 0}})
        assert _issues(exc) == [("within", "unrecognized_keys")]

    def test_box_requires_all_fields(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("search_elements", {"within": {"x": 0, "y": 0}})
        assert _issues(exc) == [("within.width", "required"), ("within.height", "required")]


class TestLayoutGrid:
    def test_defaults(self) -> None:
        grid = validate_args("layout_grid", {"ids": ["a"], "origin": {"x": 1, "y": 2}, "cols": 3})["grid"]
        assert grid == GridSpec(ids=["a"], origin=Point(1, 2), cols=3, gap_x=200, gap_y=120)

    def test_cols_must_be_positive(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("layout_grid", {"ids": ["a"], "origin": {"x": 0, "y": 0}, "cols": 0})
        assert _issues(exc) == [("cols", "too_small")]

    def test_required(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("layout_grid", {"ids": ["a"]})
        assert _issues(exc) == [("origin", "required"), ("cols", "required")]


class TestSetLabel:
    def test_valid(self) -> None:
        args = validate_args("set_label", {"id": "r", "label": {"text": "Hi", "textAlign": "left"}})
        assert args["id"] == "r"
        assert args["label"].text_align == "left"

    def test_label_requires_text(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("set_label", {"id": "r", "label": {}})
        assert _issues(exc) == [("label.text", "required")]


class TestIds:
    def test_ids_are_kept_verbatim(self) -> None:
        args = validate_args("add_elements", {"elements": [{"id": " a ", "type": "rectangle", "x": 0, "y": 0}]})
        assert args["elements"][0].id == " a "
        assert validate_args("remove_elements", {"ids": [" a "]})["ids"] == [" a "]

    def test_whitespace_only_ids_rejected_everywhere(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_args("add_elements", {"elements": [{"id": "  ", "type": "rectangle", "x": 0, "y": 0}]})
        assert _issues(exc) == [("elements[0].id", "too_small")]
        with pytest.raises(ValidationError) as exc:
            validate_args("remove_elements", {"ids": ["a", " "]})
        assert _issues(exc) == [("ids[1]", "too_small")]


class TestPatchForElement:
    def _check(self, element: Element, props: dict) -> list[tuple[str, str]]:
        issues = IssueCollector()
        validate_patch_for(element, props, "updates[0].props", issues)
        return [(i.path, i.code) for i in issues.issues]

    def test_valid_patch(self) -> None:
        rect = Element(id="r", type="rectangle", x=0, y=0, width=10, height=10)
        assert self._check(rect, {"width": 40, "strokeStyle": "dashed"}) == []

    def test_negative_size_on_shape(self) -> None:
        rect = Element(id="r", type="rectangle", x=0, y=0, width=10, height=10)
        assert self._check(rect, {"width": -40}) == [("updates[0].props.width", "too_small")]

    def test_negative_size_on_line(self) -> None:
        line = Element(id="l", type="line", x=0, y=0, width=10, height=10)
        assert self._check(line, {"width": -40, "height": -5}) == []

    def test_keys_the_kind_cannot_hold(self) -> None:
        rect = Element(id="r", type="rectangle", x=0, y=0)
        assert self._check(rect, {"text": "hi", "endArrowhead": "arrow"}) == [
            ("updates[0].props", "unrecognized_keys"),
        ]

    def test_arrowheads_on_arrows(self) -> None:
        arrow = Element(id="a", type="arrow", x=0, y=0, width=10, height=0)
        assert self._check(arrow, {"endArrowhead": "none", "startArrowhead": "dot"}) == []

    def test_text_on_text_elements(self) -> None:
        text = Element(id="t", type="text", x=0, y=0, text="old")
        assert self._check(text, {"text": "new", "fontSize": 24}) == []
