"""
Input validation for scene MCP tool arguments.

Provides reusable validators that produce clear, field-level issues for
all arguments received from agent callers.  Primitive validators raise a
:class:`ValidationError` holding a single issue; per-operation schemas
collect every issue of a request before failing, and on success return
typed values (elements, patches, queries, ...) ready for the scene store.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from scene_mcp.errors import SceneError, UnknownOperation
from scene_mcp.models import (
    ARROWHEAD_NONE,
    ELEMENT_TYPES,
    FRAME_TYPES,
    LINEAR_TYPES,
    STYLE_PROPS,
    Arrowhead,
    Bounds,
    ConnectionRequest,
    Element,
    ElementPatch,
    FillStyle,
    GridSpec,
    Label,
    Point,
    SceneQuery,
    StrokeStyle,
    TextAlign,
    VerticalAlign,
)

logger = logging.getLogger("scene-mcp.validation")


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """One field-level problem: where, what kind, and a readable message."""
    path: str
    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "code": self.code, "message": self.message}


class ValidationError(SceneError):
    """Raised when input validation fails."""

    code = "ValidationError"

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[list[Issue]] = None,
        path: str = "",
        issue_code: str = "invalid_type",
    ) -> None:
        self.issues = issues if issues is not None else [Issue(path, issue_code, message)]
        super().__init__(message, {"issues": [i.to_dict() for i in self.issues]})


class IssueCollector:
    """Accumulates issues from several validators instead of stopping at the first."""

    def __init__(self) -> None:
        self.issues: list[Issue] = []

    def check(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ValidationError as exc:
            self.issues.extend(exc.issues)
            return None

    def add(self, path: str, code: str, message: str) -> None:
        self.issues.append(Issue(path, code, message))

    def raise_if_any(self, message: str) -> None:
        if self.issues:
            raise ValidationError(message, issues=list(self.issues))


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a string with non-whitespace content; returned unchanged."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{field_name}' must be a non-empty string.",
            path=field_name,
            issue_code="invalid_type" if not isinstance(value, str) else "too_small",
        )
    return value


def validate_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a string (empty allowed)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}.",
            path=field_name,
        )
    return value


_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAMED_COLOR = re.compile(r"^[a-zA-Z]+$")
_FUNC_COLOR = re.compile(r"^(?:rgb|rgba|hsl|hsla)\([^()]*\)$")


def validate_color(value: Any, field_name: str) -> str:
    """Validate a CSS color: hex (#RGB, #RGBA, #RRGGBB, #RRGGBBAA), a name, or rgb()/hsl()."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a color string, got {type(value).__name__}.",
            path=field_name,
        )
    value = value.strip()
    if value.startswith("#"):
        ok = bool(_HEX_COLOR.match(value))
    else:
        ok = bool(_NAMED_COLOR.match(value) or _FUNC_COLOR.match(value))
    if not ok:
        raise ValidationError(
            f"'{field_name}' must be a CSS color (#RRGGBB, a color name or rgb()), got '{value}'.",
            path=field_name,
            issue_code="invalid_string",
        )
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a finite numeric value and optional range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}.",
            path=field_name,
        )
    if not math.isfinite(value):
        raise ValidationError(
            f"'{field_name}' must be a finite number, got {value}.",
            path=field_name,
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}.",
            path=field_name,
            issue_code="too_small",
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}.",
            path=field_name,
            issue_code="too_big",
        )
    return value


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}.",
            path=field_name,
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}.",
            path=field_name,
            issue_code="too_small",
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}.",
            path=field_name,
            issue_code="too_big",
        )
    return value


def validate_enum(value: Any, field_name: str, allowed: list[str]) -> str:
    """Validate that a string value is one of the allowed choices (exact match)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}.",
            path=field_name,
        )
    if value not in allowed:
        choices = ", ".join(allowed)
        raise ValidationError(
            f"'{field_name}' must be one of [{choices}], got '{value}'.",
            path=field_name,
            issue_code="invalid_enum_value",
        )
    return value


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}.",
            path=field_name,
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}.",
            path=field_name,
            issue_code="too_small",
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    """Ensure *value* is a dict."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"'{field_name}' must be a dict/object, got {type(value).__name__}.",
            path=field_name,
        )
    return value


def validate_closed_keys(value: dict, field_name: str, allowed: set[str] | frozenset[str]) -> None:
    """Reject keys outside *allowed* (closed object schema)."""
    extra = sorted(k for k in value if k not in allowed)
    if extra:
        where = f"'{field_name}'" if field_name else "arguments"
        raise ValidationError(
            f"Unrecognized key(s) in {where}: {', '.join(map(str, extra))}.",
            path=field_name,
            issue_code="unrecognized_keys",
        )


def _join(base: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{base}[{key}]"
    return f"{base}.{key}" if base else key


def validate_id_list(value: Any, field_name: str, *, min_length: int = 1) -> list[str]:
    """A list of non-empty element id strings."""
    validate_list(value, field_name, min_length=min_length)
    issues = IssueCollector()
    ids: list[str] = []
    for i, item in enumerate(value):
        checked = issues.check(validate_non_empty_string, item, _join(field_name, i))
        if checked is not None:
            ids.append(checked)
    issues.raise_if_any(f"'{field_name}' contains invalid ids.")
    return ids


# ---------------------------------------------------------------------------
# Domain vocabularies
# ---------------------------------------------------------------------------

_STROKE_STYLES = [s.value for s in StrokeStyle]
_FILL_STYLES = [s.value for s in FillStyle]
_TEXT_ALIGNS = [a.value for a in TextAlign]
_VERTICAL_ALIGNS = [a.value for a in VerticalAlign]
_ARROWHEADS = [a.value for a in Arrowhead] + [ARROWHEAD_NONE]

_COLOR_PROPS = {"strokeColor", "backgroundColor"}

_COMMON_ELEMENT_KEYS = {"id", "type", "x", "y", "width", "height", "angle"} | set(STYLE_PROPS)
_KIND_KEYS: dict[str, set[str]] = {
    "rectangle": {"label"},
    "ellipse": {"label"},
    "diamond": {"label"},
    "line": {"label", "start", "end"},
    "arrow": {"label", "start", "end", "startArrowhead", "endArrowhead"},
    "text": {"text", "fontSize", "fontFamily", "textAlign", "verticalAlign", "containerId"},
    "image": {"fileId"},
    "frame": {"children", "name"},
    "magicframe": {"children", "name"},
}

_PATCH_KEYS = frozenset({
    "x", "y", "width", "height", "angle", "text",
    "strokeColor", "backgroundColor", "strokeStyle", "fillStyle",
    "strokeWidth", "opacity", "roughness",
    "fontSize", "fontFamily", "textAlign", "verticalAlign",
    "startArrowhead", "endArrowhead",
})

_LABEL_KEYS = frozenset({
    "text", "fontSize", "fontFamily", "textAlign", "verticalAlign", "x", "y", "strokeColor",
})

_CONNECTION_KEYS = frozenset({"fromId", "toId", "id", "label", "style"})
_CONNECTION_STYLE_KEYS = STYLE_PROPS | {"angle", "startArrowhead", "endArrowhead"}
_BOX_KEYS = frozenset({"x", "y", "width", "height"})


# ---------------------------------------------------------------------------
# Property validators (shared by elements, patches and connection styles)
# ---------------------------------------------------------------------------

def _validate_prop(key: str, value: Any, path: str) -> Any:
    """Validate one camelCase property value by name."""
    if key in _COLOR_PROPS:
        return validate_color(value, path)
    if key == "strokeStyle":
        return validate_enum(value, path, _STROKE_STYLES)
    if key == "fillStyle":
        return validate_enum(value, path, _FILL_STYLES)
    if key == "strokeWidth":
        return validate_number(value, path, min_val=0)
    if key == "opacity":
        return validate_number(value, path, min_val=0, max_val=100)
    if key == "roughness":
        return validate_number(value, path, min_val=0, max_val=4)
    if key == "fontSize":
        return validate_number(value, path, min_val=1)
    if key in ("fontFamily", "text", "name"):
        return validate_string(value, path)
    if key == "textAlign":
        return validate_enum(value, path, _TEXT_ALIGNS)
    if key == "verticalAlign":
        return validate_enum(value, path, _VERTICAL_ALIGNS)
    if key in ("startArrowhead", "endArrowhead"):
        return validate_enum(value, path, _ARROWHEADS)
    if key in ("containerId", "fileId"):
        return validate_non_empty_string(value, path)
    # x, y, width, height, angle and label offsets
    return validate_number(value, path)


def validate_label_dict(value: Any, path: str) -> Label:
    """Validate a bound label object (closed schema)."""
    validate_dict(value, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, value, path, _LABEL_KEYS)
    if "text" not in value:
        issues.add(_join(path, "text"), "required", f"'{_join(path, 'text')}' is required.")
    for key, item in value.items():
        if key in _LABEL_KEYS:
            issues.check(_validate_prop, key, item, _join(path, key))
    issues.raise_if_any(f"Invalid label at '{path}'.")
    return Label.from_dict(value)


def validate_box(value: Any, path: str) -> Bounds:
    """Validate a ``{x, y, width, height}`` box."""
    validate_dict(value, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, value, path, _BOX_KEYS)
    for key in ("x", "y", "width", "height"):
        if key not in value:
            issues.add(_join(path, key), "required", f"'{_join(path, key)}' is required.")
        else:
            issues.check(validate_number, value[key], _join(path, key))
    issues.raise_if_any(f"Invalid box at '{path}'.")
    return Bounds(value["x"], value["y"], value["width"], value["height"])


def validate_point(value: Any, path: str) -> Point:
    """Validate an ``{x, y}`` point."""
    validate_dict(value, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, value, path, frozenset({"x", "y"}))
    for key in ("x", "y"):
        if key not in value:
            issues.add(_join(path, key), "required", f"'{_join(path, key)}' is required.")
        else:
            issues.check(validate_number, value[key], _join(path, key))
    issues.raise_if_any(f"Invalid point at '{path}'.")
    return Point(value["x"], value["y"])


def _validate_binding(value: Any, path: str) -> dict[str, str]:
    validate_dict(value, path)
    if "id" not in value:
        raise ValidationError(f"'{_join(path, 'id')}' is required.",
                              path=_join(path, "id"), issue_code="required")
    return {"id": validate_non_empty_string(value["id"], _join(path, "id"))}


def _validate_children(value: Any, path: str) -> list[str]:
    return validate_id_list(value, path, min_length=0)


# ---------------------------------------------------------------------------
# Element / patch / connection validators
# ---------------------------------------------------------------------------

def validate_element_dict(e: Any, path: str, issues: IssueCollector) -> Optional[dict[str, Any]]:
    """Validate one element object, tagged by its ``type``.

    Issues are added to *issues*; the cleaned dict (unknown keys stripped)
    is returned, or None when the element is invalid.
    """
    if not isinstance(e, dict):
        issues.add(path, "invalid_type", f"Element at '{path}' must be a dict/object.")
        return None
    before = len(issues.issues)

    kind = e.get("type")
    if "type" not in e:
        issues.add(_join(path, "type"), "required", f"'{_join(path, 'type')}' is required.")
        return None
    if issues.check(validate_enum, kind, _join(path, "type"), ELEMENT_TYPES) is None:
        return None

    if "id" not in e:
        issues.add(_join(path, "id"), "required",
                   f"'{_join(path, 'id')}' is required; every element needs a stable id.")
    else:
        issues.check(validate_non_empty_string, e["id"], _join(path, "id"))

    positional_required = kind not in FRAME_TYPES
    for key in ("x", "y"):
        if key in e:
            issues.check(validate_number, e[key], _join(path, key))
        elif positional_required:
            issues.add(_join(path, key), "required", f"'{_join(path, key)}' is required.")

    allowed = _COMMON_ELEMENT_KEYS | _KIND_KEYS[kind]
    min_size = None if kind in LINEAR_TYPES else 0
    for key, value in e.items():
        if key not in allowed:
            logger.debug("Stripping unknown key '%s' from %s element at %s", key, kind, path)
            continue
        sub = _join(path, key)
        if key in ("id", "type", "x", "y"):
            continue
        if key in ("width", "height"):
            issues.check(validate_number, value, sub, min_val=min_size)
        elif key == "label":
            issues.check(validate_label_dict, value, sub)
        elif key in ("start", "end"):
            issues.check(_validate_binding, value, sub)
        elif key == "children":
            issues.check(_validate_children, value, sub)
        else:
            issues.check(_validate_prop, key, value, sub)

    if kind == "text" and "text" not in e:
        issues.add(_join(path, "text"), "required", f"'{_join(path, 'text')}' is required for text elements.")
    if kind == "image" and "fileId" not in e:
        issues.add(_join(path, "fileId"), "required", f"'{_join(path, 'fileId')}' is required for image elements.")
    if kind in FRAME_TYPES and "children" not in e:
        issues.add(_join(path, "children"), "required", f"'{_join(path, 'children')}' is required for {kind} elements.")

    if len(issues.issues) > before:
        return None
    return {k: v for k, v in e.items() if k in allowed}


def validate_elements(
    value: Any,
    field_name: str,
    *,
    unique: bool,
) -> list[Element]:
    """Validate a list of element objects and build :class:`Element` records.

    With *unique*, repeated ids inside the list are reported as issues.
    """
    validate_list(value, field_name)
    issues = IssueCollector()
    cleaned: list[dict[str, Any]] = []
    seen: set[str] = set()
    for i, e in enumerate(value):
        path = _join(field_name, i)
        item = validate_element_dict(e, path, issues)
        if item is None:
            continue
        if unique and item["id"] in seen:
            issues.add(_join(path, "id"), "duplicate_id",
                       f"Duplicate element id '{item['id']}' at '{path}'.")
            continue
        seen.add(item["id"])
        cleaned.append(item)
    issues.raise_if_any(f"Invalid '{field_name}'.")
    return [Element.from_dict(item) for item in cleaned]


def validate_patch_props(value: Any, path: str) -> dict[str, Any]:
    """Validate an update patch; unknown properties are rejected."""
    validate_dict(value, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, value, path, _PATCH_KEYS)
    for key, item in value.items():
        if key in _PATCH_KEYS:
            issues.check(_validate_prop, key, item, _join(path, key))
    issues.raise_if_any(f"Invalid props at '{path}'.")
    return dict(value)


def validate_patch_for(element: Element, props: dict[str, Any], path: str, issues: IssueCollector) -> None:
    """Check a patch against the kind of the element it targets.

    The patched element must still be a valid element of its kind, so
    properties the kind cannot hold and out-of-range sizes are reported
    under *path* before anything is applied.
    """
    allowed = _COMMON_ELEMENT_KEYS | _KIND_KEYS[element.type]
    extra = sorted(k for k in props if k not in allowed)
    if extra:
        issues.add(path, "unrecognized_keys",
                   f"Key(s) not supported on {element.type} elements: {', '.join(extra)}.")
        return
    merged = element.to_dict()
    merged.update(props)
    validate_element_dict(merged, path, issues)


def validate_update_dict(u: Any, index: int) -> ElementPatch:
    """Validate a single ``{id, props}`` update descriptor."""
    path = f"updates[{index}]"
    validate_dict(u, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, u, path, frozenset({"id", "props"}))
    element_id = None
    if "id" not in u:
        issues.add(_join(path, "id"), "required", f"'{_join(path, 'id')}' is required.")
    else:
        element_id = issues.check(validate_non_empty_string, u["id"], _join(path, "id"))
    props: dict[str, Any] = {}
    if "props" not in u:
        issues.add(_join(path, "props"), "required", f"'{_join(path, 'props')}' is required.")
    else:
        props = issues.check(validate_patch_props, u["props"], _join(path, "props")) or {}
    issues.raise_if_any(f"Invalid update at index {index}.")
    return ElementPatch(id=element_id, props=props)


def validate_connection_dict(c: Any, index: int) -> ConnectionRequest:
    """Validate a single connection request."""
    path = f"connections[{index}]"
    validate_dict(c, path)
    issues = IssueCollector()
    issues.check(validate_closed_keys, c, path, _CONNECTION_KEYS)
    ends: dict[str, Any] = {}
    for key in ("fromId", "toId"):
        if key not in c:
            issues.add(_join(path, key), "required", f"'{_join(path, key)}' is required.")
        else:
            ends[key] = issues.check(validate_non_empty_string, c[key], _join(path, key))
    arrow_id = None
    if "id" in c:
        arrow_id = issues.check(validate_non_empty_string, c["id"], _join(path, "id"))
    label = None
    if "label" in c:
        label = issues.check(validate_label_dict, c["label"], _join(path, "label"))
    style: dict[str, Any] = {}
    if "style" in c:
        spath = _join(path, "style")
        if issues.check(validate_dict, c["style"], spath) is not None:
            issues.check(validate_closed_keys, c["style"], spath, _CONNECTION_STYLE_KEYS)
            for key, item in c["style"].items():
                if key in _CONNECTION_STYLE_KEYS:
                    issues.check(_validate_prop, key, item, _join(spath, key))
            style = dict(c["style"])
    issues.raise_if_any(f"Invalid connection at index {index}.")
    return ConnectionRequest(
        from_id=ends["fromId"],
        to_id=ends["toId"],
        arrow_id=arrow_id,
        label=label,
        style=style,
    )


# ---------------------------------------------------------------------------
# Per-operation argument schemas
# ---------------------------------------------------------------------------

def _args_get_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset())
    return {}


def _args_set_scene(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"elements"}))
    elements = issues.check(validate_elements, args.get("elements", []), "elements", unique=True)
    return {"elements": elements or []}


def _args_add_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"elements"}))
    if "elements" not in args:
        issues.add("elements", "required", "'elements' is required.")
        return {}
    return {"elements": issues.check(validate_elements, args["elements"], "elements", unique=False)}


def _args_update_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"updates"}))
    if "updates" not in args:
        issues.add("updates", "required", "'updates' is required.")
        return {}
    if issues.check(validate_list, args["updates"], "updates", min_length=1) is None:
        return {}
    patches = [issues.check(validate_update_dict, u, i) for i, u in enumerate(args["updates"])]
    return {"updates": patches}


def _args_remove_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"ids"}))
    if "ids" not in args:
        issues.add("ids", "required", "'ids' is required.")
        return {}
    return {"ids": issues.check(validate_id_list, args["ids"], "ids")}


def _args_search_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"type", "textIncludes", "within"}))
    query = SceneQuery()
    if "type" in args:
        query.type = issues.check(validate_enum, args["type"], "type", ELEMENT_TYPES)
    if "textIncludes" in args:
        query.text_includes = issues.check(validate_string, args["textIncludes"], "textIncludes")
    if "within" in args:
        query.within = issues.check(validate_box, args["within"], "within")
    return {"query": query}


def _args_connect_elements(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"connections"}))
    if "connections" not in args:
        issues.add("connections", "required", "'connections' is required.")
        return {}
    if issues.check(validate_list, args["connections"], "connections", min_length=1) is None:
        return {}
    requests = [
        issues.check(validate_connection_dict, c, i)
        for i, c in enumerate(args["connections"])
    ]
    return {"connections": requests}


def _args_set_label(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "", frozenset({"id", "label"}))
    out: dict[str, Any] = {}
    if "id" not in args:
        issues.add("id", "required", "'id' is required.")
    else:
        out["id"] = issues.check(validate_non_empty_string, args["id"], "id")
    if "label" not in args:
        issues.add("label", "required", "'label' is required.")
    else:
        out["label"] = issues.check(validate_label_dict, args["label"], "label")
    return out


def _args_layout_grid(args: dict, issues: IssueCollector) -> dict[str, Any]:
    issues.check(validate_closed_keys, args, "",
                 frozenset({"ids", "origin", "cols", "gapX", "gapY"}))
    for key in ("ids", "origin", "cols"):
        if key not in args:
            issues.add(key, "required", f"'{key}' is required.")
    if issues.issues:
        return {}
    ids = issues.check(validate_id_list, args["ids"], "ids")
    origin = issues.check(validate_point, args["origin"], "origin")
    cols = issues.check(validate_int, args["cols"], "cols", min_val=1)
    grid = GridSpec(ids=ids or [], origin=origin or Point(0, 0), cols=cols or 1)
    if "gapX" in args:
        grid.gap_x = issues.check(validate_number, args["gapX"], "gapX", min_val=0)
    if "gapY" in args:
        grid.gap_y = issues.check(validate_number, args["gapY"], "gapY", min_val=0)
    return {"grid": grid}


_SCHEMAS: dict[str, Callable[[dict, IssueCollector], dict[str, Any]]] = {
    "get_elements": _args_get_elements,
    "set_scene": _args_set_scene,
    "add_elements": _args_add_elements,
    "update_elements": _args_update_elements,
    "remove_elements": _args_remove_elements,
    "search_elements": _args_search_elements,
    "connect_elements": _args_connect_elements,
    "set_label": _args_set_label,
    "layout_grid": _args_layout_grid,
}

OPERATIONS = tuple(_SCHEMAS)


def validate_args(operation: str, raw_args: Any) -> dict[str, Any]:
    """Validate the arguments of *operation* and return typed values.

    Raises:
        UnknownOperation: no schema is registered for *operation*.
        ValidationError: the arguments are malformed; ``issues`` lists
            every problem found.
    """
    schema = _SCHEMAS.get(operation)
    if schema is None:
        raise UnknownOperation(
            f"Unknown operation '{operation}'. Valid operations: {', '.join(OPERATIONS)}.",
            {"operation": operation},
        )
    args = {} if raw_args is None else raw_args
    if not isinstance(args, dict):
        raise ValidationError(
            f"Arguments for '{operation}' must be a dict/object, got {type(args).__name__}.",
        )
    issues = IssueCollector()
    typed = schema(args, issues)
    issues.raise_if_any(f"Invalid input for {operation}")
    return typed
