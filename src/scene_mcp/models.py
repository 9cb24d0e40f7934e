"""
Core element model for agent-editable vector scenes.

Provides a typed element record covering every drawable kind (shapes,
connectors, text, images, frames) plus a stable camelCase dict codec that
matches the JSON documents exchanged with the agent and the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ElementType(Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    DIAMOND = "diamond"
    LINE = "line"
    ARROW = "arrow"
    TEXT = "text"
    IMAGE = "image"
    FRAME = "frame"
    MAGICFRAME = "magicframe"


class StrokeStyle(Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class FillStyle(Enum):
    SOLID = "solid"
    HACHURE = "hachure"
    ZIGZAG = "zigzag"
    CROSS_HATCH = "cross-hatch"


class TextAlign(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAlign(Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class Arrowhead(Enum):
    ARROW = "arrow"
    BAR = "bar"
    DOT = "dot"
    CIRCLE = "circle"
    CIRCLE_OUTLINE = "circle_outline"
    TRIANGLE = "triangle"
    TRIANGLE_OUTLINE = "triangle_outline"
    DIAMOND = "diamond"
    DIAMOND_OUTLINE = "diamond_outline"
    CROWFOOT_ONE = "crowfoot_one"
    CROWFOOT_MANY = "crowfoot_many"
    CROWFOOT_ONE_OR_MANY = "crowfoot_one_or_many"


# Input alias meaning "no arrowhead"; stored as None.
ARROWHEAD_NONE = "none"

ELEMENT_TYPES = [t.value for t in ElementType]
SHAPE_TYPES = {"rectangle", "ellipse", "diamond"}
LINEAR_TYPES = {"line", "arrow"}
FRAME_TYPES = {"frame", "magicframe"}
# Kinds that may carry a bound label.
LABEL_TYPES = SHAPE_TYPES | LINEAR_TYPES


# ---------------------------------------------------------------------------
# Geometry primitives
# ---------------------------------------------------------------------------

@dataclass
class Point:
    """A 2-D scene coordinate (origin top-left, y grows downward)."""
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Bounds:
    """Axis-aligned bounding box."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.cx, self.cy)

    def normalized(self) -> 'Bounds':
        """Return an equivalent box with non-negative width and height."""
        x0, x1 = sorted((self.x, self.x + self.width))
        y0, y1 = sorted((self.y, self.y + self.height))
        return Bounds(x0, y0, x1 - x0, y1 - y0)

    def overlaps(self, other: 'Bounds') -> bool:
        """Inclusive intersection test; touching edges count as overlap."""
        a = self.normalized()
        b = other.normalized()
        return not (
            a.right < b.x
            or a.x > b.right
            or a.bottom < b.y
            or a.y > b.bottom
        )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


# ---------------------------------------------------------------------------
# Element parts
# ---------------------------------------------------------------------------

@dataclass
class Style:
    """Stroke / fill appearance shared by all element kinds."""
    stroke_color: Optional[str] = None
    background_color: Optional[str] = None
    stroke_style: Optional[str] = None
    fill_style: Optional[str] = None
    stroke_width: Optional[float] = None
    opacity: Optional[float] = None
    roughness: Optional[float] = None


@dataclass
class Label:
    """Text bound to a container or linear element."""
    text: str
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    text_align: Optional[str] = None
    vertical_align: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    stroke_color: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _dump(self, _LABEL_KEYS)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Label':
        return cls(**_load(data, _LABEL_KEYS))


@dataclass
class Binding:
    """Reference from a connector endpoint to another element's id."""
    element_id: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.element_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Binding':
        return cls(element_id=data["id"])


# ---------------------------------------------------------------------------
# Element
# ---------------------------------------------------------------------------

@dataclass
class Element:
    """A single drawable element.

    One record serves every kind; fields that do not apply to a kind stay
    ``None``.  For ``line``/``arrow`` the width/height pair is the delta from
    ``(x, y)`` to the end point and may be negative.
    """
    id: str
    type: str
    x: float = 0
    y: float = 0
    width: Optional[float] = None
    height: Optional[float] = None
    angle: Optional[float] = None
    style: Style = field(default_factory=Style)
    # containers and connectors
    label: Optional[Label] = None
    # connectors
    start: Optional[Binding] = None
    end: Optional[Binding] = None
    start_arrowhead: Optional[str] = None
    end_arrowhead: Optional[str] = None
    # text
    text: Optional[str] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    text_align: Optional[str] = None
    vertical_align: Optional[str] = None
    container_id: Optional[str] = None
    # image
    file_id: Optional[str] = None
    # frame / magicframe
    name: Optional[str] = None
    children: Optional[list[str]] = None

    @property
    def is_frame(self) -> bool:
        return self.type in FRAME_TYPES

    @property
    def supports_label(self) -> bool:
        return self.type in LABEL_TYPES

    def bounds(self) -> Bounds:
        """Normalized bounding box; missing sizes count as zero."""
        return Bounds(self.x, self.y, self.width or 0, self.height or 0).normalized()

    def center(self) -> Point:
        w = self.width or 0
        h = self.height or 0
        return Point(self.x + w / 2, self.y + h / 2)

    def searchable_text(self) -> str:
        """Text content plus bound label text, used for substring search."""
        parts = [self.text or ""]
        if self.label:
            parts.append(self.label.text)
        return "\n".join(p for p in parts if p)

    def references(self) -> list[tuple[str, str]]:
        """Return (field, referenced id) pairs for every outgoing reference."""
        refs: list[tuple[str, str]] = []
        if self.start:
            refs.append(("start", self.start.element_id))
        if self.end:
            refs.append(("end", self.end.element_id))
        if self.container_id:
            refs.append(("containerId", self.container_id))
        for child in self.children or []:
            refs.append(("children", child))
        return refs

    def apply_patch(self, props: dict[str, Any]) -> None:
        """Shallow-merge a camelCase property patch onto this element."""
        for key, value in props.items():
            if key in ("startArrowhead", "endArrowhead") and value == ARROWHEAD_NONE:
                value = None
            if key in _STYLE_KEYS:
                setattr(self.style, _STYLE_KEYS[key], value)
            elif key in _ELEMENT_KEYS:
                setattr(self, _ELEMENT_KEYS[key], value)
            else:
                raise KeyError(key)

    # ----- codec -----

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type, "x": self.x, "y": self.y}
        data.update(_dump(self, _ELEMENT_KEYS, skip=("id", "type", "x", "y")))
        data.update(_dump(self.style, _STYLE_KEYS))
        if self.label is not None:
            data["label"] = self.label.to_dict()
        if self.start is not None:
            data["start"] = self.start.to_dict()
        if self.end is not None:
            data["end"] = self.end.to_dict()
        if self.children is not None:
            data["children"] = list(self.children)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Element':
        """Build an element from an already-validated camelCase dict."""
        kwargs = _load(data, _ELEMENT_KEYS)
        for key in ("startArrowhead", "endArrowhead"):
            if data.get(key) == ARROWHEAD_NONE:
                kwargs[_ELEMENT_KEYS[key]] = None
        el = cls(**kwargs)
        el.style = Style(**_load(data, _STYLE_KEYS))
        if isinstance(data.get("label"), dict):
            el.label = Label.from_dict(data["label"])
        if isinstance(data.get("start"), dict):
            el.start = Binding.from_dict(data["start"])
        if isinstance(data.get("end"), dict):
            el.end = Binding.from_dict(data["end"])
        if data.get("children") is not None:
            el.children = list(data["children"])
        return el

    def summary(self) -> dict[str, Any]:
        """Compact description returned by read tools.

        Carries geometry, text and colors plus whatever a kind needs to be
        fed back into ``set_scene`` unchanged.
        """
        info: dict[str, Any] = {"id": self.id, "type": self.type, "x": self.x, "y": self.y}
        for key in ("width", "height", "angle", "text"):
            value = getattr(self, key)
            if value is not None:
                info[key] = value
        if self.style.stroke_color is not None:
            info["strokeColor"] = self.style.stroke_color
        if self.style.background_color is not None:
            info["backgroundColor"] = self.style.background_color
        if self.file_id is not None:
            info["fileId"] = self.file_id
        if self.children is not None:
            info["children"] = list(self.children)
        if self.label is not None:
            info["label"] = {"text": self.label.text}
        if self.start is not None:
            info["start"] = self.start.to_dict()
        if self.end is not None:
            info["end"] = self.end.to_dict()
        return info


# ---------------------------------------------------------------------------
# Codec tables (wire key -> attribute)
# ---------------------------------------------------------------------------

_STYLE_KEYS: dict[str, str] = {
    "strokeColor": "stroke_color",
    "backgroundColor": "background_color",
    "strokeStyle": "stroke_style",
    "fillStyle": "fill_style",
    "strokeWidth": "stroke_width",
    "opacity": "opacity",
    "roughness": "roughness",
}

_LABEL_KEYS: dict[str, str] = {
    "text": "text",
    "fontSize": "font_size",
    "fontFamily": "font_family",
    "textAlign": "text_align",
    "verticalAlign": "vertical_align",
    "x": "x",
    "y": "y",
    "strokeColor": "stroke_color",
}

# Scalar element fields; nested records (style, label, bindings, children)
# are handled separately by the codec.
_ELEMENT_KEYS: dict[str, str] = {
    "id": "id",
    "type": "type",
    "x": "x",
    "y": "y",
    "width": "width",
    "height": "height",
    "angle": "angle",
    "startArrowhead": "start_arrowhead",
    "endArrowhead": "end_arrowhead",
    "text": "text",
    "fontSize": "font_size",
    "fontFamily": "font_family",
    "textAlign": "text_align",
    "verticalAlign": "vertical_align",
    "containerId": "container_id",
    "fileId": "file_id",
    "name": "name",
}

STYLE_PROPS = frozenset(_STYLE_KEYS)


def _dump(obj: Any, keys: dict[str, str], skip: tuple[str, ...] = ()) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for wire, attr in keys.items():
        if wire in skip:
            continue
        value = getattr(obj, attr)
        if value is not None:
            out[wire] = value
    return out


def _load(data: dict[str, Any], keys: dict[str, str]) -> dict[str, Any]:
    return {attr: data[wire] for wire, attr in keys.items() if wire in data}


# ---------------------------------------------------------------------------
# Typed tool arguments
# ---------------------------------------------------------------------------

@dataclass
class ElementPatch:
    """Properties to shallow-merge onto the element with ``id``."""
    id: str
    props: dict[str, Any] = field(default_factory=dict)


@dataclass
class SceneQuery:
    """Search filter; every criterion that is set must match."""
    type: Optional[str] = None
    text_includes: Optional[str] = None
    within: Optional[Bounds] = None

    def matches(self, element: Element) -> bool:
        if self.type and element.type != self.type:
            return False
        if self.text_includes:
            if self.text_includes.lower() not in element.searchable_text().lower():
                return False
        if self.within is not None and not element.bounds().overlaps(self.within):
            return False
        return True


@dataclass
class ConnectionRequest:
    """Ask for a bound arrow from ``from_id`` to ``to_id``.

    ``style`` holds camelCase style props and arrowheads applied to the
    produced arrow; ``arrow_id`` pins the arrow's id when given.
    """
    from_id: str
    to_id: str
    arrow_id: Optional[str] = None
    label: Optional[Label] = None
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class GridSpec:
    """Row-major grid placement for existing elements."""
    ids: list[str]
    origin: Point
    cols: int
    gap_x: float = 200
    gap_y: float = 120
