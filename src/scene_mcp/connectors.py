"""
Connector resolution: compile connection requests into bound arrows.

Each arrow starts on the source shape's outline, pointing at the target's
center, and ends on the target's outline, pointing back at the source's
center.  ``start``/``end`` bindings record both ids so a renderer can
re-route the arrow when either endpoint moves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from scene_mcp.geometry import boundary_point
from scene_mcp.models import Binding, ConnectionRequest, Element, Point
from scene_mcp.scene import SceneStore

logger = logging.getLogger("scene-mcp.connectors")

DEFAULT_END_ARROWHEAD = "arrow"

REASON_FROM_NOT_FOUND = "fromId not found"
REASON_TO_NOT_FOUND = "toId not found"
REASON_DUPLICATE_ID = "DuplicateId"
REASON_SELF_LOOP = "self_loop"


@dataclass
class ConnectFailure:
    from_id: str
    to_id: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"fromId": self.from_id, "toId": self.to_id, "reason": self.reason}


@dataclass
class ConnectResult:
    created: list[str] = field(default_factory=list)
    failed: list[ConnectFailure] = field(default_factory=list)


def element_boundary_point(element: Element, target: Point) -> Point:
    """Point on *element*'s outline in the direction of *target*."""
    return boundary_point(element.type, element.bounds(), target, element.angle or 0.0)


def next_arrow_id(store: SceneStore, from_id: str, to_id: str) -> str:
    """Default arrow id ``"{from}->{to}"``, suffixed ``#2``, ``#3``... while taken."""
    base = f"{from_id}->{to_id}"
    if base not in store:
        return base
    n = 2
    while f"{base}#{n}" in store:
        n += 1
    return f"{base}#{n}"


def build_arrow(
    arrow_id: str,
    source: Element,
    target: Element,
    request: ConnectionRequest,
) -> Element:
    """Create the arrow element joining *source* to *target*."""
    start = element_boundary_point(source, target.center())
    end = element_boundary_point(target, source.center())
    arrow = Element(
        id=arrow_id,
        type="arrow",
        x=start.x,
        y=start.y,
        width=end.x - start.x,
        height=end.y - start.y,
        start=Binding(source.id),
        end=Binding(target.id),
        end_arrowhead=DEFAULT_END_ARROWHEAD,
    )
    if request.style:
        arrow.apply_patch(request.style)
    if request.label is not None:
        arrow.label = request.label
    return arrow


def connect(store: SceneStore, requests: list[ConnectionRequest]) -> ConnectResult:
    """Create one bound arrow per request.

    Requests naming a missing element, joining an element to itself, or
    pinning an arrow id that is already taken are reported in ``failed``;
    they never abort the batch.
    """
    result = ConnectResult()
    for req in requests:
        if req.from_id == req.to_id:
            result.failed.append(ConnectFailure(req.from_id, req.to_id, REASON_SELF_LOOP))
            continue
        source = store.get(req.from_id)
        if source is None:
            result.failed.append(ConnectFailure(req.from_id, req.to_id, REASON_FROM_NOT_FOUND))
            continue
        target = store.get(req.to_id)
        if target is None:
            result.failed.append(ConnectFailure(req.from_id, req.to_id, REASON_TO_NOT_FOUND))
            continue
        if req.arrow_id is not None:
            if req.arrow_id in store:
                result.failed.append(ConnectFailure(req.from_id, req.to_id, REASON_DUPLICATE_ID))
                continue
            arrow_id = req.arrow_id
        else:
            arrow_id = next_arrow_id(store, req.from_id, req.to_id)
        store.append(build_arrow(arrow_id, source, target, req))
        result.created.append(arrow_id)
    if result.failed:
        logger.info("%d connection(s) failed", len(result.failed))
    return result
