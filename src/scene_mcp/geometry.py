"""
Boundary-point geometry for connector anchoring.

Given a shape's bounding box and a target point, these helpers return the
point where the ray from the shape's center toward the target leaves the
shape's outline.  Rectangles, ellipses and diamonds are supported; every
function is pure and returns the center for degenerate input (zero-size
shape or a target sitting on the center) instead of dividing by zero.

Coordinates follow the scene convention: origin top-left, x to the right,
y downward, angles in radians clockwise.
"""

from __future__ import annotations

import math
from typing import Optional

from scene_mcp.models import Bounds, Point

EPSILON = 1e-9


def rotate_point(p: Point, center: Point, angle: float) -> Point:
    """Rotate *p* around *center* by *angle* radians (clockwise on screen)."""
    if not angle:
        return Point(p.x, p.y)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = p.x - center.x
    dy = p.y - center.y
    return Point(
        center.x + dx * cos_a - dy * sin_a,
        center.y + dx * sin_a + dy * cos_a,
    )


def _direction(center: Point, target: Point) -> Optional[tuple[float, float]]:
    dx = target.x - center.x
    dy = target.y - center.y
    length = math.hypot(dx, dy)
    if length < EPSILON:
        return None
    return dx / length, dy / length


def rectangle_boundary_point(bounds: Bounds, target: Point) -> Point:
    """Intersection of the center→target ray with a rectangle outline."""
    b = bounds.normalized()
    center = b.center
    half_w = b.width / 2
    half_h = b.height / 2
    d = _direction(center, target)
    if d is None or half_w < EPSILON or half_h < EPSILON:
        return center
    dx, dy = d
    tx = half_w / abs(dx) if abs(dx) > EPSILON else math.inf
    ty = half_h / abs(dy) if abs(dy) > EPSILON else math.inf
    t = min(tx, ty)
    return Point(center.x + dx * t, center.y + dy * t)


def ellipse_boundary_point(bounds: Bounds, target: Point) -> Point:
    """Intersection of the center→target ray with the inscribed ellipse.

    Solves ``(t·dx/rx)² + (t·dy/ry)² = 1`` for the ray parameter ``t``.
    """
    b = bounds.normalized()
    center = b.center
    rx = b.width / 2
    ry = b.height / 2
    d = _direction(center, target)
    if d is None or rx < EPSILON or ry < EPSILON:
        return center
    dx, dy = d
    t = 1 / math.sqrt((dx * dx) / (rx * rx) + (dy * dy) / (ry * ry))
    return Point(center.x + dx * t, center.y + dy * t)


def ray_segment_intersection(
    origin: Point,
    direction: tuple[float, float],
    a: Point,
    b: Point,
) -> Optional[Point]:
    """Return where a ray hits segment *a*–*b*, or None.

    Only forward hits count (ray parameter >= 0); parallel segments never hit.
    """
    dir_x, dir_y = direction
    seg_x = b.x - a.x
    seg_y = b.y - a.y
    denom = dir_x * seg_y - dir_y * seg_x
    if abs(denom) < EPSILON:
        return None
    ap_x = a.x - origin.x
    ap_y = a.y - origin.y
    u = (ap_x * seg_y - ap_y * seg_x) / denom
    t = (ap_x * dir_y - ap_y * dir_x) / denom
    if u < 0 or t < -EPSILON or t > 1 + EPSILON:
        return None
    return Point(origin.x + dir_x * u, origin.y + dir_y * u)


def diamond_vertices(bounds: Bounds) -> tuple[Point, Point, Point, Point]:
    """Top, right, bottom and left corners of the diamond inscribed in *bounds*."""
    b = bounds.normalized()
    return (
        Point(b.cx, b.y),
        Point(b.right, b.cy),
        Point(b.cx, b.bottom),
        Point(b.x, b.cy),
    )


def diamond_boundary_point(bounds: Bounds, target: Point) -> Point:
    """Nearest forward hit of the center→target ray on the diamond's edges."""
    b = bounds.normalized()
    center = b.center
    d = _direction(center, target)
    if d is None or b.width < EPSILON or b.height < EPSILON:
        return center
    top, right, bottom, left = diamond_vertices(b)
    best: Optional[Point] = None
    best_dist = math.inf
    for a, c in ((top, right), (right, bottom), (bottom, left), (left, top)):
        hit = ray_segment_intersection(center, d, a, c)
        if hit is None:
            continue
        dist = math.hypot(hit.x - center.x, hit.y - center.y)
        if dist < best_dist:
            best_dist = dist
            best = hit
    return best if best is not None else center


_BOUNDARY_FUNCS = {
    "rectangle": rectangle_boundary_point,
    "ellipse": ellipse_boundary_point,
    "diamond": diamond_boundary_point,
}


def boundary_point(
    kind: str,
    bounds: Bounds,
    target: Point,
    angle: float = 0.0,
) -> Point:
    """Boundary point of a shape of *kind* in the direction of *target*.

    Kinds without a dedicated outline (text, image, frames, ...) use their
    bounding rectangle.  For rotated shapes the target is brought into the
    shape's own frame, solved there, and the result rotated back.
    """
    func = _BOUNDARY_FUNCS.get(kind, rectangle_boundary_point)
    if not angle:
        return func(bounds, target)
    center = bounds.normalized().center
    local_target = rotate_point(target, center, -angle)
    local_hit = func(bounds, local_target)
    return rotate_point(local_hit, center, angle)
