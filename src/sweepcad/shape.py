"""2D cross-section shapes for sweeping and lofting.

A :class:`Shape` is an immutable polygon-with-holes value: an outer contour
wound counter-clockwise plus zero or more hole contours wound clockwise.
Every transform returns a new Shape and treats the outer contour and each
hole the same way, so no operation can silently leave the holes behind.

Hole containment inside the outer contour is assumed, not verified; the
boolean adapter in :mod:`sweepcad.boolean2d` is the place where shapes with
holes are normally produced.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence, Tuple

from sweepcad.config import CIRCLE_SEGMENTS, EPSILON
from sweepcad.errors import HoleCountMismatch, InvalidShape, PointCountMismatch

Point2D = Tuple[float, float]
Contour = Tuple[Point2D, ...]


def _as_contour(points: Iterable[Sequence[float]], what: str) -> Contour:
    if points is None:
        raise InvalidShape(f'{what} contour is missing')
    loop: List[Point2D] = []
    for pt in points:
        if len(pt) < 2:
            raise InvalidShape(f'{what} contour has a point with fewer than two coordinates')
        loop.append((float(pt[0]), float(pt[1])))
    if len(loop) < 3:
        raise InvalidShape(f'{what} contour needs at least 3 points, got {len(loop)}')
    return tuple(loop)


def _near(p1: Point2D, p2: Point2D) -> bool:
    return abs(p1[0] - p2[0]) <= EPSILON and abs(p1[1] - p2[1]) <= EPSILON


def signed_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace area of a closed contour: positive for CCW, negative for CW."""

    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x0, y0 = points[i][0], points[i][1]
        x1, y1 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        total += x0 * y1 - x1 * y0
    return total / 2.0


def is_ccw(points: Sequence[Sequence[float]]) -> bool:
    return signed_area(points) > 0.0


def ensure_ccw(points: Sequence[Point2D]) -> Contour:
    """Return ``points`` in counter-clockwise order."""

    if signed_area(points) < 0.0:
        return tuple(reversed(points))
    return tuple(points)


def ensure_cw(points: Sequence[Point2D]) -> Contour:
    """Return ``points`` in clockwise order."""

    if signed_area(points) > 0.0:
        return tuple(reversed(points))
    return tuple(points)


@dataclass(frozen=True)
class Shape:
    """Polygon with holes in a 2D local plane.

    ``outer`` is the boundary contour, ``holes`` a tuple of contours cut out
    of it.  Points are stored verbatim as float ``(x, y)`` tuples.  Contours
    with fewer than three points raise :class:`~sweepcad.errors.InvalidShape`.
    """

    outer: Contour
    holes: Tuple[Contour, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, 'outer', _as_contour(self.outer, 'outer'))
        holes = tuple(_as_contour(hole, f'hole {i}')
                      for i, hole in enumerate(self.holes or ()))
        object.__setattr__(self, 'holes', holes)

    def __repr__(self):
        return f'Shape(points={len(self.outer)}, holes={list(map(len, self.holes))})'

    @property
    def hole_count(self) -> int:
        return len(self.holes)

    @property
    def contours(self) -> Tuple[Contour, ...]:
        """The outer contour followed by every hole."""
        return (self.outer,) + self.holes

    @property
    def point_counts(self) -> Tuple[int, ...]:
        return tuple(len(c) for c in self.contours)

    @property
    def area(self) -> float:
        """Enclosed area: outer minus holes, independent of winding."""
        return abs(signed_area(self.outer)) - sum(abs(signed_area(h)) for h in self.holes)

    @property
    def centroid(self) -> Point2D:
        """Vertex average of the outer contour."""
        n = len(self.outer)
        return (sum(p[0] for p in self.outer) / n,
                sum(p[1] for p in self.outer) / n)

    def map_points(self, fn: Callable[[Point2D], Sequence[float]]) -> "Shape":
        """Apply ``fn`` to every point of the outer contour and of every hole."""

        return Shape(tuple(fn(p) for p in self.outer),
                     tuple(tuple(fn(p) for p in hole) for hole in self.holes))

    def translate(self, dx: float, dy: float) -> "Shape":
        return self.map_points(lambda p: (p[0] + dx, p[1] + dy))

    def scale(self, sx: float, sy: float | None = None) -> "Shape":
        """Scale about the origin.  A mirroring scale keeps the winding convention."""

        if sy is None:
            sy = sx
        scaled = self.map_points(lambda p: (p[0] * sx, p[1] * sy))
        if sx * sy < 0:
            return scaled.reverse()
        return scaled

    def rotate(self, degrees: float) -> "Shape":
        """Rotate about the origin, counter-clockwise for positive angles."""

        ang = math.radians(degrees)
        c, s = math.cos(ang), math.sin(ang)
        return self.map_points(lambda p: (p[0] * c - p[1] * s, p[0] * s + p[1] * c))

    def reverse(self) -> "Shape":
        """Reverse the point order of the outer contour and of every hole."""

        return Shape(tuple(reversed(self.outer)),
                     tuple(tuple(reversed(hole)) for hole in self.holes))

    def normalized(self) -> "Shape":
        """Force the outer contour CCW and every hole CW."""

        return Shape(ensure_ccw(self.outer),
                     tuple(ensure_cw(hole) for hole in self.holes))

    def lerp(self, other: "Shape", t: float) -> "Shape":
        return interpolate(self, other, t)

    def resample(self, n: int) -> "Shape":
        """Redistribute every contour to ``n`` points evenly spaced by arc length."""

        if n < 3:
            raise InvalidShape('resample needs at least 3 points')
        return Shape(_resample_contour(self.outer, n),
                     tuple(_resample_contour(hole, n) for hole in self.holes))


def interpolate(a: Shape, b: Shape, t: float) -> Shape:
    """Linear point-for-point interpolation from ``a`` (t=0) to ``b`` (t=1).

    Holes are matched by their position in the hole list; callers must
    supply them in a consistent order.
    """

    if a.hole_count != b.hole_count:
        raise HoleCountMismatch(
            f'cannot interpolate shapes with {a.hole_count} and {b.hole_count} holes')
    if a.point_counts != b.point_counts:
        raise PointCountMismatch(
            f'cannot interpolate contours with point counts {a.point_counts} and {b.point_counts}')

    def _mix(ca: Contour, cb: Contour) -> Contour:
        return tuple((pa[0] + t * (pb[0] - pa[0]), pa[1] + t * (pb[1] - pa[1]))
                     for pa, pb in zip(ca, cb))

    return Shape(_mix(a.outer, b.outer),
                 tuple(_mix(ha, hb) for ha, hb in zip(a.holes, b.holes)))


def _resample_contour(points: Contour, n: int) -> Contour:
    count = len(points)
    segments = [(points[i], points[(i + 1) % count]) for i in range(count)]
    lengths = [math.hypot(p1[0] - p0[0], p1[1] - p0[1]) for p0, p1 in segments]
    total = sum(lengths)
    if total <= EPSILON:
        raise InvalidShape('cannot resample a contour with zero perimeter')
    step = total / n
    result: List[Point2D] = []
    seg = 0
    walked = 0.0
    for k in range(n):
        target = k * step
        while seg < count - 1 and walked + lengths[seg] < target:
            walked += lengths[seg]
            seg += 1
        p0, p1 = segments[seg]
        u = (target - walked) / lengths[seg] if lengths[seg] > EPSILON else 0.0
        u = min(max(u, 0.0), 1.0)
        result.append((p0[0] + u * (p1[0] - p0[0]), p0[1] + u * (p1[1] - p0[1])))
    return tuple(result)


## Built-in shapes, centred at the origin with a CCW outer contour

def circle(radius: float, segments: int | None = None) -> Shape:
    if segments is None:
        segments = CIRCLE_SEGMENTS
    if radius <= EPSILON:
        raise InvalidShape('circle radius must be positive')
    step = 2.0 * math.pi / segments
    return Shape(tuple((radius * math.cos(i * step), radius * math.sin(i * step))
                       for i in range(segments)))


def rect(width: float, height: float) -> Shape:
    hw = width / 2.0
    hh = height / 2.0
    return polygon([(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)])


def ngon(sides: int, radius: float) -> Shape:
    """Regular polygon with its first vertex on the negative Y axis."""

    step = 2.0 * math.pi / sides
    return Shape(tuple((radius * math.cos(i * step - math.pi / 2),
                        radius * math.sin(i * step - math.pi / 2))
                       for i in range(sides)))


def star(points: int, outer_radius: float, inner_radius: float) -> Shape:
    total = 2 * points
    step = 2.0 * math.pi / total
    verts = []
    for i in range(total):
        r = outer_radius if i % 2 == 0 else inner_radius
        verts.append((r * math.cos(i * step), r * math.sin(i * step)))
    return Shape(tuple(verts))


def polygon(points: Sequence[Sequence[float]], holes: Sequence[Sequence[Sequence[float]]] = ()) -> Shape:
    """Shape from raw points, with the outer forced CCW and holes forced CW.

    An explicit closing point (last point equal to the first) is dropped.
    """

    return Shape(_open_loop(points), tuple(_open_loop(h) for h in holes)).normalized()


def _open_loop(points: Sequence[Sequence[float]]) -> Contour:
    loop = tuple((float(p[0]), float(p[1])) for p in points)
    if len(loop) >= 4 and _near(loop[0], loop[-1]):
        return loop[:-1]
    return loop


__all__ = [
    'Point2D',
    'Contour',
    'Shape',
    'signed_area',
    'is_ccw',
    'ensure_ccw',
    'ensure_cw',
    'interpolate',
    'circle',
    'rect',
    'ngon',
    'star',
    'polygon',
]
