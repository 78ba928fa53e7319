"""2D boolean and offset operations on shapes.

The polygon clipping itself is done by shapely (GEOS).  This module owns
the data contract in both directions:

* :func:`to_external_paths` flattens a :class:`~sweepcad.shape.Shape` into
  a subject path plus hole paths, point order preserved;
* :func:`from_external_result` classifies whatever paths come back by signed
  area and re-imposes sweepCAD's winding convention (outer CCW, holes CW),
  without trusting the library's own ordering or orientation.

Failures raised by shapely are re-raised as
:class:`~sweepcad.errors.BooleanOperationError` naming the adapter call,
with the original exception chained.  Invalid polygons are passed through
unrepaired.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from shapely.errors import ShapelyError
from shapely.geometry import GeometryCollection, MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from sweepcad import config
from sweepcad.errors import BooleanOperationError
from sweepcad.shape import Point2D, Shape, ensure_ccw, ensure_cw, signed_area

logger = logging.getLogger(__name__)

Path = List[Point2D]


class JoinStyle(enum.Enum):
    """Corner treatment for :func:`offset`."""

    ROUND = 'round'
    SQUARE = 'square'
    MITRE = 'mitre'


# shapely has no square join; bevel also cuts the corner flat
_SHAPELY_JOIN = {
    JoinStyle.ROUND: 'round',
    JoinStyle.SQUARE: 'bevel',
    JoinStyle.MITRE: 'mitre',
}


class ExternalPaths(NamedTuple):
    subject_path: Path
    clip_holes: List[Path]


def to_external_paths(shape: Shape) -> ExternalPaths:
    """Flatten ``shape`` into the path form handed to the polygon library."""

    return ExternalPaths([tuple(p) for p in shape.outer],
                         [[tuple(p) for p in hole] for hole in shape.holes])


def to_external_polygon(shape: Shape) -> Polygon:
    paths = to_external_paths(shape)
    return _call('to_external_paths', lambda: Polygon(paths.subject_path, paths.clip_holes))


def paths_from_geometry(geometry: BaseGeometry) -> List[Path]:
    """All rings of a shapely result as open point lists (closing point dropped).

    Shells come back CCW and holes CW, whatever orientation GEOS produced.
    """

    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        geometry = orient(geometry, sign=1.0)
        rings = [geometry.exterior] + list(geometry.interiors)
        return [[(float(x), float(y)) for x, y, *_ in ring.coords][:-1] for ring in rings]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        paths: List[Path] = []
        for part in geometry.geoms:
            paths.extend(paths_from_geometry(part))
        return paths
    # points and lines carry no area
    return []


def _usable(paths: Sequence[Sequence[Point2D]]) -> List[tuple]:
    usable = []
    for path in paths:
        pts = [(float(p[0]), float(p[1])) for p in path]
        if len(pts) < 3:
            continue
        area = signed_area(pts)
        if abs(area) <= config.EPSILON:
            continue
        usable.append((pts, area))
    return usable


def from_external_result(paths: Sequence[Sequence[Point2D]]) -> Optional[Shape]:
    """Build one Shape from returned paths.

    The path with the largest absolute area becomes the outer contour, forced
    CCW.  Paths wound opposite to it whose first point it covers become
    holes, forced CW.  Everything else belongs to a separate region and is
    dropped; use :func:`shapes_from_external_result` to keep those.
    Returns ``None`` if no path encloses any area.
    """

    usable = _usable(paths)
    if not usable:
        return None
    outer_idx = max(range(len(usable)), key=lambda i: abs(usable[i][1]))
    outer_pts, outer_area = usable[outer_idx]
    outer_region = Polygon(outer_pts)
    holes = []
    dropped = 0
    for i, (pts, area) in enumerate(usable):
        if i == outer_idx:
            continue
        if (area > 0) != (outer_area > 0) and outer_region.covers(Point(pts[0])):
            holes.append(ensure_cw(pts))
        else:
            dropped += 1
    if dropped:
        logger.debug("from_external_result: dropped %d extra region(s)", dropped)
    return Shape(ensure_ccw(outer_pts), tuple(holes))


def shapes_from_external_result(paths: Sequence[Sequence[Point2D]]) -> List[Shape]:
    """Split returned paths into separate shapes.

    Positive-area (CCW) paths are outers; negative-area paths are holes and
    go to the first outer that covers their first point, boundary included.
    Holes with no covering outer are dropped.
    """

    usable = _usable(paths)
    outers = [pts for pts, area in usable if area > 0]
    holes = [pts for pts, area in usable if area < 0]
    regions = [Polygon(outer) for outer in outers]
    assigned: List[List[Path]] = [[] for _ in outers]
    for hole in holes:
        start = Point(hole[0])
        for idx, region in enumerate(regions):
            if region.covers(start):
                assigned[idx].append(ensure_cw(hole))
                break
    return [Shape(ensure_ccw(outer), tuple(hs)) for outer, hs in zip(outers, assigned)]


def _call(operation: str, fn: Callable):
    try:
        return fn()
    except (ShapelyError, ValueError) as exc:
        logger.warning("%s failed in the polygon library: %s", operation, exc)
        raise BooleanOperationError(operation, str(exc)) from exc


def _boolean(operation: str, a: Shape, b: Shape) -> List[Path]:
    pa = to_external_polygon(a)
    pb = to_external_polygon(b)
    result = _call(operation, lambda: getattr(pa, operation)(pb))
    return paths_from_geometry(result)


def union(a: Shape, b: Shape) -> Optional[Shape]:
    """Merged outline of ``a`` and ``b``; for disjoint inputs only the larger region is kept."""
    return from_external_result(_boolean('union', a, b))


def difference(a: Shape, b: Shape) -> Optional[Shape]:
    """``a`` with ``b`` cut out; ``None`` if nothing of ``a`` remains."""
    return from_external_result(_boolean('difference', a, b))


def intersection(a: Shape, b: Shape) -> Optional[Shape]:
    return from_external_result(_boolean('intersection', a, b))


def symmetric_difference(a: Shape, b: Shape) -> List[Shape]:
    """Regions covered by exactly one of ``a`` and ``b``, one Shape per region."""
    return shapes_from_external_result(_boolean('symmetric_difference', a, b))


def offset(shape: Shape, delta: float,
           join_style: JoinStyle | str | None = None,
           mitre_limit: float | None = None) -> Optional[Shape]:
    """Grow (``delta > 0``) or shrink (``delta < 0``) a shape.

    Returns ``None`` when a contraction consumes the whole shape.
    """

    style = JoinStyle(join_style if join_style is not None else config.DEFAULT_JOIN_STYLE)
    limit = config.MITRE_LIMIT if mitre_limit is None else mitre_limit
    poly = to_external_polygon(shape)
    result = _call('offset', lambda: poly.buffer(delta,
                                                 quad_segs=config.OFFSET_QUAD_SEGMENTS,
                                                 join_style=_SHAPELY_JOIN[style],
                                                 mitre_limit=limit))
    return from_external_result(paths_from_geometry(result))


__all__ = [
    'JoinStyle',
    'ExternalPaths',
    'to_external_paths',
    'to_external_polygon',
    'paths_from_geometry',
    'from_external_result',
    'shapes_from_external_result',
    'union',
    'difference',
    'intersection',
    'symmetric_difference',
    'offset',
]
