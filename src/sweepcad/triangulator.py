"""Cap triangulation for shapes with holes.

We delegate to ``mapbox-earcut`` (the fast ear clipping implementation used
by Mapbox GL).  This module owns only the data contract: flattened 2D
coordinates plus the index where each hole starts go in, local index
triples come out.  The clipping itself is the library's business.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate polygons with holes"
    ) from exc

from sweepcad.shape import Shape

Tri = Tuple[int, int, int]


def earcut(flat_coords: Sequence[float], hole_indices: Sequence[int] = ()) -> List[Tri]:
    """Triangulate a flat ``[x0, y0, x1, y1, ...]`` array.

    ``hole_indices`` lists the point index at which each hole begins, in
    order; points before the first hole index form the outer contour.
    Returns point-index triples in whatever orientation the library emits.
    """

    if len(flat_coords) % 2:
        raise ValueError('flat coordinate array must hold an even number of values')
    count = len(flat_coords) // 2
    if count < 3:
        return []
    ring_ends = [int(i) for i in hole_indices] + [count]
    previous = 0
    for end in ring_ends:
        if end <= previous or end > count:
            raise ValueError(f'hole indices must be increasing and inside the point range: {list(hole_indices)}')
        previous = end

    vertices = np.asarray(flat_coords, dtype=np.float64).reshape(count, 2)
    rings = np.asarray(ring_ends, dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, rings)
    return [(int(indices[i]), int(indices[i + 1]), int(indices[i + 2]))
            for i in range(0, len(indices), 3)]


def flatten_shape(shape: Shape) -> Tuple[List[float], List[int]]:
    """Flatten a shape's contours into earcut input: coordinates and hole starts."""

    flat: List[float] = []
    hole_indices: List[int] = []
    for x, y in shape.outer:
        flat.extend((x, y))
    offset = len(shape.outer)
    for hole in shape.holes:
        hole_indices.append(offset)
        for x, y in hole:
            flat.extend((x, y))
        offset += len(hole)
    return flat, hole_indices


def triangulate_shape(shape: Shape) -> List[Tri]:
    """Return local index triples covering ``shape`` minus its holes.

    Indices address the concatenation outer + hole 0 + hole 1 + ...  Every
    triple is wound counter-clockwise in the shape's own 2D plane; degenerate
    triangles are dropped.
    """

    flat, hole_indices = flatten_shape(shape)
    triangles: List[Tri] = []
    for i, j, k in earcut(flat, hole_indices):
        area2 = ((flat[2 * j] - flat[2 * i]) * (flat[2 * k + 1] - flat[2 * i + 1]) -
                 (flat[2 * k] - flat[2 * i]) * (flat[2 * j + 1] - flat[2 * i + 1]))
        if area2 > 0:
            triangles.append((i, j, k))
        elif area2 < 0:
            triangles.append((i, k, j))
    return triangles


__all__ = ['earcut', 'flatten_shape', 'triangulate_shape']
