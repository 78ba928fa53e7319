"""Sweep and extrusion of shapes along a sequence of plane frames.

Every sample's shape is stamped into world space as one ring per contour.
Consecutive rings of the same contour are stitched with quad strips; open
sweeps are closed off with triangulated end caps.

Vertex layout: sample ``k`` owns the block
``[k*L, (k+1)*L)`` where ``L`` is the total point count of one sample, laid
out as outer contour, hole 0, hole 1, ...  Cap triangulation indices map
straight into that block.

Winding rules (all faces point away from solid material):

* outer walls face away from the outer contour's interior;
* hole walls face into the hole, so a tunnel's normals point into the
  passage.  With the standard convention (outer CCW, holes CW) this is
  the reverse of the outer wall winding;
* the start cap is wound opposite to the end cap.  A CCW contour stamped
  through a frame faces ``-heading``, which is outward at the start.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple

from sweepcad.config import EPSILON
from sweepcad.errors import HoleCountMismatch, InsufficientSamples, PointCountMismatch
from sweepcad.frame import PlaneFrame
from sweepcad.geometry_utils import Vec3, sub, dot
from sweepcad.mesh import Face, Mesh
from sweepcad.shape import Shape, signed_area
from sweepcad.triangulator import triangulate_shape

logger = logging.getLogger(__name__)


class SweepSample(NamedTuple):
    shape: Shape
    frame: PlaneFrame


def _check_structure(samples: Sequence[SweepSample]) -> None:
    for k in range(1, len(samples)):
        prev = samples[k - 1].shape
        cur = samples[k].shape
        if cur.hole_count != prev.hole_count:
            raise HoleCountMismatch(
                f'sample {k} has {cur.hole_count} holes but sample {k - 1} has {prev.hole_count}')
        if cur.point_counts != prev.point_counts:
            raise PointCountMismatch(
                f'sample {k} contour sizes {cur.point_counts} differ from '
                f'sample {k - 1} contour sizes {prev.point_counts}')


def _stitch(vertices: Sequence[Vec3], lower: int, upper: int, count: int,
            flip: bool) -> List[Face]:
    """Quad strip between two rings of ``count`` points starting at ``lower`` and ``upper``."""

    faces: List[Face] = []
    for i in range(count):
        nxt = (i + 1) % count
        b0, b1 = lower + i, lower + nxt
        t0, t1 = upper + i, upper + nxt
        # split each quad along its shorter diagonal
        d0 = sub(vertices[b0], vertices[t1])
        d1 = sub(vertices[b1], vertices[t0])
        if dot(d0, d0) <= dot(d1, d1):
            quad = [(b0, t0, t1), (b0, t1, b1)]
        else:
            quad = [(b0, t0, b1), (t0, t1, b1)]
        if flip:
            quad = [(a, c, b) for a, b, c in quad]
        faces.extend(quad)
    return faces


def _cap(shape: Shape, base: int, reverse: bool) -> List[Face]:
    faces = []
    for i, j, k in triangulate_shape(shape):
        if reverse:
            faces.append((base + i, base + k, base + j))
        else:
            faces.append((base + i, base + j, base + k))
    return faces


def sweep(samples: Iterable[SweepSample | Tuple[Shape, PlaneFrame]],
          closed: bool = False, capped: bool = True) -> Mesh:
    """Build a mesh from ``(shape, frame)`` samples.

    ``closed`` stitches the last sample back to the first and never emits
    caps; it needs at least three samples.  Otherwise at least two samples
    are required, and ``capped`` adds flat faces at both ends.  All samples
    must share the same hole count and per-contour point counts.
    """

    samples = [SweepSample(*s) for s in samples]
    minimum = 3 if closed else 2
    if len(samples) < minimum:
        raise InsufficientSamples(
            f'{"closed" if closed else "open"} sweep needs at least {minimum} samples, '
            f'got {len(samples)}')
    _check_structure(samples)

    first = samples[0].shape
    counts = first.point_counts
    ring_len = sum(counts)
    offsets = []
    acc = 0
    for n in counts:
        offsets.append(acc)
        acc += n

    vertices: List[Vec3] = []
    for shape, frame in samples:
        stamped = frame.project(shape)
        vertices.extend(stamped.outer)
        for hole in stamped.holes:
            vertices.extend(hole)

    # outer walls face away from the contour interior, hole walls into it
    flips = []
    for idx, contour in enumerate(first.contours):
        area = signed_area(contour)
        flips.append(area < 0 if idx == 0 else area > 0)

    pairs = [(k, k + 1) for k in range(len(samples) - 1)]
    if closed:
        pairs.append((len(samples) - 1, 0))

    side: List[Face] = []
    tunnel: List[Face] = []
    for lo, hi in pairs:
        for idx, (count, off) in enumerate(zip(counts, offsets)):
            strip = _stitch(vertices, lo * ring_len + off, hi * ring_len + off, count, flips[idx])
            (side if idx == 0 else tunnel).extend(strip)

    faces: List[Face] = side + tunnel
    groups: Dict[str, Tuple[int, ...]] = {
        'side': tuple(range(len(side))),
        'tunnel': tuple(range(len(side), len(faces))),
    }

    if not closed and capped:
        bottom = _cap(first, 0, reverse=False)
        top = _cap(samples[-1].shape, (len(samples) - 1) * ring_len, reverse=True)
        start = len(faces)
        faces.extend(bottom)
        groups['bottom'] = tuple(range(start, start + len(bottom)))
        start = len(faces)
        faces.extend(top)
        groups['top'] = tuple(range(start, start + len(top)))

    logger.debug("sweep: %d samples, %d holes, closed=%s, capped=%s -> %d vertices, %d faces",
                 len(samples), first.hole_count, closed, capped, len(vertices), len(faces))
    return Mesh(tuple(vertices), tuple(faces), groups)


def extrude(shape: Shape, length: float, frame: PlaneFrame | None = None,
            capped: bool = True) -> Mesh:
    """Straight extrusion of ``shape`` by ``length`` along ``frame``'s heading."""

    if length <= EPSILON:
        raise ValueError('bad length passed to extrude')
    if frame is None:
        frame = PlaneFrame.default()
    return sweep([SweepSample(shape, frame), SweepSample(shape, frame.translated(length))],
                 closed=False, capped=capped)


__all__ = ['SweepSample', 'sweep', 'extrude']
