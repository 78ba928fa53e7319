"""Plane frames: mapping between a shape's 2D plane and world space.

A :class:`PlaneFrame` is a pose (origin, heading, up).  The right vector is
``normalize(cross(heading, up))``; ``up`` is re-derived as
``cross(right, heading)`` so the basis (right, up, heading) is orthonormal
and :meth:`PlaneFrame.unproject` is the exact inverse of
:meth:`PlaneFrame.to_world`.

Local 2D ``(x, y)`` maps to ``origin + x*right + y*up``.  The local plane's
right-hand normal, ``cross(right, up)``, equals ``-heading``: a CCW contour
projected through a frame faces backwards along the heading.
"""

from __future__ import annotations

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

from sweepcad.config import EPSILON
from sweepcad.errors import DegenerateFrame
from sweepcad.geometry_utils import Vec3, add, cross, dot, mag, normalize, scale, sub, to_vec3
from sweepcad.shape import Shape


class ProjectedShape(NamedTuple):
    """A shape stamped into world space: one ring per contour."""

    outer: List[Vec3]
    holes: List[List[Vec3]]


class PlaneFrame:
    """Orthonormal pose used to place 2D shapes in 3D and to invert that mapping."""

    __slots__ = ('origin', 'heading', 'up', 'right')

    def __init__(self, origin: Sequence[float], heading: Sequence[float], up: Sequence[float]):
        o = to_vec3(origin)
        h = to_vec3(heading)
        u = to_vec3(up)
        if not all(math.isfinite(c) for c in o + h + u):
            raise DegenerateFrame('frame components must be finite')
        hn = normalize(h)
        if hn is None:
            raise DegenerateFrame(f'zero-length heading {h}')
        if normalize(u) is None:
            raise DegenerateFrame(f'zero-length up vector {u}')
        r = cross(hn, u)
        if mag(r) <= EPSILON * max(1.0, mag(u)):
            raise DegenerateFrame(f'heading {h} is parallel to up {u}')
        r = normalize(r)
        object.__setattr__(self, 'origin', o)
        object.__setattr__(self, 'heading', hn)
        object.__setattr__(self, 'right', r)
        object.__setattr__(self, 'up', cross(r, hn))

    def __setattr__(self, name, value):
        raise AttributeError('PlaneFrame is immutable')

    def __repr__(self):
        return f'PlaneFrame(origin={self.origin}, heading={self.heading}, up={self.up})'

    def __eq__(self, other):
        if not isinstance(other, PlaneFrame):
            return NotImplemented
        return (self.origin, self.heading, self.up) == (other.origin, other.heading, other.up)

    def __hash__(self):
        return hash((self.origin, self.heading, self.up))

    @classmethod
    def default(cls) -> "PlaneFrame":
        """Frame at the world origin looking along +Z with +Y up."""
        return cls((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 1.0, 0.0))

    def translated(self, distance: float) -> "PlaneFrame":
        """The same orientation moved ``distance`` along the heading."""
        return PlaneFrame(add(self.origin, scale(self.heading, distance)), self.heading, self.up)

    def to_world(self, x: float, y: float, depth: float = 0.0) -> Vec3:
        o, r, u, h = self.origin, self.right, self.up, self.heading
        return (o[0] + x * r[0] + y * u[0] + depth * h[0],
                o[1] + x * r[1] + y * u[1] + depth * h[1],
                o[2] + x * r[2] + y * u[2] + depth * h[2])

    def unproject(self, point: Sequence[float]) -> Tuple[float, float, float]:
        """World point to local ``(x, y, depth)``.

        ``x``/``y`` are the coordinates of the point's projection onto the
        frame plane; ``depth`` is its signed distance along the heading.
        """
        d = sub(to_vec3(point), self.origin)
        return dot(d, self.right), dot(d, self.up), dot(d, self.heading)

    def project_points(self, points: Iterable[Sequence[float]]) -> List[Vec3]:
        return [self.to_world(p[0], p[1]) for p in points]

    def project(self, shape: Shape) -> ProjectedShape:
        """Stamp every contour of ``shape`` into world space."""
        return ProjectedShape(self.project_points(shape.outer),
                              [self.project_points(hole) for hole in shape.holes])


def project(shape: Shape, frame: PlaneFrame) -> ProjectedShape:
    return frame.project(shape)


def unproject(point: Sequence[float], frame: PlaneFrame) -> Tuple[float, float, float]:
    return frame.unproject(point)


__all__ = ['PlaneFrame', 'ProjectedShape', 'project', 'unproject']
