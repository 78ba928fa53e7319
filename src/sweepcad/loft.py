"""Lofting: sweeping a shape that changes along the path.

A loft evaluates a :class:`ShapeTransform` once per frame with the frame's
normalised position ``t`` (0.0 at the first frame, 1.0 at the last) and
hands the resulting samples to :func:`sweepcad.sweep.sweep`.  The transform
must keep the hole structure stable; if it does not, the sweep raises
:class:`~sweepcad.errors.HoleCountMismatch` or
:class:`~sweepcad.errors.PointCountMismatch`.

When interpolating between two shapes, holes are paired by their index in
the hole list, never by geometric similarity.  Supplying holes in a
consistent order is the caller's job.
"""

from __future__ import annotations

import abc
import logging
import math
from typing import Callable, Iterable, List, Sequence

from sweepcad.errors import InsufficientSamples
from sweepcad.frame import PlaneFrame
from sweepcad.mesh import Mesh
from sweepcad.shape import Shape, interpolate
from sweepcad.sweep import SweepSample, sweep

logger = logging.getLogger(__name__)


class ShapeTransform(abc.ABC):
    """Pure per-sample shape transform: ``evaluate(shape, t) -> shape``."""

    @abc.abstractmethod
    def evaluate(self, shape: Shape, t: float) -> Shape:
        raise NotImplementedError

    def __call__(self, shape: Shape, t: float) -> Shape:
        return self.evaluate(shape, t)


class FunctionTransform(ShapeTransform):
    """Adapts a plain ``(shape, t) -> shape`` callable."""

    def __init__(self, fn: Callable[[Shape, float], Shape]):
        self.fn = fn

    def evaluate(self, shape, t):
        return self.fn(shape, t)


class Identity(ShapeTransform):
    def evaluate(self, shape, t):
        return shape


class Morph(ShapeTransform):
    """Interpolate from the lofted shape (t=0) to ``target`` (t=1), hole for hole."""

    def __init__(self, target: Shape):
        self.target = target

    def evaluate(self, shape, t):
        return interpolate(shape, self.target, t)


class Taper(ShapeTransform):
    """Uniform scale going from ``start`` to ``end``.

    An ``end`` of 0 collapses the last ring to a point: its cap triangulates
    to nothing, so the lofted mesh is left open at that end.
    """

    def __init__(self, start: float = 1.0, end: float = 0.5):
        self.start = start
        self.end = end

    def evaluate(self, shape, t):
        return shape.scale(self.start + t * (self.end - self.start))


class Twist(ShapeTransform):
    """Rotation growing linearly from 0 to ``degrees``."""

    def __init__(self, degrees: float = 360.0):
        self.degrees = degrees

    def evaluate(self, shape, t):
        return shape.rotate(t * self.degrees)


class Fluted(ShapeTransform):
    """Radial cosine grooves around the shape centroid, constant along the path."""

    def __init__(self, flutes: int = 6, depth: float = 1.0):
        self.flutes = flutes
        self.depth = depth

    def evaluate(self, shape, t):
        cx, cy = shape.centroid

        def displace(p):
            dx, dy = p[0] - cx, p[1] - cy
            r = math.hypot(dx, dy)
            if r < 1e-4:
                return p
            off = self.depth * math.cos(math.atan2(dy, dx) * self.flutes)
            return (p[0] + dx / r * off, p[1] + dy / r * off)

        return shape.map_points(displace)


class Chain(ShapeTransform):
    """Apply several transforms in order, each seeing the previous result."""

    def __init__(self, *transforms: ShapeTransform | Callable[[Shape, float], Shape]):
        self.transforms = [as_transform(tr) for tr in transforms]

    def evaluate(self, shape, t):
        for tr in self.transforms:
            shape = tr.evaluate(shape, t)
        return shape


def as_transform(fn: ShapeTransform | Callable[[Shape, float], Shape] | None) -> ShapeTransform:
    if fn is None:
        return Identity()
    if isinstance(fn, ShapeTransform):
        return fn
    if callable(fn):
        return FunctionTransform(fn)
    raise TypeError(f'expected a ShapeTransform or callable, got {type(fn).__name__}')


def loft(shape: Shape, frames: Iterable[PlaneFrame],
         transform: ShapeTransform | Callable[[Shape, float], Shape] | None = None,
         closed: bool = False, capped: bool = True) -> Mesh:
    """Sweep ``transform(shape, t)`` along ``frames``.

    ``t = i / (N - 1)``: 0.0 at the first frame and 1.0 at the last, closed or
    not.  A closed loft stitches the last frame back to the first, so a
    transform that should close seamlessly must return the same shape at
    both ends.
    """

    frames = list(frames)
    n = len(frames)
    if n < 2:
        raise InsufficientSamples(f'loft needs at least 2 frames, got {n}')
    tr = as_transform(transform)
    samples: List[SweepSample] = [SweepSample(tr.evaluate(shape, i / (n - 1)), frame)
                                  for i, frame in enumerate(frames)]
    logger.debug("loft: %d frames with %s", n, type(tr).__name__)
    return sweep(samples, closed=closed, capped=capped)


def loft_between(start: Shape, end: Shape, frames: Sequence[PlaneFrame],
                 closed: bool = False, capped: bool = True) -> Mesh:
    """Loft morphing ``start`` into ``end``; hole ``i`` of one becomes hole ``i`` of the other."""

    return loft(start, frames, Morph(end), closed=closed, capped=capped)


__all__ = [
    'ShapeTransform',
    'FunctionTransform',
    'Identity',
    'Morph',
    'Taper',
    'Twist',
    'Fluted',
    'Chain',
    'as_transform',
    'loft',
    'loft_between',
]
