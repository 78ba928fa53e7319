"""Local mesh deformation inside a bounding volume.

:func:`warp` optionally refines the mesh where it meets the volume, then
moves every vertex that lies inside the volume through a
:class:`Deformation` evaluated in the volume's local frame.

Refinement is centroid subdivision: a triangle with at least one vertex
inside the volume is replaced by three triangles that share a new vertex
at its centroid.  No existing edge is ever split, so neighbouring
triangles outside the volume stay valid and no T-junctions appear.  New
vertices are appended to the vertex arena; existing indices never change.

Volume local coordinates are ``(x, y, depth)`` from
:meth:`sweepcad.frame.PlaneFrame.unproject`: ``x`` along the frame's right
vector, ``y`` along up, ``depth`` along the heading.  Cylinder and cone
volumes use the heading as their axis.
"""

from __future__ import annotations

import abc
import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Sequence, Tuple

from sweepcad.errors import InvalidVolume, SubdivisionBoundsError
from sweepcad.frame import PlaneFrame
from sweepcad.geometry_utils import Vec3, dot, rotate_about_axis, triangle_centroid
from sweepcad.mesh import Face, Mesh

logger = logging.getLogger(__name__)

_AXES = {'x': 0, 'y': 1, 'z': 2}


class VolumeKind(enum.Enum):
    SPHERE = 'sphere'
    BOX = 'box'
    CYLINDER = 'cylinder'
    CONE = 'cone'


_EXTENT_COUNT = {
    VolumeKind.SPHERE: 1,
    VolumeKind.BOX: 3,
    VolumeKind.CYLINDER: 2,
    VolumeKind.CONE: 3,
}


@dataclass(frozen=True)
class Volume:
    """A posed region of space used to select vertices for warping.

    ``extents`` depend on ``kind``:

    * ``SPHERE``: ``(radius,)``
    * ``BOX``: ``(half_x, half_y, half_depth)``
    * ``CYLINDER``: ``(radius, half_length)``
    * ``CONE``: ``(bottom_radius, top_radius, half_length)``; the bottom
      sits at ``depth = -half_length``
    """

    frame: PlaneFrame
    kind: VolumeKind
    extents: Tuple[float, ...]

    def __post_init__(self):
        try:
            kind = VolumeKind(self.kind)
        except ValueError as exc:
            raise InvalidVolume(f'unknown volume kind {self.kind!r}') from exc
        extents = tuple(float(e) for e in self.extents)
        if len(extents) != _EXTENT_COUNT[kind]:
            raise InvalidVolume(f'{kind.value} volume takes {_EXTENT_COUNT[kind]} extents, got {len(extents)}')
        if not all(math.isfinite(e) for e in extents):
            raise InvalidVolume(f'volume extents must be finite: {extents}')
        if kind is VolumeKind.CONE:
            if extents[0] < 0 or extents[1] < 0 or max(extents[0], extents[1]) <= 0 or extents[2] <= 0:
                raise InvalidVolume(f'bad cone extents {extents}')
        elif any(e <= 0 for e in extents):
            raise InvalidVolume(f'{kind.value} extents must be positive: {extents}')
        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'extents', extents)

    @classmethod
    def sphere(cls, frame: PlaneFrame, radius: float) -> "Volume":
        return cls(frame, VolumeKind.SPHERE, (radius,))

    @classmethod
    def box(cls, frame: PlaneFrame, half_x: float, half_y: float, half_depth: float) -> "Volume":
        return cls(frame, VolumeKind.BOX, (half_x, half_y, half_depth))

    @classmethod
    def cylinder(cls, frame: PlaneFrame, radius: float, half_length: float) -> "Volume":
        return cls(frame, VolumeKind.CYLINDER, (radius, half_length))

    @classmethod
    def cone(cls, frame: PlaneFrame, bottom_radius: float, top_radius: float,
             half_length: float) -> "Volume":
        return cls(frame, VolumeKind.CONE, (bottom_radius, top_radius, half_length))

    @property
    def half_extents(self) -> Vec3:
        """Half size of the volume's local bounding box."""
        e = self.extents
        if self.kind is VolumeKind.SPHERE:
            return e[0], e[0], e[0]
        if self.kind is VolumeKind.BOX:
            return e[0], e[1], e[2]
        if self.kind is VolumeKind.CYLINDER:
            return e[0], e[0], e[1]
        r = max(e[0], e[1])
        return r, r, e[2]

    def to_local(self, point: Sequence[float]) -> Vec3:
        return self.frame.unproject(point)

    def to_world(self, local: Sequence[float]) -> Vec3:
        return self.frame.to_world(local[0], local[1], local[2])

    def _cone_radius(self, depth: float) -> float:
        bottom, top, half = self.extents
        t = (depth + half) / (2.0 * half)
        return bottom + t * (top - bottom)

    def contains_local(self, local: Sequence[float]) -> bool:
        x, y, z = local[0], local[1], local[2]
        e = self.extents
        if self.kind is VolumeKind.SPHERE:
            return x * x + y * y + z * z <= e[0] * e[0]
        if self.kind is VolumeKind.BOX:
            return abs(x) <= e[0] and abs(y) <= e[1] and abs(z) <= e[2]
        radial = math.hypot(x, y)
        if self.kind is VolumeKind.CYLINDER:
            return abs(z) <= e[1] and radial <= e[0]
        return abs(z) <= e[2] and radial <= self._cone_radius(z)

    def contains(self, point: Sequence[float]) -> bool:
        return self.contains_local(self.to_local(point))

    def normalized_distance(self, local: Sequence[float]) -> float:
        """0 at the centre (or axis), 1 at the boundary, clamped to [0, 1]."""
        x, y, z = local[0], local[1], local[2]
        e = self.extents
        if self.kind is VolumeKind.SPHERE:
            d = math.sqrt(x * x + y * y + z * z) / e[0]
        elif self.kind is VolumeKind.BOX:
            d = max(abs(x) / e[0], abs(y) / e[1], abs(z) / e[2])
        else:
            half = e[-1]
            r = e[0] if self.kind is VolumeKind.CYLINDER else self._cone_radius(z)
            rdist = math.hypot(x, y) / r if r > 0 else 0.0
            d = max(rdist, abs(z) / half)
        return min(1.0, d)

    def normalized_position(self, local: Sequence[float]) -> Vec3:
        """Local position scaled by the half extents, so each axis spans [-1, 1]."""
        hx, hy, hz = self.half_extents
        return local[0] / hx, local[1] / hy, local[2] / hz


def smooth_falloff(dist: float) -> float:
    """Hermite falloff: 1 at the centre (dist=0), 0 at the boundary (dist=1)."""

    t = 1.0 - max(0.0, min(1.0, dist))
    return t * t * (3.0 - 2.0 * t)


class WarpSample(NamedTuple):
    """Per-vertex context handed to a deformation."""

    position: Vec3
    distance: float
    normal: Vec3
    volume: Volume


class Deformation(abc.ABC):
    """Pure point mapping in volume-local coordinates."""

    @abc.abstractmethod
    def evaluate(self, local: Vec3, sample: WarpSample) -> Vec3:
        raise NotImplementedError


class FunctionDeformation(Deformation):
    """Adapts a plain ``local -> local`` callable."""

    def __init__(self, fn: Callable[[Vec3], Sequence[float]]):
        self.fn = fn

    def evaluate(self, local, sample):
        out = self.fn(local)
        return float(out[0]), float(out[1]), float(out[2])


class Identity(Deformation):
    def evaluate(self, local, sample):
        return local


class Inflate(Deformation):
    """Push vertices along their normals by ``amount`` at the centre, fading to 0."""

    def __init__(self, amount: float):
        self.amount = amount

    def evaluate(self, local, sample):
        k = self.amount * smooth_falloff(sample.distance)
        n = sample.normal
        return local[0] + n[0] * k, local[1] + n[1] * k, local[2] + n[2] * k


class Dent(Inflate):
    def __init__(self, amount: float):
        super().__init__(-amount)


class Attract(Deformation):
    """Pull vertices toward the centre (sphere, box) or the axis (cylinder, cone).

    ``strength`` 0 leaves points alone, 1 moves them all the way.
    """

    def __init__(self, strength: float):
        self.strength = strength

    def evaluate(self, local, sample):
        k = self.strength * smooth_falloff(sample.distance)
        if sample.volume.kind in (VolumeKind.CYLINDER, VolumeKind.CONE):
            target = (0.0, 0.0, local[2])
        else:
            target = (0.0, 0.0, 0.0)
        return (local[0] + (target[0] - local[0]) * k,
                local[1] + (target[1] - local[1]) * k,
                local[2] + (target[2] - local[2]) * k)


class Twist(Deformation):
    """Rotate about a local axis through the centre.

    The angle grows from ``-degrees`` to ``+degrees`` along the axis and is
    scaled by the falloff.
    """

    def __init__(self, degrees: float, axis: str = 'z'):
        if axis not in _AXES:
            raise ValueError(f'twist axis must be one of x, y, z, got {axis!r}')
        self.degrees = degrees
        self.axis = axis

    def evaluate(self, local, sample):
        idx = _AXES[self.axis]
        along = max(-1.0, min(1.0, sample.position[idx]))
        angle = math.radians(self.degrees) * smooth_falloff(sample.distance) * along
        unit = [0.0, 0.0, 0.0]
        unit[idx] = 1.0
        return rotate_about_axis(tuple(local), tuple(unit), angle)


class Squash(Deformation):
    """Flatten toward the plane through the centre normal to ``axis``.

    ``amount`` 0 flattens completely, 1 has no effect.
    """

    def __init__(self, axis: str, amount: float = 0.0):
        if axis not in _AXES:
            raise ValueError(f'squash axis must be one of x, y, z, got {axis!r}')
        self.axis = axis
        self.amount = amount

    def evaluate(self, local, sample):
        idx = _AXES[self.axis]
        out = list(local)
        target = self.amount * out[idx]
        out[idx] = out[idx] + smooth_falloff(sample.distance) * (target - out[idx])
        return out[0], out[1], out[2]


def _hash3(x: float, y: float, z: float) -> float:
    n = math.sin(x * 127.1 + y * 311.7 + z * 74.7) * 43758.5453
    return 2.0 * (n - math.floor(n)) - 1.0


class Roughen(Deformation):
    """Deterministic noise displacement along the normal."""

    def __init__(self, amplitude: float, frequency: float = 1.0):
        self.amplitude = amplitude
        self.frequency = frequency

    def evaluate(self, local, sample):
        f = self.frequency
        k = self.amplitude * smooth_falloff(sample.distance) * _hash3(local[0] * f, local[1] * f, local[2] * f)
        n = sample.normal
        return local[0] + n[0] * k, local[1] + n[1] * k, local[2] + n[2] * k


class Chain(Deformation):
    """Apply deformations in order; each sees the previous one's output."""

    def __init__(self, *deformations: Deformation | Callable[[Vec3], Sequence[float]]):
        self.deformations = [as_deformation(d) for d in deformations]

    def evaluate(self, local, sample):
        for d in self.deformations:
            local = d.evaluate(local, sample)
        return local


def as_deformation(fn: Deformation | Callable[[Vec3], Sequence[float]] | None) -> Deformation:
    if fn is None:
        return Identity()
    if isinstance(fn, Deformation):
        return fn
    if callable(fn):
        return FunctionDeformation(fn)
    raise TypeError(f'expected a Deformation or callable, got {type(fn).__name__}')


def _check_passes(passes) -> int:
    if isinstance(passes, bool) or not isinstance(passes, int):
        raise SubdivisionBoundsError(f'subdivision passes must be an integer, got {passes!r}')
    if passes < 0:
        raise SubdivisionBoundsError(f'subdivision passes must be >= 0, got {passes}')
    return passes


def _subdivide_once(vertices: List[Vec3], faces: Sequence[Face], volume: Volume,
                    inside: Dict[int, bool]) -> List[Face]:
    def _in(idx: int) -> bool:
        flag = inside.get(idx)
        if flag is None:
            flag = volume.contains(vertices[idx])
            inside[idx] = flag
        return flag

    out: List[Face] = []
    for face in faces:
        i0, i1, i2 = face
        if _in(i0) or _in(i1) or _in(i2):
            ic = len(vertices)
            vertices.append(triangle_centroid(vertices[i0], vertices[i1], vertices[i2]))
            out.extend(((i0, i1, ic), (i1, i2, ic), (i2, i0, ic)))
        else:
            out.append(face)
    return out


def subdivide(mesh: Mesh, volume: Volume, passes: int = 1) -> Mesh:
    """Centroid-subdivide every triangle touching ``volume``, ``passes`` times.

    Each pass works on the whole current mesh, centroids from earlier passes
    included.  Triangles with no vertex inside the volume are copied as is.
    Face groups are dropped once any pass has run.
    """

    passes = _check_passes(passes)
    if passes == 0:
        return mesh
    vertices = list(mesh.vertices)
    faces: Sequence[Face] = mesh.faces
    inside: Dict[int, bool] = {}
    for n in range(passes):
        faces = _subdivide_once(vertices, faces, volume, inside)
        logger.debug("subdivide pass %d: %d faces, %d vertices", n + 1, len(faces), len(vertices))
    return Mesh(tuple(vertices), tuple(faces))


def warp(mesh: Mesh, volume: Volume,
         deformation: Deformation | Callable[[Vec3], Sequence[float]] | None,
         subdivision_passes: int = 0) -> Mesh:
    """Deform the part of ``mesh`` inside ``volume``.

    The mesh is first refined with :func:`subdivide`; then every vertex
    inside the volume is mapped to local coordinates, passed through
    ``deformation`` and mapped back to world space.  Vertices outside the
    volume keep their exact coordinates.  Vertex normals handed to the
    deformation are computed before any vertex moves.
    """

    deform = as_deformation(deformation)
    refined = subdivide(mesh, volume, subdivision_passes)
    frame = volume.frame
    normals = refined.vertex_normals()

    moved = 0
    vertices: List[Vec3] = []
    for v, n in zip(refined.vertices, normals):
        local = volume.to_local(v)
        if not volume.contains_local(local):
            vertices.append(v)
            continue
        sample = WarpSample(volume.normalized_position(local),
                            volume.normalized_distance(local),
                            (dot(n, frame.right), dot(n, frame.up), dot(n, frame.heading)),
                            volume)
        vertices.append(volume.to_world(deform.evaluate(local, sample)))
        moved += 1

    logger.debug("warp: %d of %d vertices inside %s volume", moved, len(vertices), volume.kind.value)
    return refined.with_vertices(vertices)


__all__ = [
    'VolumeKind',
    'Volume',
    'WarpSample',
    'Deformation',
    'FunctionDeformation',
    'Identity',
    'Inflate',
    'Dent',
    'Attract',
    'Twist',
    'Squash',
    'Roughen',
    'Chain',
    'as_deformation',
    'smooth_falloff',
    'subdivide',
    'warp',
]
