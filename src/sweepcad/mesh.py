"""Indexed triangle meshes produced by the sweep, loft and warp engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from sweepcad.geometry_utils import (
    Vec3,
    add,
    dot,
    cross,
    normalize,
    to_vec3,
    triangle_cross,
    triangle_normal,
)

Face = Tuple[int, int, int]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]


@dataclass(frozen=True)
class Mesh:
    """Vertex arena plus triangular faces.

    ``vertices`` is owned by the mesh; faces reference it by index only.
    Each face's winding gives its outward normal by the right-hand rule.
    ``face_groups`` optionally maps a group name (``"top"``, ``"side"``...)
    to face indices; operations that restructure topology drop it.
    """

    vertices: Tuple[Vec3, ...]
    faces: Tuple[Face, ...]
    face_groups: Optional[Mapping[str, Tuple[int, ...]]] = field(default=None, compare=False)

    def __post_init__(self):
        verts = tuple(to_vec3(v) for v in self.vertices)
        count = len(verts)
        faces = []
        for face in self.faces:
            if len(face) != 3:
                raise ValueError(f'faces must be triangles, got {face!r}')
            tri = (int(face[0]), int(face[1]), int(face[2]))
            for idx in tri:
                if idx < 0 or idx >= count:
                    raise ValueError(f'face {tri} references vertex {idx} outside 0..{count - 1}')
            faces.append(tri)
        object.__setattr__(self, 'vertices', verts)
        object.__setattr__(self, 'faces', tuple(faces))
        if self.face_groups is not None:
            groups = {name: tuple(int(i) for i in idxs) for name, idxs in self.face_groups.items()}
            object.__setattr__(self, 'face_groups', groups)

    def __repr__(self):
        return f'Mesh(vertices={len(self.vertices)}, faces={len(self.faces)})'

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def group(self, name: str) -> Tuple[Face, ...]:
        """Faces in the named group, or an empty tuple."""
        if not self.face_groups or name not in self.face_groups:
            return ()
        return tuple(self.faces[i] for i in self.face_groups[name])

    def without_groups(self) -> "Mesh":
        return Mesh(self.vertices, self.faces)

    def with_vertices(self, vertices: Sequence[Sequence[float]]) -> "Mesh":
        """Same topology and groups, new vertex positions."""
        if len(vertices) != len(self.vertices):
            raise ValueError('replacement vertex list must keep the vertex count')
        return Mesh(tuple(vertices), self.faces, self.face_groups)

    def triangles(self) -> Iterator[TriTuple]:
        """Yield ``(normal, v0, v1, v2)`` for every non-degenerate face."""
        verts = self.vertices
        for i0, i1, i2 in self.faces:
            v0, v1, v2 = verts[i0], verts[i1], verts[i2]
            n = triangle_normal(v0, v1, v2)
            if n is None:
                continue
            yield n, v0, v1, v2

    def face_normals(self) -> List[Optional[Vec3]]:
        verts = self.vertices
        return [triangle_normal(verts[a], verts[b], verts[c]) for a, b, c in self.faces]

    def vertex_normals(self) -> List[Vec3]:
        """Area-weighted average of adjacent face normals, per vertex.

        Vertices with no non-degenerate adjacent face get ``(0, 0, 0)``.
        """
        sums: List[Vec3] = [(0.0, 0.0, 0.0)] * len(self.vertices)
        verts = self.vertices
        for a, b, c in self.faces:
            n = triangle_cross(verts[a], verts[b], verts[c])
            sums[a] = add(sums[a], n)
            sums[b] = add(sums[b], n)
            sums[c] = add(sums[c], n)
        return [normalize(s) or (0.0, 0.0, 0.0) for s in sums]

    def bbox(self) -> Tuple[Vec3, Vec3]:
        if not self.vertices:
            raise ValueError('empty mesh has no bounding box')
        xs, ys, zs = zip(*self.vertices)
        return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))

    def signed_volume(self) -> float:
        """Enclosed volume; positive when a closed mesh's normals face outward."""
        verts = self.vertices
        total = 0.0
        for a, b, c in self.faces:
            total += dot(verts[a], cross(verts[b], verts[c]))
        return total / 6.0


def merge(meshes: Iterable[Mesh]) -> Mesh:
    """Concatenate meshes into one, offsetting face indices and groups."""

    vertices: List[Vec3] = []
    faces: List[Face] = []
    groups: Dict[str, List[int]] = {}
    keep_groups = True
    for m in meshes:
        v_off = len(vertices)
        f_off = len(faces)
        vertices.extend(m.vertices)
        faces.extend((a + v_off, b + v_off, c + v_off) for a, b, c in m.faces)
        if m.face_groups is None:
            keep_groups = False
        elif keep_groups:
            for name, idxs in m.face_groups.items():
                groups.setdefault(name, []).extend(i + f_off for i in idxs)
    return Mesh(tuple(vertices), tuple(faces),
                {k: tuple(v) for k, v in groups.items()} if keep_groups and groups else None)


__all__ = ['Face', 'Mesh', 'merge']
