"""Validation helpers for sweepCAD meshes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Tuple

from sweepcad.mesh import Mesh


def faces_in_range(mesh: Mesh) -> "CheckResult":
    """Every face has three distinct in-range vertex indices."""

    count = mesh.vertex_count
    bad = [idx for idx, face in enumerate(mesh.faces)
           if len(set(face)) != 3 or any(i < 0 or i >= count for i in face)]
    if bad:
        return CheckResult(False, [f'invalid faces at indices: {bad}'])
    return CheckResult(True, [])


def directed_edges(mesh: Mesh) -> Counter:
    edges: Counter = Counter()
    for a, b, c in mesh.faces:
        edges[(a, b)] += 1
        edges[(b, c)] += 1
        edges[(c, a)] += 1
    return edges


def boundary_edges(mesh: Mesh) -> List[Tuple[int, int]]:
    """Directed edges whose reverse is not used by any face."""

    edges = directed_edges(mesh)
    return [edge for edge in edges if (edge[1], edge[0]) not in edges]


def mesh_manifold(mesh: Mesh) -> "CheckResult":
    """Closed-manifold test: each edge is shared by exactly two faces
    traversing it in opposite directions."""

    edges = directed_edges(mesh)
    undirected: Counter = Counter()
    for (a, b), n in edges.items():
        undirected[_edge_key(a, b)] += n

    warnings: List[str] = []
    ok = True

    boundary = [edge for edge, count in undirected.items() if count == 1]
    invalid = [edge for edge, count in undirected.items() if count > 2]
    flipped = [edge for edge, count in edges.items() if count > 1]

    if boundary:
        ok = False
        warnings.append(f'{len(boundary)} boundary edges detected')
    if invalid:
        ok = False
        warnings.append(f'edges with multiplicity >2: {invalid}')
    if flipped:
        ok = False
        warnings.append(f'edges traversed twice in the same direction: {flipped}')

    return CheckResult(ok, warnings)


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'faces_in_range',
    'directed_edges',
    'boundary_edges',
    'mesh_manifold',
]
