"""STL export for sweepCAD meshes.

Facets are written straight from the mesh's index faces in face order.
Faces whose normal is undefined (zero area) have no facet.
"""

from __future__ import annotations

import contextlib
from typing import IO, List, Tuple

import numpy as np

from sweepcad.mesh import Mesh

# one binary facet: normal, three corners, attribute byte count (50 bytes)
FACET_DTYPE = np.dtype([
    ('normal', '<f4', (3,)),
    ('corners', '<f4', (3, 3)),
    ('attributes', '<u2'),
])


def _facets(mesh: Mesh) -> Tuple[np.ndarray, np.ndarray]:
    """Normals ``(F, 3)`` and corner positions ``(F, 3, 3)`` of the writable faces."""

    normals = mesh.face_normals()
    keep: List[int] = [i for i, n in enumerate(normals) if n is not None]
    verts = np.asarray(mesh.vertices, dtype=np.float64).reshape(-1, 3)
    faces = np.asarray([mesh.faces[i] for i in keep], dtype=np.int64).reshape(-1, 3)
    return (np.asarray([normals[i] for i in keep], dtype=np.float64).reshape(-1, 3),
            verts[faces])


@contextlib.contextmanager
def _open(path_or_file, mode: str):
    if hasattr(path_or_file, 'write'):
        yield path_or_file
    else:
        with open(path_or_file, mode, **({} if 'b' in mode else {'encoding': 'ascii'})) as stream:
            yield stream


def stl_bytes(mesh: Mesh, name: str = 'sweepCAD') -> bytes:
    """Binary STL image of ``mesh``: 80-byte header, facet count, facet records."""

    normals, corners = _facets(mesh)
    records = np.zeros(len(normals), dtype=FACET_DTYPE)
    records['normal'] = normals
    records['corners'] = corners
    header = name.encode('ascii', errors='replace')[:80].ljust(80, b' ')
    return header + np.array(len(records), dtype='<u4').tobytes() + records.tobytes()


def stl_text(mesh: Mesh, name: str = 'sweepCAD') -> str:
    """ASCII STL of ``mesh``."""

    normals, corners = _facets(mesh)
    lines = [f'solid {name}']
    for n, tri in zip(normals, corners):
        lines.append('  facet normal {:.6e} {:.6e} {:.6e}'.format(*n))
        lines.append('    outer loop')
        lines.extend('      vertex {:.6e} {:.6e} {:.6e}'.format(*v) for v in tri)
        lines.append('    endloop')
        lines.append('  endfacet')
    lines.append(f'endsolid {name}')
    return '\n'.join(lines) + '\n'


def write_stl(mesh: Mesh, path_or_file: str | IO, *, binary: bool = True,
              name: str = 'sweepCAD') -> None:
    """Write ``mesh`` as binary or ASCII STL to a path or an open stream."""

    if binary:
        with _open(path_or_file, 'wb') as stream:
            stream.write(stl_bytes(mesh, name))
    else:
        with _open(path_or_file, 'w') as stream:
            stream.write(stl_text(mesh, name))


__all__ = ['FACET_DTYPE', 'stl_bytes', 'stl_text', 'write_stl']
