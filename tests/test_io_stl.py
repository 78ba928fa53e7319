import io
import struct

import numpy as np
import pytest

from sweepcad.io import write_stl
from sweepcad.io.stl import FACET_DTYPE, stl_bytes
from sweepcad.mesh import Mesh
from sweepcad.shape import rect
from sweepcad.sweep import extrude


def _tetra():
    return Mesh(((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)),
                ((0, 2, 1), (0, 1, 3), (0, 3, 2), (1, 2, 3)))


def test_write_stl_binary(tmp_path):
    path = tmp_path / 'tetra.stl'
    write_stl(_tetra(), path, binary=True, name='test')

    data = path.read_bytes()
    assert len(data) == 80 + 4 + 4 * 50
    assert data[0:4] == b'test'
    count = struct.unpack('<I', data[80:84])[0]
    assert count == 4
    normal = struct.unpack('<3f', data[84:96])
    assert normal == pytest.approx((0.0, 0.0, -1.0))


def test_write_stl_binary_stream():
    buf = io.BytesIO()
    write_stl(extrude(rect(2, 2), 1.0), buf)
    data = buf.getvalue()
    assert data[:8] == b'sweepCAD'
    assert struct.unpack('<I', data[80:84])[0] == 12


def test_write_stl_ascii():
    buf = io.StringIO()
    write_stl(_tetra(), buf, binary=False, name='ascii_test')

    text = buf.getvalue()
    assert text.startswith('solid ascii_test')
    assert text.count('facet normal') == 4
    assert text.count('vertex') == 12
    assert text.strip().endswith('endsolid ascii_test')


def test_degenerate_faces_are_skipped(tmp_path):
    mesh = Mesh(((0, 0, 0), (1, 0, 0), (2, 0, 0), (0, 1, 0)), ((0, 1, 2), (0, 1, 3)))
    path = tmp_path / 'flat.stl'
    write_stl(mesh, str(path), binary=False)
    assert path.read_text().count('facet normal') == 1


def test_facets_follow_face_indices():
    mesh = _tetra()
    data = stl_bytes(mesh)
    records = np.frombuffer(data[84:], dtype=FACET_DTYPE)
    assert len(records) == mesh.face_count
    for record, face, normal in zip(records, mesh.faces, mesh.face_normals()):
        expected = [mesh.vertices[i] for i in face]
        assert np.allclose(record['corners'], expected)
        assert tuple(record['normal']) == pytest.approx(normal, abs=1e-6)


def test_mesh_without_faces():
    data = stl_bytes(Mesh((), ()), name='empty')
    assert len(data) == 84
    assert struct.unpack('<I', data[80:84])[0] == 0
