import math

import pytest

from sweepcad.errors import InvalidVolume, SubdivisionBoundsError
from sweepcad.frame import PlaneFrame
from sweepcad.geometry_checks import mesh_manifold
from sweepcad.geometry_utils import mag, sub
from sweepcad.shape import rect
from sweepcad.sweep import extrude
from sweepcad.warp import (
    Attract,
    Chain,
    Dent,
    FunctionDeformation,
    Identity,
    Inflate,
    Roughen,
    Squash,
    Twist,
    Volume,
    VolumeKind,
    as_deformation,
    smooth_falloff,
    subdivide,
    warp,
)


def _cube():
    """Cube spanning [-1, 1] x [-1, 1] x [0, 2]: 8 vertices, 12 triangles."""
    return extrude(rect(2, 2), 2.0)


def _frame_at(x, y, z):
    return PlaneFrame((x, y, z), (0, 0, 1), (0, 1, 0))


def _enclosing_sphere():
    return Volume.sphere(_frame_at(0, 0, 1), 2.0)


def _corner_sphere():
    return Volume.sphere(_frame_at(1, 1, 0), 0.5)


class TestBoundedSubdivision:

    def test_cube_inflated_with_two_passes(self):
        cube = _cube()
        assert cube.face_count == 12
        out = warp(cube, _enclosing_sphere(), Inflate(0.25), subdivision_passes=2)
        assert out.face_count == 12 * 9
        assert mesh_manifold(out)

    def test_zero_passes_keeps_faces_and_groups(self):
        cube = _cube()
        out = warp(cube, _enclosing_sphere(), Inflate(0.25), subdivision_passes=0)
        assert out.faces == cube.faces
        assert out.face_groups == cube.face_groups

    def test_each_pass_triples_only_affected_triangles(self):
        cube = _cube()
        volume = _corner_sphere()
        mesh = cube
        for _ in range(3):
            affected = [f for f in mesh.faces
                        if any(volume.contains(mesh.vertices[i]) for i in f)]
            untouched = [f for f in mesh.faces
                         if not any(volume.contains(mesh.vertices[i]) for i in f)]
            assert affected
            nxt = subdivide(mesh, volume, 1)
            assert nxt.face_count == len(untouched) + 3 * len(affected)
            assert set(untouched) <= set(nxt.faces)
            mesh = nxt

    def test_subdivision_appends_vertices(self):
        cube = _cube()
        out = subdivide(cube, _corner_sphere(), 1)
        assert out.vertices[:cube.vertex_count] == cube.vertices
        assert out.face_groups is None
        assert mesh_manifold(out)

    def test_outside_vertices_untouched(self):
        cube = _cube()
        volume = _corner_sphere()
        out = warp(cube, volume, Inflate(0.3), subdivision_passes=2)
        for i, v in enumerate(cube.vertices):
            if not volume.contains(v):
                assert out.vertices[i] == v

    @pytest.mark.parametrize('passes', [-1, 1.5, True, '2'])
    def test_bad_pass_count(self, passes):
        with pytest.raises(SubdivisionBoundsError):
            warp(_cube(), _enclosing_sphere(), Identity(), subdivision_passes=passes)


class TestDeformations:

    @pytest.mark.parametrize('passes', [0, 1, 2])
    def test_identity_is_a_no_op(self, passes):
        cube = _cube()
        volume = _corner_sphere()
        refined = subdivide(cube, volume, passes)
        out = warp(cube, volume, None, subdivision_passes=passes)
        assert out.vertex_count == refined.vertex_count
        for got, want in zip(out.vertices, refined.vertices):
            assert got == pytest.approx(want, abs=1e-12)

    def test_inflate_pushes_corner_outward(self):
        cube = _cube()
        centre = (0.0, 0.0, 1.0)
        corner = cube.vertices.index((1.0, 1.0, 0.0))
        out = warp(cube, _corner_sphere(), Inflate(0.2))
        assert mag(sub(out.vertices[corner], centre)) > mag(sub(cube.vertices[corner], centre))
        dented = warp(cube, _corner_sphere(), Dent(0.2))
        assert mag(sub(dented.vertices[corner], centre)) < mag(sub(cube.vertices[corner], centre))

    def test_function_deformation_in_local_frame(self):
        cube = _cube()
        volume = Volume.box(_frame_at(0, 0, 2), 2.0, 2.0, 0.5)
        out = warp(cube, volume, lambda local: (local[0], local[1], local[2] + 1.0))
        for before, after in zip(cube.vertices, out.vertices):
            if before[2] == 2.0:
                assert after == pytest.approx((before[0], before[1], 3.0))
            else:
                assert after == before

    def test_squash_flattens_toward_centre_plane(self):
        volume = Volume.sphere(PlaneFrame.default(), 10.0)
        mesh = extrude(rect(2, 2), 1.0)
        out = warp(mesh, volume, Squash('z', 0.0))
        for before, after in zip(mesh.vertices, out.vertices):
            assert abs(after[2]) <= abs(before[2])

    def test_attract_pulls_toward_axis(self):
        volume = Volume.cylinder(_frame_at(0, 0, 0), 5.0, 5.0)
        mesh = extrude(rect(2, 2), 1.0)
        out = warp(mesh, volume, Attract(0.5))
        for before, after in zip(mesh.vertices, out.vertices):
            assert math.hypot(after[0], after[1]) < math.hypot(before[0], before[1])
            assert after[2] == pytest.approx(before[2])

    def test_twist_preserves_radius(self):
        volume = Volume.cylinder(_frame_at(0, 0, 1), 5.0, 2.0)
        cube = _cube()
        out = warp(cube, volume, Twist(45.0))
        for before, after in zip(cube.vertices, out.vertices):
            assert math.hypot(*after[:2]) == pytest.approx(math.hypot(*before[:2]))

    def test_roughen_is_deterministic(self):
        volume = _enclosing_sphere()
        a = warp(_cube(), volume, Roughen(0.1, 3.0), subdivision_passes=1)
        b = warp(_cube(), volume, Roughen(0.1, 3.0), subdivision_passes=1)
        assert a.vertices == b.vertices

    def test_chain_and_as_deformation(self):
        shift = lambda local: (local[0] + 1.0, local[1], local[2])
        chain = Chain(shift, shift)
        volume = _enclosing_sphere()
        cube = _cube()
        out = warp(cube, volume, chain)
        # the volume frame's right vector is -X
        assert out.vertices[0] == pytest.approx((cube.vertices[0][0] - 2.0,) + cube.vertices[0][1:])
        assert isinstance(as_deformation(None), Identity)
        assert isinstance(as_deformation(shift), FunctionDeformation)
        with pytest.raises(TypeError):
            as_deformation('inflate')


class TestVolume:

    def test_sphere_and_box(self):
        frame = _frame_at(0, 0, 0)
        assert Volume.sphere(frame, 1.0).contains((0.5, 0.5, 0.5))
        assert not Volume.sphere(frame, 1.0).contains((0.8, 0.8, 0.0))
        box = Volume.box(frame, 1.0, 2.0, 3.0)
        assert box.contains((0.9, -1.9, 2.9))
        assert not box.contains((0.9, -2.1, 0.0))

    def test_cylinder_axis_follows_heading(self):
        vol = Volume.cylinder(PlaneFrame((0, 0, 0), (1, 0, 0), (0, 0, 1)), 1.0, 2.0)
        assert vol.contains((1.5, 0.0, 0.5))
        assert not vol.contains((2.5, 0.0, 0.0))
        assert not vol.contains((0.0, 1.5, 0.0))

    def test_cone_narrows_toward_top(self):
        vol = Volume.cone(_frame_at(0, 0, 0), 1.0, 0.0, 1.0)
        assert vol.contains((0.9, 0.0, -0.9))
        assert not vol.contains((0.9, 0.0, 0.9))
        assert vol.contains((0.0, 0.0, 0.99))

    def test_normalized_distance(self):
        vol = Volume.sphere(_frame_at(0, 0, 0), 2.0)
        assert vol.normalized_distance((0.0, 0.0, 0.0)) == 0.0
        assert vol.normalized_distance((1.0, 0.0, 0.0)) == pytest.approx(0.5)
        assert vol.normalized_distance((5.0, 0.0, 0.0)) == 1.0

    @pytest.mark.parametrize('kind, extents', [
        (VolumeKind.SPHERE, (0.0,)),
        (VolumeKind.BOX, (1.0, 1.0)),
        (VolumeKind.CYLINDER, (1.0, -1.0)),
        (VolumeKind.CONE, (0.0, 0.0, 1.0)),
        ('blob', (1.0,)),
    ])
    def test_invalid_volumes(self, kind, extents):
        with pytest.raises(InvalidVolume):
            Volume(PlaneFrame.default(), kind, extents)

    def test_kind_accepts_string(self):
        assert Volume(PlaneFrame.default(), 'sphere', (1,)).kind is VolumeKind.SPHERE


def test_smooth_falloff():
    assert smooth_falloff(0.0) == 1.0
    assert smooth_falloff(1.0) == 0.0
    assert smooth_falloff(0.5) == pytest.approx(0.5)
    assert smooth_falloff(3.0) == 0.0
