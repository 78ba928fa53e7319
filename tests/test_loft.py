import math

import pytest

from sweepcad.boolean2d import difference
from sweepcad.errors import HoleCountMismatch, InsufficientSamples, PointCountMismatch
from sweepcad.frame import PlaneFrame
from sweepcad.geometry_checks import mesh_manifold
from sweepcad.loft import (
    Chain,
    Fluted,
    FunctionTransform,
    Identity,
    Morph,
    Taper,
    Twist,
    as_transform,
    loft,
    loft_between,
)
from sweepcad.shape import circle, rect


def _frames(count, step=1.0):
    base = PlaneFrame.default()
    return [base.translated(i * step) for i in range(count)]


def _ring(mesh, shape, sample, contour):
    """World points of one contour ring of one sample."""
    counts = shape.point_counts
    start = sample * sum(counts) + sum(counts[:contour])
    return mesh.vertices[start:start + counts[contour]]


def test_loft_with_interpolated_hole_rotates_the_hole():
    tube = difference(circle(15), circle(12))
    turned = tube.rotate(90)
    frames = _frames(5, 2.0)
    mesh = loft_between(tube, turned, frames)

    assert mesh_manifold(mesh)
    last = frames[-1]
    first_ring = _ring(mesh, tube, 0, 1)
    last_ring = _ring(mesh, tube, 4, 1)
    for p0, p1 in zip(first_ring, last_ring):
        x0, y0, _ = frames[0].unproject(p0)
        x1, y1, depth = last.unproject(p1)
        # a quarter turn maps (x, y) to (-y, x)
        assert (x1, y1) == pytest.approx((-y0, x0))
        assert depth == pytest.approx(0.0, abs=1e-9)


def test_identity_loft_matches_extrusion_volume():
    shape = rect(2, 2)
    mesh = loft(shape, _frames(3, 1.5))
    assert mesh.signed_volume() == pytest.approx(4.0 * 3.0)


def test_twist_reaches_full_angle_at_last_frame():
    shape = rect(2, 2)
    frames = _frames(4)
    mesh = loft(shape, frames, Twist(90))
    x, y, _ = frames[-1].unproject(_ring(mesh, shape, 3, 0)[0])
    expected = shape.rotate(90).outer[0]
    assert (x, y) == pytest.approx(expected)
    assert mesh_manifold(mesh)


def test_taper_to_a_point_leaves_mesh_open():
    mesh = loft(rect(2, 2), _frames(3), Taper(1.0, 0.0))
    top = mesh.vertices[-4:]
    for v in top:
        assert v == pytest.approx((0.0, 0.0, 2.0))
    assert mesh.group('top') == ()
    assert not mesh_manifold(mesh)


def test_default_taper_stays_closed():
    mesh = loft(rect(2, 2), _frames(3), Taper())
    assert mesh_manifold(mesh)
    assert len(mesh.group('top')) == 2
    assert mesh.signed_volume() == pytest.approx((4.0 + 1.0 + 2.0) * 2.0 / 3.0)


def test_plain_callable_transform():
    mesh = loft(rect(2, 2), _frames(2), lambda shape, t: shape.scale(1.0 + t))
    assert mesh.signed_volume() == pytest.approx((4.0 + 8.0 + 16.0) / 3.0)


def test_chain_applies_in_order():
    chain = Chain(Taper(1.0, 2.0), lambda shape, t: shape.translate(10.0 * t, 0.0))
    out = chain(rect(2, 2), 1.0)
    assert out.centroid == pytest.approx((10.0, 0.0))
    assert out.area == pytest.approx(16.0)


def test_fluted_keeps_point_counts():
    shape = circle(5)
    fluted = Fluted(flutes=4, depth=0.5)(shape, 0.3)
    assert fluted.point_counts == shape.point_counts
    assert math.hypot(*fluted.outer[0]) == pytest.approx(5.5)


def test_morph_endpoints():
    a = circle(2, 8)
    b = circle(4, 8)
    assert Morph(b)(a, 0.0) == a
    assert Morph(b)(a, 1.0).area == pytest.approx(b.area)


def test_closed_loft_reaches_end_value():
    seen = []

    def record(shape, t):
        seen.append(t)
        return shape

    count = 8
    frames = []
    for k in range(count):
        ang = 2.0 * math.pi * k / count
        frames.append(PlaneFrame((10 * math.cos(ang), 10 * math.sin(ang), 0),
                                 (-math.sin(ang), math.cos(ang), 0), (0, 0, 1)))
    mesh = loft(rect(1, 1), frames, record, closed=True)
    assert seen == [k / (count - 1) for k in range(count)]
    assert seen[-1] == 1.0
    assert mesh_manifold(mesh)


def test_open_loft_spans_zero_to_one():
    seen = []
    loft(rect(1, 1), _frames(3), lambda shape, t: seen.append(t) or shape)
    assert seen == [0.0, 0.5, 1.0]


def test_loft_needs_two_frames():
    with pytest.raises(InsufficientSamples):
        loft(rect(1, 1), _frames(1))


def test_transform_changing_point_count():
    with pytest.raises(PointCountMismatch):
        loft(circle(1, 16), _frames(3), lambda shape, t: circle(1, 16 if t == 0 else 20))


def test_transform_dropping_hole():
    tube = difference(circle(15), circle(12))
    with pytest.raises(HoleCountMismatch):
        loft(tube, _frames(3), lambda shape, t: shape if t < 0.5 else circle(15))


def test_as_transform():
    assert isinstance(as_transform(None), Identity)
    assert isinstance(as_transform(lambda s, t: s), FunctionTransform)
    tw = Twist(10)
    assert as_transform(tw) is tw
    with pytest.raises(TypeError):
        as_transform(42)
