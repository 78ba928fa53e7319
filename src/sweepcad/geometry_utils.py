"""Common 3D vector and triangle helpers shared by the engines."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from sweepcad.config import EPSILON

Vec3 = Tuple[float, float, float]


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point-like sequence as a float tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def scale(a: Vec3, s: float) -> Vec3:
    return a[0] * s, a[1] * s, a[2] * s


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def mag(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Vec3) -> Vec3 | None:
    """Return ``a`` scaled to unit length, or ``None`` if it is (near) zero."""

    length = mag(a)
    if length <= EPSILON:
        return None
    return a[0] / length, a[1] / length, a[2] / length


def rotate_about_axis(v: Vec3, axis: Vec3, angle: float) -> Vec3:
    """Rotate ``v`` by ``angle`` radians about the unit vector ``axis`` (Rodrigues)."""

    c = math.cos(angle)
    s = math.sin(angle)
    k_cross_v = cross(axis, v)
    k_dot_v = dot(axis, v)
    return (v[0] * c + k_cross_v[0] * s + axis[0] * k_dot_v * (1.0 - c),
            v[1] * c + k_cross_v[1] * s + axis[1] * k_dot_v * (1.0 - c),
            v[2] * c + k_cross_v[2] * s + axis[2] * k_dot_v * (1.0 - c))


def triangle_cross(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3:
    """Return the unnormalised right-hand normal of a triangle."""

    return cross(sub(v1, v0), sub(v2, v0))


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    n = triangle_cross(v0, v1, v2)
    length = mag(n)
    if length <= EPSILON:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


def triangle_area(v0: Vec3, v1: Vec3, v2: Vec3) -> float:
    """Return the area of a triangle."""

    return 0.5 * mag(triangle_cross(v0, v1, v2))


def triangle_centroid(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3:
    """Return the centroid of a triangle."""

    return (
        (v0[0] + v1[0] + v2[0]) / 3.0,
        (v0[1] + v1[1] + v2[1]) / 3.0,
        (v0[2] + v1[2] + v2[2]) / 3.0,
    )


__all__ = [
    "Vec3",
    "to_vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "mag",
    "normalize",
    "rotate_about_axis",
    "triangle_cross",
    "triangle_normal",
    "triangle_area",
    "triangle_centroid",
]
