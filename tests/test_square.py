"""Unit tests for square and disk intersection.

Tests cover:
- square_frame builds an orthonormal basis for any normal
- Hit at the square center with t equal to the height above it
- Miss just past the edge, hit exactly on the edge
- Parallel rays miss
- Back-face hits flip the normal
- Disk radius bound
"""

import numpy as np
import pytest
import taichi as ti


def _hit_square(origin, direction, center, normal, size, t_min=0.001, t_max=1000.0):
    from pathtracer.geometry.square import Square, hit_square, square_frame, vec3

    unit_normal, u_axis, v_axis = square_frame(normal)

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    out_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        o: vec3, d: vec3, c: vec3, n: vec3, u: vec3, v: vec3, s: ti.f32, lo: ti.f32, hi: ti.f32
    ):
        square = Square(center=c, normal=n, u_axis=u, v_axis=v, size=s, material_id=3)
        record = hit_square(o, d, square, lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        out_normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(
        vec3(*origin),
        vec3(*direction),
        vec3(*center),
        vec3(*unit_normal),
        vec3(*u_axis),
        vec3(*v_axis),
        size,
        t_min,
        t_max,
    )
    return {
        "hit": hit[None],
        "t": t_val[None],
        "normal": out_normal.to_numpy(),
        "front_face": front_face[None],
    }


def _hit_disk(origin, direction, center, normal, radius):
    from pathtracer.core.ray import normalize_host
    from pathtracer.geometry.disk import Disk, hit_disk, vec3

    unit_normal = normalize_host(normal)

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    out_normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, n: vec3, r: ti.f32):
        disk = Disk(center=c, normal=n, radius=r, material_id=0)
        record = hit_disk(o, d, disk, 0.001, 1000.0)
        hit[None] = record.hit
        t_val[None] = record.t
        out_normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), vec3(*unit_normal), radius)
    return {"hit": hit[None], "t": t_val[None], "normal": out_normal.to_numpy()}


class TestSquareFrame:
    @pytest.mark.parametrize(
        "normal",
        [(0.0, 1.0, 0.0), (0.0, 0.0, -1.0), (1.0, 1.0, 1.0), (0.3, -2.0, 0.1)],
    )
    def test_orthonormal(self, normal):
        from pathtracer.geometry.square import square_frame

        n, u, v = square_frame(normal)
        for axis in (n, u, v):
            assert np.linalg.norm(axis) == pytest.approx(1.0)
        assert np.dot(n, u) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(n, v) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(u, v) == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(n, np.asarray(normal) / np.linalg.norm(normal))

    def test_zero_normal_rejected(self):
        from pathtracer.geometry.square import square_frame

        with pytest.raises(ValueError, match="square normal"):
            square_frame((0.0, 0.0, 0.0))


class TestSquareIntersection:
    def test_center_hit_from_above(self):
        """A ray straight down onto the center hits at t = height."""
        rec = _hit_square((0.0, 3.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(3.0, abs=1e-5)
        np.testing.assert_allclose(rec["normal"], [0.0, 1.0, 0.0], atol=1e-6)
        assert rec["front_face"] == 1

    def test_miss_just_past_edge(self):
        rec = _hit_square((1.01, 3.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)
        assert rec["hit"] == 0

    def test_hit_just_inside_edge(self):
        rec = _hit_square((0.99, 3.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)
        assert rec["hit"] == 1

    def test_parallel_ray_misses(self):
        rec = _hit_square((0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)
        assert rec["hit"] == 0

    def test_back_face_flips_normal(self):
        rec = _hit_square((0.0, -2.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)

        assert rec["hit"] == 1
        assert rec["front_face"] == 0
        np.testing.assert_allclose(rec["normal"], [0.0, -1.0, 0.0], atol=1e-6)

    def test_behind_origin_misses(self):
        rec = _hit_square((0.0, 3.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 2.0)
        assert rec["hit"] == 0

    def test_tilted_square(self):
        normal = np.array([0.0, 1.0, 1.0]) / np.sqrt(2.0)
        center = (1.0, 2.0, -3.0)
        origin = np.asarray(center) + 4.0 * normal
        rec = _hit_square(tuple(origin), tuple(-normal), center, tuple(normal), 0.5)

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-4)


class TestDiskIntersection:
    def test_center_hit(self):
        rec = _hit_disk((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(5.0, abs=1e-5)
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-6)

    def test_corner_of_bounding_square_misses(self):
        """(0.8, 0.8) is inside the bounding square but outside the circle."""
        rec = _hit_disk((0.8, 0.8, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0)
        assert rec["hit"] == 0

    def test_back_face_normal(self):
        rec = _hit_disk((0.0, 0.0, -5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0)
        assert rec["hit"] == 1
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, -1.0], atol=1e-6)
