"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Hit interval bounds
- Hit points lie on the sphere with outward normals
"""

import numpy as np
import pytest
import taichi as ti


def _hit(origin, direction, center=(0.0, 0.0, 0.0), radius=1.0, t_min=0.001, t_max=1000.0):
    """Run hit_sphere for one ray and return the record fields as a dict."""
    from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, r: ti.f32, lo: ti.f32, hi: ti.f32):
        sphere = Sphere(center=c, radius=r, material_id=7)
        record = hit_sphere(o, d, sphere, lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face
        material_id[None] = record.material_id

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point.to_numpy(),
        "normal": normal.to_numpy(),
        "front_face": front_face[None],
        "material_id": material_id[None],
    }


class TestSphereIntersection:
    def test_direct_hit(self):
        """Ray from z=5 toward the origin hits the front at t=4."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-5)
        np.testing.assert_allclose(rec["point"], [0.0, 0.0, 1.0], atol=1e-5)
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-5)
        assert rec["front_face"] == 1
        assert rec["material_id"] == 7

    def test_miss(self):
        rec = _hit((5.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert rec["hit"] == 0
        assert rec["material_id"] == -1

    def test_inside_hits_back_face(self):
        """A ray from the center exits through the back face."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(1.0, abs=1e-5)
        assert rec["front_face"] == 0
        # Normal faces the ray origin, i.e. inward
        np.testing.assert_allclose(rec["normal"], [0.0, 0.0, -1.0], atol=1e-5)

    def test_unnormalized_direction_scales_t(self):
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0))
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(2.0, abs=1e-5)

    def test_sphere_behind_ray_misses(self):
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 0

    def test_t_max_excludes_hit(self):
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), t_max=3.0)
        assert rec["hit"] == 0

    def test_near_root_clipped_uses_far_root(self):
        """With the near root below t_min the far side is reported."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), t_min=4.5)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(6.0, abs=1e-5)
        assert rec["front_face"] == 0

    @pytest.mark.parametrize(
        "origin,direction",
        [
            ((3.0, 2.0, 8.0), (-0.3, -0.1, -1.0)),
            ((-4.0, 0.5, 1.0), (1.0, 0.1, 0.2)),
            ((0.2, 6.0, 0.1), (0.0, -1.0, 0.05)),
        ],
    )
    def test_hit_point_on_sphere_with_outward_normal(self, origin, direction):
        center = np.array([0.5, 1.0, 1.5])
        radius = 1.25
        rec = _hit(origin, direction, center=tuple(center), radius=radius)

        assert rec["hit"] == 1
        assert np.linalg.norm(rec["point"] - center) == pytest.approx(radius, abs=1e-4)
        assert np.linalg.norm(rec["normal"]) == pytest.approx(1.0, abs=1e-5)
        outward = (rec["point"] - center) / radius
        # Hit from outside: reported normal is the outward one
        assert rec["front_face"] == 1
        np.testing.assert_allclose(rec["normal"], outward, atol=1e-4)
        assert np.dot(rec["normal"], direction) < 0.0
