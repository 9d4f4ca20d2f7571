"""Unit tests for the dielectric material.

Tests cover:
- Refraction ratio for entering and leaving the medium
- Total internal reflection never refracts
- Reflection probability follows Schlick at normal incidence
- Attenuation is always white
- Registry validation
"""

import numpy as np
import pytest
import taichi as ti


def _scatter(ior, incident, normal, front_face, count=1, stream=0):
    from pathtracer.materials.dielectric import scatter_dielectric, vec3

    directions = ti.Vector.field(3, dtype=ti.f32, shape=count)
    attenuations = ti.Vector.field(3, dtype=ti.f32, shape=count)
    scattered = ti.field(dtype=ti.i32, shape=count)

    @ti.kernel
    def test_kernel(eta: ti.f32, d_in: vec3, n: vec3, ff: ti.i32):
        for _ in range(1):
            for k in range(count):
                d, a, s = scatter_dielectric(eta, d_in, n, ff, stream)
                directions[k] = d
                attenuations[k] = a
                scattered[k] = s

    test_kernel(ior, vec3(*incident), vec3(*normal), front_face)
    return directions.to_numpy(), attenuations.to_numpy(), scattered.to_numpy()


class TestRefractionRatio:
    def test_ratio_depends_on_face(self):
        from pathtracer.materials.dielectric import refraction_ratio

        entering = ti.field(dtype=ti.f32, shape=())
        leaving = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            entering[None] = refraction_ratio(1.5, 1)
            leaving[None] = refraction_ratio(1.5, 0)

        test_kernel()
        assert entering[None] == pytest.approx(1.0 / 1.5)
        assert leaving[None] == pytest.approx(1.5)


class TestScatterDielectric:
    def test_total_internal_reflection_never_refracts(self, seeded_streams):
        """From inside glass at 60 degrees, 1.5 * sin(60) > 1: always reflect."""
        theta = np.radians(60.0)
        incident = (float(np.sin(theta)), float(np.cos(theta)), 0.0)
        # Inside the medium the facing normal points back toward the ray origin
        normal = (0.0, -1.0, 0.0)

        directions, attenuations, scattered = _scatter(1.5, incident, normal, 0, count=256)

        expected = np.array([np.sin(theta), -np.cos(theta), 0.0])
        np.testing.assert_allclose(directions, np.tile(expected, (256, 1)), atol=1e-5)
        assert np.all(scattered == 1)
        np.testing.assert_allclose(attenuations, 1.0)

    def test_will_reflect_matches_tir(self):
        from pathtracer.materials.dielectric import vec3, will_reflect

        inside = ti.field(dtype=ti.i32, shape=())
        outside = ti.field(dtype=ti.i32, shape=())
        theta = float(np.radians(60.0))
        sin_t = float(np.sin(theta))
        cos_t = float(np.cos(theta))

        @ti.kernel
        def test_kernel():
            inside[None] = will_reflect(1.5, vec3(sin_t, cos_t, 0.0), vec3(0.0, -1.0, 0.0), 0)
            outside[None] = will_reflect(1.5, vec3(sin_t, -cos_t, 0.0), vec3(0.0, 1.0, 0.0), 1)

        test_kernel()
        assert inside[None] == 1
        assert outside[None] == 0

    def test_normal_incidence_mostly_refracts(self, seeded_streams):
        n = 4000
        directions, attenuations, _ = _scatter(1.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, count=n)

        reflected = directions[:, 1] > 0.0
        # Schlick r0 for glass is 0.04
        assert reflected.mean() == pytest.approx(0.04, abs=0.015)
        np.testing.assert_allclose(directions[~reflected], np.tile([0.0, -1.0, 0.0], ((~reflected).sum(), 1)), atol=1e-5)
        np.testing.assert_allclose(attenuations, 1.0)

    def test_refracted_direction_bends_toward_normal(self, seeded_streams):
        theta = np.radians(45.0)
        incident = (float(np.sin(theta)), float(-np.cos(theta)), 0.0)
        directions, _, _ = _scatter(1.5, incident, (0.0, 1.0, 0.0), 1, count=256)

        refracted = directions[directions[:, 1] < 0.0]
        assert len(refracted) > 0
        expected_sin = np.sin(theta) / 1.5
        np.testing.assert_allclose(refracted[:, 0], expected_sin, atol=1e-5)


class TestDielectricRegistry:
    def test_add_and_count(self):
        from pathtracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_material_count,
        )

        assert add_dielectric_material() == 0
        assert add_dielectric_material(1.33) == 1
        assert get_dielectric_material_count() == 2

    def test_rejects_ior_below_one(self):
        from pathtracer.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="less than 1.0"):
            add_dielectric_material(0.9)
