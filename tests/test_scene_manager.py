"""Unit tests for the SceneManager.

Tests cover:
- Material registration and the unified material id space
- Material type tracking on the host and in kernels
- Adding hittables, including rejection of unknown material ids
- Convenience methods (add_*_sphere)
- Scene serialization (to_config, from_config, to_dict, from_dict)
- Scene clearing
"""

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    def test_ids_are_shared_across_types(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        id0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_lambertian_material(albedo=(0.1, 0.1, 0.1))

        assert [id0, id1, id2, id3] == [0, 1, 2, 3]
        assert fresh_scene.get_material_count() == 4
        assert fresh_scene.get_material_type_python(1) == MaterialType.METAL
        assert fresh_scene.get_material_info(3).type_index == 1
        assert fresh_scene.get_material_info(99) is None
        assert fresh_scene.get_material_type_python(-1) is None

    def test_invalid_parameters_do_not_register(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material((0.5, 0.5, 0.5), fuzz=2.0)
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.5)
        assert fresh_scene.get_material_count() == 0

    def test_kernel_material_lookup(self, fresh_scene):
        from pathtracer.scene.manager import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material(1.33)

        types = ti.field(dtype=ti.i32, shape=3)
        indices = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            for k in range(3):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)

        test_kernel()
        assert types[0] == int(MaterialType.LAMBERTIAN)
        assert types[1] == int(MaterialType.DIELECTRIC)
        assert indices[1] == 0
        # Unregistered id
        assert types[2] == -1
        assert indices[2] == -1


class TestAddingObjects:
    def test_add_returns_table_indices(self, fresh_scene):
        from pathtracer.scene.hittable import Cube, Square

        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        assert fresh_scene.add(Square.horizontal((0, 0, 0), 100.0, mat)) == [0]
        assert fresh_scene.add(Cube((0, 0, 0), (1, 1, 1), mat)) == [1, 2, 3, 4, 5, 6]
        assert fresh_scene.add_cylinder((0, 0, 0), (0, 1, 0), 1.0, 2.0, mat) == [7]
        assert fresh_scene.add_disk((0, 0, 0), (0, 1, 0), 1.0, mat) == [8]
        assert fresh_scene.get_primitive_count() == 9
        assert len(fresh_scene.objects) == 4

    def test_unknown_material_rejected_atomically(self, fresh_scene):
        from pathtracer.scene.hittable import HittableList, Sphere

        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        bad = HittableList([Sphere((0, 0, 0), 1.0, mat), Sphere((0, 0, 3), 1.0, mat + 1)])

        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add(bad)
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.objects == []

    def test_full_table_rejects_composite_atomically(self, fresh_scene):
        """A cube that does not fit uploads none of its faces."""
        from pathtracer.scene.hittable import Cube
        from pathtracer.scene.intersection import MAX_PRIMITIVES, num_primitives

        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        num_primitives[None] = MAX_PRIMITIVES - 3

        with pytest.raises(RuntimeError, match="Maximum number of primitives"):
            fresh_scene.add(Cube.centered((0, 0, 0), 2.0, mat))
        assert fresh_scene.get_primitive_count() == MAX_PRIMITIVES - 3
        assert fresh_scene.objects == []

        # Three single primitives still fit exactly
        for k in range(3):
            fresh_scene.add_sphere((0, 0, -2.0 * k), 0.5, mat)
        assert fresh_scene.get_primitive_count() == MAX_PRIMITIVES

    def test_negative_material_rejected(self, fresh_scene):
        fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_sphere((0, 0, 0), 1.0, -1)

    def test_convenience_spheres(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        idx0, mat0 = fresh_scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.7, 0.3, 0.3))
        idx1, mat1 = fresh_scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.8, 0.8), fuzz=0.2)
        idx2, mat2 = fresh_scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)

        assert (idx0, idx1, idx2) == (0, 1, 2)
        assert fresh_scene.get_material_type_python(mat2) == MaterialType.DIELECTRIC
        assert mat0 != mat1

    def test_hit_query(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0, 0, -5), 1.0, mat)

        hit = fresh_scene.hit((0, 0, 0), (0, 0, -1))
        assert hit is not None
        assert hit.t == pytest.approx(4.0, abs=1e-5)
        assert hit.material_id == mat
        assert fresh_scene.hit((0, 0, 0), (0, 0, 1)) is None

    def test_clear(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material((0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0, 0, -5), 1.0, mat)
        fresh_scene.clear()

        assert fresh_scene.get_material_count() == 0
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.materials == []


class TestSerialization:
    def _build(self, scene):
        ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
        metal = scene.add_metal_material((0.2, 0.7, 0.7), fuzz=0.1)
        glass = scene.add_dielectric_material(1.5)
        scene.add_square((0, 0, 0), (0, 1, 0), 1000.0, ground)
        scene.add_sphere((0, 1, 1), 1.0, metal)
        scene.add_cube((-4.5, 0, 0), (-2.5, 2, 2), metal)
        scene.add_cylinder((3.5, 0, 1), (0, 1, 0), 0.8, 2.0, glass)

    def test_to_config(self, fresh_scene):
        self._build(fresh_scene)
        config = fresh_scene.to_config()

        assert config.materials[0] == {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}
        assert config.materials[1] == {"type": "metal", "albedo": [0.2, 0.7, 0.7], "fuzz": 0.1}
        assert config.materials[2] == {"type": "dielectric", "ior": 1.5}
        assert [obj["type"] for obj in config.objects] == ["square", "sphere", "cube", "cylinder"]

    def test_round_trip_reproduces_table(self, fresh_scene):
        from pathtracer.scene.intersection import prim_centers, prim_kinds, prim_material_ids

        self._build(fresh_scene)
        data = fresh_scene.to_dict()
        kinds = prim_kinds.to_numpy()[:9].tolist()
        mids = prim_material_ids.to_numpy()[:9].tolist()
        centers = prim_centers.to_numpy()[:9].tolist()

        fresh_scene.clear()
        fresh_scene.from_dict(data)

        assert fresh_scene.get_material_count() == 3
        assert fresh_scene.get_primitive_count() == 9
        assert prim_kinds.to_numpy()[:9].tolist() == kinds
        assert prim_material_ids.to_numpy()[:9].tolist() == mids
        assert prim_centers.to_numpy()[:9].tolist() == centers

    def test_unknown_material_type(self, fresh_scene):
        from pathtracer.scene.manager import SceneConfig

        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_config(SceneConfig(materials=[{"type": "plasma"}]))

    def test_repr(self, fresh_scene):
        self._build(fresh_scene)
        assert repr(fresh_scene) == "SceneManager(materials=3, primitives=9)"

    def test_capacities(self, fresh_scene):
        from pathtracer.scene.intersection import MAX_PRIMITIVES
        from pathtracer.scene.manager import MAX_MATERIALS

        assert fresh_scene.get_max_primitives() == MAX_PRIMITIVES
        assert fresh_scene.get_max_materials() == MAX_MATERIALS
