"""Demo scene configurations.

Each factory builds a fresh SceneManager and a ThinLensCamera framing it:

- ``sphere``: a fuzzy red metal sphere on a large gray ground square
- ``plane_cube``: a fuzzy metal cube on a brown ground square
- ``all_objects``: a metal sphere, a metal cube and a diffuse cylinder
- ``all_objects_alt_camera``: the same objects seen from higher up

All cameras share a 43 degree vertical field of view, a 0.05 aperture, a
focus distance of 10 and a 3:2 aspect ratio.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.scene.scenes import SCENES
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = SCENES["all_objects"]()
    >>> setup_camera(camera)
"""

from collections.abc import Callable

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.config import DEFAULT_ASPECT_RATIO
from pathtracer.scene.hittable import Cube, Cylinder, Sphere, Square
from pathtracer.scene.manager import SceneManager

# Shared camera optics
VFOV = 43.0
APERTURE = 0.05
FOCUS_DIST = 10.0

# Ground square, large enough to reach the horizon
GROUND_SIZE = 1000.0

SceneFactory = Callable[[], tuple[SceneManager, ThinLensCamera]]


def _camera(
    lookfrom: tuple[float, float, float],
    lookat: tuple[float, float, float],
    aspect_ratio: float,
) -> ThinLensCamera:
    return ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=VFOV,
        aspect_ratio=aspect_ratio,
        aperture=APERTURE,
        focus_dist=FOCUS_DIST,
    )


def scene_sphere(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Single metal sphere resting on the ground.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground_mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    sphere_mat = scene.add_metal_material(albedo=(0.8, 0.2, 0.2), fuzz=0.1)

    scene.add(Square.horizontal((0.0, 0.0, 0.0), GROUND_SIZE, ground_mat))
    scene.add(Sphere((0.0, 1.0, 0.0), 1.0, sphere_mat))

    return scene, _camera((0.0, 2.0, 5.0), (0.0, 1.0, 0.0), aspect_ratio)


def scene_plane_cube(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """A 2x2x2 metal cube standing on the ground.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground_mat = scene.add_lambertian_material(albedo=(0.4, 0.15, 0.05))
    cube_mat = scene.add_metal_material(albedo=(0.1, 0.2, 0.2), fuzz=0.2)

    scene.add(Square.horizontal((0.0, 0.0, 0.0), GROUND_SIZE, ground_mat))
    scene.add(Cube((-1.0, 0.0, -1.0), (1.0, 2.0, 1.0), cube_mat))

    return scene, _camera((0.0, 3.0, 7.0), (0.0, 1.0, 0.0), aspect_ratio)


def _all_objects(scene: SceneManager) -> None:
    ground_mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    metal_mat = scene.add_metal_material(albedo=(0.2, 0.7, 0.7), fuzz=0.1)
    cylinder_mat = scene.add_lambertian_material(albedo=(0.8, 1.0, 0.2))

    scene.add(Square.horizontal((0.0, 0.0, 0.0), GROUND_SIZE, ground_mat))
    scene.add(Sphere((0.0, 1.0, 1.0), 1.0, metal_mat))
    scene.add(Cube((-4.5, 0.0, 0.0), (-2.5, 2.0, 2.0), metal_mat))
    scene.add(Cylinder((3.5, 0.0, 1.0), (0.0, 1.0, 0.0), 0.8, 2.0, cylinder_mat))


def scene_all_objects(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Sphere, cube and cylinder side by side on the ground.

    The sphere and the cube share one metal material.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()
    _all_objects(scene)
    return scene, _camera((0.0, 3.0, 10.0), (0.0, 1.0, 1.0), aspect_ratio)


def scene_all_objects_alt_camera(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Same objects as scene_all_objects, viewed from a higher camera."""
    scene = SceneManager()
    _all_objects(scene)
    return scene, _camera((0.0, 5.0, 10.0), (0.0, 1.0, 1.0), aspect_ratio)


SCENES: dict[str, SceneFactory] = {
    "sphere": scene_sphere,
    "plane_cube": scene_plane_cube,
    "all_objects": scene_all_objects,
    "all_objects_alt_camera": scene_all_objects_alt_camera,
}


def get_scene(name: str, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> tuple[SceneManager, ThinLensCamera]:
    """Build a demo scene by name.

    Raises:
        ValueError: If the name is not a known scene.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(f"Unknown scene {name!r}, expected one of {sorted(SCENES)}") from None
    return factory(aspect_ratio)
