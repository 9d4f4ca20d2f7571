"""Taichi path tracer.

This package renders scenes of spheres, squares, cubes, disks and cylinders
with diffuse, metal and dielectric materials by Monte Carlo path tracing.

Subpackages:
    core: Vector kernel, random streams, integrator and render driver
    geometry: Primitive intersection routines and the hit record
    materials: Lambertian, metal and dielectric scattering
    scene: Hittable objects, the primitive table and the scene manager
    camera: Thin-lens camera with depth of field
    preview: Tonemapping, image sinks and preview display
"""

__version__ = "0.1.0"
