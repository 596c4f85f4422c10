"""Python implementation of the Taichi-based path tracer.

This package renders scenes of spheres with a Monte Carlo path tracer on
Taichi, with support for:
- Diffuse (Lambertian) and metal (fuzzy specular) materials
- A vertical sky gradient as the only light source
- Deterministic per-pixel random number generation
- Row-batched rendering with progress reporting
- PPM and PNG output

Subpackages:
    core: Vector utilities, random sampling, the integrator and the render driver
    geometry: Sphere primitive and intersection
    materials: Lambertian and metal scattering models
    scene: Scene management, JSON scene files and preset scenes
    camera: Pinhole camera with ray generation
    preview: PPM and PNG export
"""

__version__ = "0.1.0"
