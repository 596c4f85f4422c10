"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector algebra and random sampling helpers
    sampler: Per-pixel random number generation
    integrator: Radiance estimation and the parallel render kernel
    renderer: Row-batched render driver producing the output raster

All compute-intensive operations use Taichi kernels; each pixel carries its
own generator state so renders are reproducible for a given seed.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_sphere,
    random_on_hemisphere,
    random_range,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    vec3,
)
from .sampler import (
    init_rng,
    is_constant_sampling,
    random_float,
    set_constant_sampling,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "near_zero",
    "random_range",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_on_hemisphere",
    "init_rng",
    "random_float",
    "set_constant_sampling",
    "is_constant_sampling",
]
