"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and face-normal orientation

Intersection routines are Taichi functions (@ti.func) so every pixel of a
render kernel can test primitives in parallel. They follow the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
where a hit is only reported for t strictly inside (t_min, t_max).
"""

from .sphere import HitRecord, Sphere, face_normal, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "face_normal",
    "hit_sphere",
    "make_sphere",
]
