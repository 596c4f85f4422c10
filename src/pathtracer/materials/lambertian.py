"""Diffuse surfaces.

Scattered directions are ``normal + u`` where ``u`` is uniform on the unit
sphere, which gives a cosine-weighted lobe around the normal. Every bounce
is attenuated by the albedo; diffuse surfaces never absorb a ray outright.

Usage inside a kernel::

    direction, attenuation, state = scatter_lambertian(albedo, normal, state)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import near_zero, random_unit_vector

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Bounce a ray off a diffuse surface.

    Args:
        albedo: Per-channel reflectance.
        normal: Unit normal facing the incoming ray.
        state: Generator state of the calling pixel.

    Returns:
        ``(direction, attenuation, state)``. The direction is left
        unnormalized and falls back to ``normal`` when the random offset
        cancels it.
    """
    offset, next_state = random_unit_vector(state)
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction, albedo, next_state


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
_lambertian_count = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Forget every registered diffuse material."""
    _lambertian_count[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Register a diffuse material.

    Args:
        albedo: Reflectance as an ``(r, g, b)`` sequence.

    Returns:
        Slot of the new material in ``lambertian_albedos``.

    Raises:
        ValueError: If ``albedo`` is not three components long.
        RuntimeError: If all ``MAX_LAMBERTIAN_MATERIALS`` slots are taken.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")

    slot = int(_lambertian_count[None])
    if slot >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(f"Lambertian registry is full ({MAX_LAMBERTIAN_MATERIALS} materials)")

    r, g, b = albedo
    lambertian_albedos[slot] = (r, g, b)
    _lambertian_count[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    return int(_lambertian_count[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
