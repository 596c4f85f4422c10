"""Reflective metal surfaces.

The incoming direction is mirrored about the normal and then nudged by
``fuzz`` times a random point inside the unit ball. A nudge that pushes the
ray into the surface counts as absorption.

Fuzz values outside [0, 1] are clamped on registration rather than
rejected.
"""

import math

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import random_in_unit_sphere, reflect

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Bounce a ray off a metal surface.

    Args:
        albedo: Tint applied to reflected light.
        fuzz: Blur radius, expected in [0, 1].
        incident_direction: Direction of the arriving ray.
        normal: Unit normal facing the arriving ray.
        state: Generator state of the calling pixel.

    Returns:
        ``(direction, attenuation, did_scatter, state)``. ``did_scatter`` is
        0 when the blurred direction lies on or below the surface.
    """
    jitter, next_state = random_in_unit_sphere(state)
    direction = reflect(incident_direction, normal) + fuzz * jitter

    did_scatter = 0
    if tm.dot(direction, normal) > 0.0:
        did_scatter = 1
    return direction, albedo, did_scatter, next_state


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
_metal_count = ti.field(dtype=ti.i32, shape=())


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]. NaN maps to 0 (a perfect mirror)."""
    value = float(fuzz)
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def clear_metal_materials() -> None:
    """Forget every registered metal material."""
    _metal_count[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Register a metal material.

    Args:
        albedo: Tint as an ``(r, g, b)`` sequence.
        fuzz: Blur radius, clamped into [0, 1].

    Returns:
        Slot of the new material in ``metal_albedos`` and ``metal_fuzz``.

    Raises:
        ValueError: If ``albedo`` is not three components long.
        RuntimeError: If all ``MAX_METAL_MATERIALS`` slots are taken.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")

    slot = int(_metal_count[None])
    if slot >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Metal registry is full ({MAX_METAL_MATERIALS} materials)")

    r, g, b = albedo
    metal_albedos[slot] = (r, g, b)
    metal_fuzz[slot] = clamp_fuzz(fuzz)
    _metal_count[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    return int(_metal_count[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzz[material_idx]
