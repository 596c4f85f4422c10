"""Materials module for surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz

Each material provides a scatter function taking the hit normal (and, for
metals, the incoming direction) plus the caller's generator state, and
returning the scattered direction, the attenuation and the advanced state.
Material parameters live in per-type registries backed by Taichi fields and
are addressed by index from the scene manager.
"""

from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "add_metal_material",
    "clamp_fuzz",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
]
