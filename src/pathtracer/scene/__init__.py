"""Scene module for scene management and hit records.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and closest-hit queries over all spheres
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes (the default four-sphere scene)

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
    - A unified material id space shared by all material types
"""

# Scene intersection and hit records
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)

# Scene manager for coordinating primitives and materials
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    load_scene_file,
    material_type_indices,
    material_types,
    num_materials,
    save_scene_file,
)

# Preset scenes
from .presets import DefaultSceneParams, create_default_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    "load_scene_file",
    "save_scene_file",
    # Presets module
    "DefaultSceneParams",
    "create_default_scene",
]
