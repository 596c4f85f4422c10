"""Scene assembly: material handles, spheres and scene files.

Material parameters live in one registry per material kind (see
src.pathtracer.materials). The scene manager issues a single integer handle
per material and records, in Taichi fields, which registry and which slot
the handle points at. Spheres carry only that handle, so one material can be
shared by any number of spheres, and the integrator resolves it with
get_material_type() / get_material_type_index() inside kernels.

A scene can be written to and read from plain dictionaries, which is also
the JSON scene file format:

    {
      "materials": [
        {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
        {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 1.0}
      ],
      "spheres": [
        {"center": [0.0, -100.5, -1.0], "radius": 100.0, "material_id": 0}
      ]
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.7, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti
import taichi.math as tm

from src.pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtracer.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Material kinds understood by the integrator's scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1


# One registry of 256 slots per material kind
MAX_MATERIALS = 512

# Handle -> MaterialType value
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# Handle -> slot inside that kind's registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Forget every issued material handle."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Resolve a handle to its MaterialType value, or -1 if unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Resolve a handle to its registry slot, or -1 if unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Python-side record of an issued material handle.

    Attributes:
        material_id: The handle.
        material_type: Which registry the material lives in.
        type_index: Slot inside that registry.
        params: Parameters as stored, with fuzz already clamped.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Python-side record of a sphere.

    Attributes:
        sphere_index: Slot in the sphere storage fields.
        center: Sphere center (x, y, z).
        radius: Sphere radius.
        material_id: Handle of the sphere's material.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Serializable description of a scene.

    Attributes:
        materials: One dict per material, in handle order.
        spheres: One dict per sphere.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    """Read a 3-component value from a scene description."""
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _require_mapping(entry: Any, what: str) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ValueError(f"{what} must be an object, got {entry!r}")
    return entry


class SceneManager:
    """Builds the active scene out of materials and spheres.

    Scene data is held in module-level Taichi fields, so only one scene is
    active per process. A new SceneManager starts from an empty scene.

    Attributes:
        materials: MaterialInfo per issued handle, indexed by handle.
        spheres: SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material, Python records and fields alike."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Materials
    # =========================================================================

    def _issue_handle(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Record a registry slot under the next free handle."""
        handle = int(num_materials[None])
        if handle >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[handle] = int(material_type)
        material_type_indices[handle] = type_index
        num_materials[None] = handle + 1

        self.materials.append(MaterialInfo(handle, material_type, type_index, params))
        return handle

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its handle.

        Args:
            albedo: Diffuse reflectance (R, G, B); not clamped.

        Raises:
            ValueError: If albedo does not have three components.
            RuntimeError: If a material registry is full.
        """
        slot = add_lambertian_material(albedo)
        return self._issue_handle(MaterialType.LAMBERTIAN, slot, {"albedo": tuple(albedo)})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal material and return its handle.

        Args:
            albedo: Reflectance tint (R, G, B).
            fuzz: Radius of the random offset added to the mirror direction.
                Values outside [0, 1] are clamped.

        Raises:
            ValueError: If albedo does not have three components.
            RuntimeError: If a material registry is full.
        """
        slot = add_metal_material(albedo, fuzz)
        params = {"albedo": tuple(albedo), "fuzz": clamp_fuzz(fuzz)}
        return self._issue_handle(MaterialType.METAL, slot, params)

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Look up the record of a handle; None for unknown handles."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Python-side counterpart of the get_material_type() Taichi function."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere using an existing material handle.

        Args:
            center: Sphere center (x, y, z).
            radius: Sphere radius, strictly positive.
            material_id: Handle returned by one of the add_*_material methods.

        Returns:
            The sphere's slot in the sphere storage fields.

        Raises:
            ValueError: If the handle is unknown or the radius is not positive.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Place a sphere with its own new diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Place a sphere with its own new metal material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Describe the current scene as a SceneConfig."""
        config = SceneConfig()
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            entry.update(
                (key, list(value) if isinstance(value, tuple) else value)
                for key, value in info.params.items()
            )
            config.materials.append(entry)

        config.spheres = [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            for sphere in self.spheres
        ]
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Materials are registered in list order before any sphere is placed,
        so a sphere's material_id is the position of its material in the list.

        Raises:
            ValueError: If an entry is malformed, names an unknown material
                type, or references an unknown material.
        """
        self.clear()

        for entry in config.materials:
            entry = _require_mapping(entry, "Material entry")
            kind = str(entry.get("type", "")).lower()
            if kind == "lambertian":
                albedo = _as_triple(entry.get("albedo", [0.5, 0.5, 0.5]), "albedo")
                self.add_lambertian_material(albedo)
            elif kind == "metal":
                albedo = _as_triple(entry.get("albedo", [0.8, 0.8, 0.8]), "albedo")
                self.add_metal_material(albedo, float(entry.get("fuzz", 0.0)))
            else:
                raise ValueError(f"Unknown material type: {kind}")

        for entry in config.spheres:
            entry = _require_mapping(entry, "Sphere entry")
            self.add_sphere(
                _as_triple(entry.get("center", [0, 0, 0]), "center"),
                float(entry.get("radius", 1.0)),
                int(entry.get("material_id", 0)),
            )

        logger.debug(
            "Built scene: %d materials, %d spheres", len(self.materials), len(self.spheres)
        )

    def to_dict(self) -> dict[str, Any]:
        """Describe the current scene as a JSON-compatible dict."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the current scene with one read from a dict.

        Raises:
            ValueError: If data is not a mapping or describes an invalid scene.
        """
        data = _require_mapping(data, "Scene data")
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
            )
        )

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS


def save_scene_file(scene: SceneManager, path: str | Path) -> None:
    """Write a scene to a JSON file.

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(path)
    path.write_text(json.dumps(scene.to_dict(), indent=2) + "\n")
    logger.info("Saved scene with %d spheres to %s", len(scene.spheres), path)


def load_scene_file(path: str | Path) -> SceneManager:
    """Make the scene described by a JSON file the active scene.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid scene file {path}: {e}") from e

    scene = SceneManager()
    scene.from_dict(data)
    logger.info(
        "Loaded scene from %s: %d materials, %d spheres",
        path,
        scene.get_material_count(),
        scene.get_sphere_count(),
    )
    return scene
