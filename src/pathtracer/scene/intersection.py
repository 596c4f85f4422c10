"""Sphere storage and closest-hit queries against the whole scene.

Spheres live in parallel Taichi fields (centers, radii, material handles).
``intersect_scene`` walks them linearly, tightening the upper bound of the
search interval each time a sphere is hit, so the surviving record is the
nearest one no matter how the spheres were ordered.

Example:
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # inside a kernel: rec = intersect_scene(origin, direction, 1e-3, 1e10)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """A sphere hit tagged with the material handle of that sphere.

    Attributes:
        hit: 1 when something was hit, 0 otherwise.
        t: Ray parameter of the nearest hit.
        point: World-space hit position.
        normal: Unit normal oriented against the ray.
        front_face: 1 when the ray arrived from outside the sphere.
        material_id: Handle of the sphere's material, or -1 for a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Drop every sphere. Old field contents are overwritten lazily."""
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene.

    Args:
        center: Sphere center.
        radius: Sphere radius; must be greater than zero.
        material_id: Material handle reported on hits.

    Returns:
        Position of the sphere in the storage fields.

    Raises:
        ValueError: If ``radius`` is zero, negative or NaN.
        RuntimeError: If ``MAX_SPHERES`` spheres are already stored.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    slot = int(num_spheres[None])
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Scene is full ({MAX_SPHERES} spheres)")

    sphere_centers[slot] = center
    sphere_radii[slot] = radius
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return slot


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def _tag_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Return the nearest sphere hit with t strictly inside (t_min, t_max)."""
    result = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
    closest_t = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            Sphere(center=sphere_centers[i], radius=sphere_radii[i]),
            t_min,
            closest_t,
        )
        if rec.hit == 1:
            closest_t = rec.t
            result = _tag_material(rec, sphere_material_ids[i])

    return result
