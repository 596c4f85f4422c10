"""Sphere primitive with closed-form ray-sphere intersection.

The intersection solves |O + tD - C|^2 = r^2 with the half-b form of the
quadratic formula and tries the two roots nearest first. The trial order
matters: when the ray starts inside the sphere the near root is behind the
origin and rejected, so the far root (a back-face hit) is returned.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: The unit surface normal, oriented against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the surface, 0 if it hit
            from the inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal). front_face is 1 when
        dot(ray_direction, outward_normal) < 0; the returned normal is the
        outward normal for front-face hits and its negation otherwise.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    With oc = origin - center the quadratic coefficients are:
        a = dot(direction, direction)
        half_b = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        discriminant = half_b^2 - a*c

    The root (-half_b - sqrt(d)) / a is tried first; the root
    (-half_b + sqrt(d)) / a is tried only if the first lies outside the open
    interval (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (not necessarily
            normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on accepted t (avoids self-intersection).
        t_max: Exclusive upper bound on accepted t.

    Returns:
        A HitRecord. Check the hit field to determine if an intersection
        occurred.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Near root first
        t = (-half_b - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-half_b + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            is_front_face, hit_normal = face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
