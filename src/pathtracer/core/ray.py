"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass, the vector algebra used
for points, directions and colors, and the random sampling helpers used by
the materials. All operations are Taichi functions so they can be called
from inside render kernels.

Random helpers take the caller's generator state and return the advanced
state alongside the sample (see src.pathtracer.core.sampler), which keeps
every parallel unit of work on its own independent stream.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.sampler import random_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Bound on rejection-sampling attempts
MAX_REJECTION_TRIES = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not normalized;
            intersection code relies on its actual squared length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector, dot(v, v)."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The result is non-finite when v has zero length. Callers that may feed
    a degenerate vector must check near_zero() first.

    Args:
        v: The input vector.

    Returns:
        v / length(v).
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * dot(incident, normal) * normal. The normal must
    be unit length for the result to be a mirror reflection; the incident
    vector keeps its length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The unit surface normal.

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if all three components are below NEAR_ZERO_EPSILON in magnitude.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple (value, new_state).
    """
    x, next_state = random_float(state)
    return lo + (hi - lo) * x, next_state


@ti.func
def random_vec3(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Draw a vector whose components are uniform in [lo, hi).

    Returns:
        A tuple (vector, new_state).
    """
    x, s1 = random_range(lo, hi, state)
    y, s2 = random_range(lo, hi, s1)
    z, s3 = random_range(lo, hi, s2)
    return vec3(x, y, z), s3


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point inside the unit ball.

    Uses rejection sampling over the enclosing cube. The loop is bounded by
    MAX_REJECTION_TRIES; if every candidate is rejected the origin is
    returned.

    Returns:
        A tuple (point, new_state) with length(point) < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate, next_state = random_vec3(-1.0, 1.0, s)
            s = next_state
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Candidates too close to the origin are rejected before normalizing so
    the result is always finite.

    Returns:
        A tuple (unit_vector, new_state).
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p, s = random_vec3(-1.0, 1.0, s)
            lensq = length_squared(p)
            if 1e-20 < lensq < 1.0:
                found = True
    return normalize(p), s


@ti.func
def random_on_hemisphere(normal: vec3, state: ti.u32):
    """Generate a random unit vector in the hemisphere around a normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        state: The caller's generator state.

    Returns:
        A tuple (unit_vector, new_state) with dot(unit_vector, normal) >= 0.
    """
    on_sphere, s = random_unit_vector(state)
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result, s
