"""Pinhole camera producing primary rays.

``setup_camera`` turns a ``PinholeCamera`` description into four vectors
kept in Taichi fields: the eye position, the full horizontal and vertical
spans of the viewport, and the viewport's lower-left corner one unit in
front of the eye. Kernels then call ``get_ray`` / ``get_ray_jittered``.

With the default settings the eye sits at the world origin looking down -z
with a 90 degree vertical field of view, which gives a viewport 2 units
tall at focal length 1.

Ray directions point from the eye to the viewport sample and are left
unnormalized.

Example:
    >>> setup_camera(PinholeCamera(aspect_ratio=16.0 / 9.0))
    >>> # inside a kernel: ray = get_ray(0.5, 0.5)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray


@dataclass
class PinholeCamera:
    """Placement and lens of a pinhole camera.

    Attributes:
        lookfrom: Eye position.
        lookat: Point the camera aims at.
        vup: World direction treated as "up" for the image.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width over image height.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0


_eye = ti.Vector.field(3, dtype=ti.f32, shape=())
_span_x = ti.Vector.field(3, dtype=ti.f32, shape=())
_span_y = ti.Vector.field(3, dtype=ti.f32, shape=())
_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def _unit(vector: np.ndarray, message: str) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        raise ValueError(message)
    return vector / norm


def setup_camera(camera: PinholeCamera) -> None:
    """Load a camera into the fields read by the ray generators.

    Args:
        camera: The camera to activate.

    Raises:
        ValueError: If vfov or aspect_ratio is out of range, if lookfrom
            equals lookat, or if vup is parallel to the view direction.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if not camera.aspect_ratio > 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")

    height = 2.0 * math.tan(math.radians(camera.vfov) / 2.0)
    width = camera.aspect_ratio * height

    eye = np.asarray(camera.lookfrom, dtype=np.float64)
    target = np.asarray(camera.lookat, dtype=np.float64)
    up = np.asarray(camera.vup, dtype=np.float64)

    # Right-handed frame: back points away from the target.
    back = _unit(eye - target, "lookfrom and lookat must differ")
    right = _unit(np.cross(up, back), "vup must not be parallel to the view direction")
    true_up = np.cross(back, right)

    span_x = width * right
    span_y = height * true_up

    _eye[None] = eye.tolist()
    _span_x[None] = span_x.tolist()
    _span_y[None] = span_y.tolist()
    _corner[None] = (eye - back - 0.5 * span_x - 0.5 * span_y).tolist()


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Ray through viewport coordinates (u, v).

    ``u`` runs 0 to 1 left to right and ``v`` runs 0 to 1 bottom to top.
    """
    eye = _eye[None]
    target = _corner[None] + u * _span_x[None] + v * _span_y[None]
    return make_ray(eye, target - eye)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter_u: ti.f32,
    jitter_v: ti.f32,
) -> Ray:
    """Ray through pixel (i, j) offset by a sub-pixel jitter.

    The viewport coordinates are ``(i + jitter_u) / (width - 1)`` and
    ``(j + jitter_v) / (height - 1)``, with ``j = 0`` the bottom row, so both
    dimensions must be at least 2.

    Args:
        pixel_i: Column, counted from the left.
        pixel_j: Row, counted from the bottom.
        width: Image width in pixels.
        height: Image height in pixels.
        jitter_u: Horizontal offset in [0, 1).
        jitter_v: Vertical offset in [0, 1).

    Returns:
        The primary ray for this sample.
    """
    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width - 1, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height - 1, ti.f32)
    return get_ray(u, v)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Snapshot of the active camera vectors, keyed origin / horizontal /
    vertical / lower_left."""
    fields = {
        "origin": _eye,
        "horizontal": _span_x,
        "vertical": _span_y,
        "lower_left": _corner,
    }
    return {name: tuple(float(x) for x in field.to_numpy()) for name, field in fields.items()}
