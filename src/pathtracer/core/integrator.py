"""Radiance estimation and the per-pixel render kernel.

The estimator follows a ray through the scene: at each surface hit the
material scatters the ray and the path throughput is multiplied by the
material's attenuation; a ray that escapes picks up the sky gradient; an
absorbed ray contributes black. The path is cut off after a fixed number of
bounces, returning black. There is no Russian roulette: the depth bound is
the only termination rule, so energy beyond it is truncated rather than
compensated.

Taichi functions cannot recurse, so the bounce recursion
    color(ray, d) = attenuation * color(scattered, d - 1)
is unrolled into a loop carrying the running attenuation product. The result
is the same product of attenuations times the sky color.

The render kernel is data parallel over pixels. Each pixel draws from its
own generator state (see src.pathtracer.core.sampler), so results do not
depend on thread scheduling or on how rows are split across launches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import setup_render_target, render_rows
    >>> from src.pathtracer.scene.presets import create_default_scene
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_rows(0, 225, samples_per_pixel=100)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.pinhole import get_ray_jittered
from src.pathtracer.core.ray import normalize
from src.pathtracer.core.sampler import init_rng, random_float
from src.pathtracer.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from src.pathtracer.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from src.pathtracer.scene.intersection import intersect_scene
from src.pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per primary ray
MAX_DEPTH = 50

# t_min and t_max for ray intersection; t_min keeps scattered rays from
# re-hitting the surface they leave
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient endpoints (t = 0 looking straight down, t = 1 straight up)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Quantized channels are clamped to this before scaling by 256
MAX_CHANNEL = 0.999

# Mask applied to Python-side seeds before they are passed as u32
SEED_MASK = 0xFFFFFFFF

# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

# Buffers are allocated once at this size; the active region is set per render
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Averaged linear radiance per pixel
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Gamma corrected, quantized output per pixel, channels in [0, 255]
_pixel_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Set to 1 by setup_render_target
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Select the active image size and zero the buffers. Pixel
    coordinates are normalized by (width - 1) and (height - 1), so both
    dimensions must be at least 2.

    Args:
        width: Image width in pixels, in [2, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [2, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If dimensions are below 2 or exceed the maximum size.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image size {width}x{height} is larger than the "
            f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT} buffers"
        )
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Zero both the radiance and the quantized pixel buffers."""
    _color_buffer.fill(0.0)
    _pixel_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Raise RuntimeError unless setup_render_target has run."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("setup_render_target() must be called before rendering")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the incoming ray.
        state: The caller's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state).
        Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, s = scatter_lambertian(albedo, normal, s)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_metal(
            albedo, fuzz, incident_direction, normal, s
        )

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Radiance Estimation
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Evaluate the background sky gradient for an escaping ray.

    Maps the elevation of the unit direction from [-1, 1] to t in [0, 1] and
    blends white (t = 0) into sky blue (t = 1).
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(origin: vec3, direction: vec3, depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (not necessarily normalized).
        depth: Remaining bounce budget. A budget of 0 yields black.
        state: The caller's generator state.

    Returns:
        A tuple (color, new_state).
    """
    ray_origin = origin
    ray_direction = direction
    s = state

    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                radiance = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = _scatter_material(
                    hit_record.material_id, ray_direction, hit_record.normal, s
                )

                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    # Paths still active here ran out of depth and stay black
    return radiance, s


@ti.func
def quantize(average: vec3) -> ti.types.vector(3, ti.i32):
    """Gamma correct and quantize an averaged radiance to [0, 255] per channel.

    Applies a square-root gamma, clamps to [0, MAX_CHANNEL] and truncates
    256 * value toward zero.
    """
    result = ti.Vector([0, 0, 0], dt=ti.i32)
    for c in ti.static(range(3)):
        corrected = tm.clamp(ti.sqrt(average[c]), 0.0, MAX_CHANNEL)
        result[c] = ti.cast(256.0 * corrected, ti.i32)
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Render rows [row_start, row_end) of the image.

    Each pixel sums `samples` independent jittered estimates, averages them
    and stores both the linear average and the quantized output.
    """
    for i, j in ti.ndrange(width, (row_start, row_end)):
        state = init_rng(seed, i, j)
        total = vec3(0.0, 0.0, 0.0)

        for _ in range(samples):
            jitter_u, s1 = random_float(state)
            jitter_v, s2 = random_float(s1)
            ray = get_ray_jittered(i, j, width, height, jitter_u, jitter_v)
            color, s3 = ray_color(ray.origin, ray.direction, max_depth, s2)
            total += color
            state = s3

        average = total / ti.cast(samples, ti.f32)
        _color_buffer[i, j] = average
        _pixel_buffer[i, j] = quantize(average)


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Estimate the radiance along one ray (testing and debugging)."""
    state = init_rng(seed, 0, 0)
    color, _ = ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), depth, state)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
) -> None:
    """Render a band of rows into the render target.

    Rows are indexed bottom-up (row 0 is the bottom of the image). Rendering
    the same pixel with the same seed always gives the same result, whatever
    band it was rendered in.

    Args:
        row_start: First row to render (inclusive).
        row_end: Last row to render (exclusive).
        samples_per_pixel: Number of samples averaged per pixel.
        max_depth: Bounce budget per path.
        seed: Global render seed.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row band or sampling parameters are invalid.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row band [{row_start}, {row_end}) for height {height}")
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    if row_start == row_end:
        return
    _render_rows(row_start, row_end, width, height, samples_per_pixel, max_depth, seed & SEED_MASK)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray in the current scene.

    This is a Python-callable function for testing; production rendering
    goes through render_rows() which processes pixels in parallel.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z).
        depth: Bounce budget. 0 always yields black.
        seed: Generator seed for the scattering decisions.

    Returns:
        Tuple of (R, G, B) linear radiance.
    """
    color = _trace_single_ray(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        depth,
        seed & SEED_MASK,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_radiance_numpy():
    """Get the averaged linear radiance as a NumPy array.

    Returns:
        Array of shape (height, width, 3), float32, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    import numpy as np

    _check_render_target_initialized()
    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]
    # (width, height, 3) -> (height, width, 3), then flip so row H-1 comes first
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.float32)


def get_pixels_numpy():
    """Get the quantized pixels as a NumPy array in raster scan order.

    Returns:
        Array of shape (height, width, 3), int32 values in [0, 255]. Row 0
        of the array is image row H-1 (the top of the image), columns run
        left to right.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    import numpy as np

    _check_render_target_initialized()
    width, height = get_image_dimensions()

    pixels = _pixel_buffer.to_numpy()[:width, :height, :]
    pixels = np.flipud(np.transpose(pixels, (1, 0, 2)))
    return np.ascontiguousarray(pixels, dtype=np.int32)
