"""Per-pixel random number generation for reproducible parallel rendering.

Every pixel owns an independent generator state, derived by hashing the
global render seed with the pixel coordinates. The state is a plain u32
that is threaded through every random draw, so no generator state is ever
shared between the parallel iterations of a render kernel and the result is
independent of how the image is partitioned across launches or threads.

The generator is xorshift32, seeded through a Wang hash of
(seed, pixel_i, pixel_j).

Example:
    >>> @ti.kernel
    ... def draw():
    ...     for i, j in ti.ndrange(4, 4):
    ...         state = init_rng(seed, i, j)
    ...         x, state = random_float(state)
"""

import taichi as ti

# Set to 1 to make every draw return 0.0 (zero jitter, golden fixtures)
_constant_sampling = ti.field(dtype=ti.i32, shape=())

# 2^24, the number of distinct floats produced by random_float
_FLOAT_SCALE = 16777216.0


def set_constant_sampling(enabled: bool) -> None:
    """Force every random draw to return 0.0.

    Intended for deterministic regression renders: with constant sampling
    the camera jitter is zero and every stochastic scatter direction is a
    fixed function of the hit, so the raster is fully reproducible.

    Args:
        enabled: True to stub the generator, False to restore it.
    """
    _constant_sampling[None] = 1 if enabled else 0


def is_constant_sampling() -> bool:
    """Check whether the generator is currently stubbed to zero."""
    return bool(_constant_sampling[None])


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    k = key
    k = (k ^ ti.cast(61, ti.u32)) ^ ti.bit_shr(k, 16)
    k = k * ti.cast(9, ti.u32)
    k = k ^ ti.bit_shr(k, 4)
    k = k * ti.cast(0x27D4EB2D, ti.u32)
    k = k ^ ti.bit_shr(k, 15)
    return k


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance an xorshift32 generator by one step."""
    x = state
    x = x ^ (x << 13)
    x = x ^ ti.bit_shr(x, 17)
    x = x ^ (x << 5)
    return x


@ti.func
def init_rng(seed: ti.u32, pixel_i: ti.i32, pixel_j: ti.i32) -> ti.u32:
    """Derive the generator state for one pixel.

    Args:
        seed: Global render seed.
        pixel_i: Pixel column.
        pixel_j: Pixel row.

    Returns:
        A non-zero u32 state unique to (seed, pixel_i, pixel_j).
    """
    state = wang_hash(seed ^ ti.cast(pixel_i, ti.u32))
    state = wang_hash(state ^ ti.cast(pixel_j, ti.u32))
    state = wang_hash(state + ti.cast(0x68E31DA4, ti.u32))
    # xorshift never leaves the all-zero state
    if state == 0:
        state = ti.cast(1, ti.u32)
    return state


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The caller's generator state.

    Returns:
        A tuple (value, new_state).
    """
    next_state = xorshift32(state)
    value = ti.cast(ti.bit_shr(next_state, 8), ti.f32) / _FLOAT_SCALE
    if _constant_sampling[None] == 1:
        value = 0.0
    return value, next_state
