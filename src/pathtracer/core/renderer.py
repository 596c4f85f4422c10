"""Row-batched render driver producing the output raster.

This module wraps the integrator kernels in a Renderer class that:
- Renders the image in bands of rows, top band first
- Reports a monotonically decreasing "rows remaining" count after each band
- Reassembles the quantized pixels in raster scan order (top row first,
  left to right within a row) regardless of how the work was split

Because every pixel seeds its own generator from (seed, i, j), the band size
only changes how the work is launched, never the pixels produced.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.renderer import Renderer, RenderSettings
    >>> from src.pathtracer.scene.presets import create_default_scene
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>>
    >>> settings = RenderSettings(width=400, samples_per_pixel=100)
    >>> scene, camera = create_default_scene(settings.aspect_ratio)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(settings.width, settings.height)
    >>> renderer.render(settings.samples_per_pixel, seed=settings.seed)
    >>> lines = renderer.pixel_lines()
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.pathtracer.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_pixels_numpy,
    get_radiance_numpy,
    render_rows,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_remaining, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Image and sampling configuration for a render.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height; the height is derived.
        samples_per_pixel: Number of samples averaged per pixel.
        max_depth: Bounce budget per path.
        seed: Global seed for the per-pixel generators.
        rows_per_batch: Rows rendered per kernel launch.
    """

    width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = 0
    rows_per_batch: int = 16

    @property
    def height(self) -> int:
        """Image height in pixels, int(width / aspect_ratio)."""
        return int(self.width / self.aspect_ratio)


class Renderer:
    """Render driver producing quantized pixels in raster scan order.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels (2 to 2048).
            height: Image height in pixels (2 to 2048).

        Raises:
            ValueError: If dimensions are out of the supported range.
        """
        self._width = width
        self._height = height
        self._samples_per_pixel = 0
        setup_render_target(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "Renderer":
        """Create a renderer sized from RenderSettings."""
        return cls(settings.width, settings.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def samples_per_pixel(self) -> int:
        """Samples per pixel of the last completed render (0 if none)."""
        return self._samples_per_pixel

    def reset(self) -> None:
        """Clear the image buffers."""
        clear_render_target()
        self._samples_per_pixel = 0

    def _row_bands(self, rows_per_batch: int) -> Generator[tuple[int, int], None, None]:
        """Yield [start, end) row bands from the top of the image down."""
        row_end = self._height
        while row_end > 0:
            row_start = max(0, row_end - rows_per_batch)
            yield row_start, row_end
            row_end = row_start

    def render_progressive(
        self,
        samples_per_pixel: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
        rows_per_batch: int = 16,
    ) -> Generator[int, None, None]:
        """Render the image band by band, yielding rows remaining after each band.

        Args:
            samples_per_pixel: Number of samples averaged per pixel.
            max_depth: Bounce budget per path.
            seed: Global seed for the per-pixel generators.
            rows_per_batch: Rows rendered per kernel launch.

        Yields:
            The number of rows still to render; strictly decreasing, ending at 0.

        Raises:
            ValueError: If rows_per_batch or the sampling parameters are invalid.
        """
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")

        self._samples_per_pixel = 0
        for row_start, row_end in self._row_bands(rows_per_batch):
            render_rows(row_start, row_end, samples_per_pixel, max_depth, seed)
            logger.debug("Scanlines remaining: %d", row_start)
            yield row_start
        self._samples_per_pixel = samples_per_pixel

    def render(
        self,
        samples_per_pixel: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
        rows_per_batch: int = 16,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render the whole image.

        Args:
            samples_per_pixel: Number of samples averaged per pixel.
            max_depth: Bounce budget per path.
            seed: Global seed for the per-pixel generators.
            rows_per_batch: Rows rendered per kernel launch.
            callback: Optional callback invoked after each band with
                (rows_remaining, total_rows).

        Example:
            >>> def progress(remaining, total):
            ...     print(f"Scanlines remaining: {remaining}")
            >>> renderer.render(100, callback=progress)
        """
        logger.info(
            "Rendering %dx%d at %d samples per pixel (max depth %d)",
            self._width,
            self._height,
            samples_per_pixel,
            max_depth,
        )
        for rows_remaining in self.render_progressive(
            samples_per_pixel, max_depth, seed, rows_per_batch
        ):
            if callback is not None:
                callback(rows_remaining, self._height)
        logger.info("Done")

    def render_settings(
        self,
        settings: RenderSettings,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render using the sampling parameters of a RenderSettings."""
        self.render(
            settings.samples_per_pixel,
            max_depth=settings.max_depth,
            seed=settings.seed,
            rows_per_batch=settings.rows_per_batch,
            callback=callback,
        )

    def get_pixels_numpy(self) -> npt.NDArray[np.int32]:
        """Get the quantized pixels, shape (height, width, 3), top row first."""
        return get_pixels_numpy()

    def get_radiance_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear radiance, shape (height, width, 3), top row first."""
        return get_radiance_numpy()

    def pixels(self) -> list[tuple[int, int, int]]:
        """Get the quantized pixels as (R, G, B) tuples in raster scan order."""
        flat = self.get_pixels_numpy().reshape(-1, 3)
        return [(int(r), int(g), int(b)) for r, g, b in flat]

    def pixel_lines(self) -> list[str]:
        """Get the pixels formatted as "R G B" lines in raster scan order."""
        return [f"{r} {g} {b}" for r, g, b in self.pixels()]

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.samples_per_pixel})"
        )
