"""Image export utilities for rendered images.

This module is the output sink of the renderer. It receives the quantized
pixels in raster scan order and frames them into a file or stream.

Supported formats:
    - PPM (plain "P3" text raster)
    - PNG (8-bit via Pillow)

Write failures are not caught here: an OSError from the file system
propagates to the caller and aborts the run.

Example:
    >>> from src.pathtracer.preview.export import write_ppm
    >>> from src.pathtracer.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(400, 225)
    >>> renderer.render(100)
    >>> write_ppm("image.ppm", renderer.width, renderer.height, renderer.pixels())
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.pathtracer.core.renderer import Renderer

# Maximum channel value written in the PPM header
PPM_MAX_VALUE = 255


def iter_ppm_lines(
    width: int,
    height: int,
    pixels: Iterable[Sequence[int]],
) -> Iterator[str]:
    """Yield the lines of a P3 raster (without trailing newlines).

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: Exactly width * height (R, G, B) triples in raster scan
            order, each channel in [0, 255].

    Yields:
        "P3", "<width> <height>", "255", then one "R G B" line per pixel.

    Raises:
        ValueError: If the pixel count does not match the dimensions or a
            channel is out of range.
    """
    yield "P3"
    yield f"{width} {height}"
    yield str(PPM_MAX_VALUE)

    count = 0
    for pixel in pixels:
        r, g, b = (int(c) for c in pixel)
        if not (0 <= r <= PPM_MAX_VALUE and 0 <= g <= PPM_MAX_VALUE and 0 <= b <= PPM_MAX_VALUE):
            raise ValueError(f"Pixel {count} out of range: ({r}, {g}, {b})")
        count += 1
        yield f"{r} {g} {b}"

    if count != width * height:
        raise ValueError(f"Expected {width * height} pixels for {width}x{height}, got {count}")


def format_ppm(
    width: int,
    height: int,
    pixels: Iterable[Sequence[int]],
) -> str:
    """Format pixels as a complete P3 raster string."""
    return "".join(f"{line}\n" for line in iter_ppm_lines(width, height, pixels))


def write_ppm(
    target: str | Path | TextIO,
    width: int,
    height: int,
    pixels: Iterable[Sequence[int]],
) -> None:
    """Write pixels as a P3 raster to a path or an open text stream.

    Args:
        target: Output file path, or a writable text stream (e.g. sys.stdout).
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: (R, G, B) triples in raster scan order.

    Raises:
        OSError: If the output cannot be written.
        ValueError: If the pixels do not match the dimensions.
    """
    # Format fully before opening so a bad raster never leaves a partial file
    content = format_ppm(width, height, pixels)

    if isinstance(target, (str, Path)):
        with open(target, "w", encoding="ascii") as f:
            f.write(content)
    else:
        target.write(content)
        target.flush()


def save_ppm(renderer: Renderer, filepath: str | Path) -> None:
    """Save the renderer's current image as a P3 raster."""
    write_ppm(filepath, renderer.width, renderer.height, renderer.pixels())


def save_png_from_array(pixels: npt.NDArray[np.integer], filepath: str | Path) -> None:
    """Save an array of quantized pixels as a PNG file.

    Args:
        pixels: Array of shape (H, W, 3) with values in [0, 255], top row first.
        filepath: Output file path (should end in .png).

    Raises:
        OSError: If the file cannot be written.
    """
    image_uint8 = np.clip(pixels, 0, PPM_MAX_VALUE).astype(np.uint8)
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)


def save_png(renderer: Renderer, filepath: str | Path) -> None:
    """Save the renderer's current image as a PNG file.

    The pixels are the same gamma corrected values written to PPM output.
    """
    save_png_from_array(renderer.get_pixels_numpy(), filepath)
