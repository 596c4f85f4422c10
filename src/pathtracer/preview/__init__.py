"""Preview module for rendered output.

Components:
    export: PPM (P3) and PNG writers

Example:
    >>> from src.pathtracer.preview import save_ppm
    >>> from src.pathtracer.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(400, 225)
    >>> renderer.render(100)
    >>> save_ppm(renderer, "output.ppm")
"""

from src.pathtracer.preview.export import (
    format_ppm,
    iter_ppm_lines,
    save_png,
    save_png_from_array,
    save_ppm,
    write_ppm,
)

__all__ = [
    "format_ppm",
    "iter_ppm_lines",
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_png_from_array",
]
